"""
cli.py — Operator command line for the weekly plan engine

Works against the file-backed repository (data/ by default) or, with
--remote, the hosted database configured through REPPLAN_SUPABASE_URL /
REPPLAN_SUPABASE_KEY.

Commands:
  window                     plan week for --today, planning mode, working days
  show-plan REP              stored plan of one representative, with violations
  review-queue               plans awaiting approval
  approve / reject / revoke REP
                             status transitions (needs --actor and --role)
  overdue --rep REP          clients not visited for --threshold days
  frequency [--rep REP]      doctors visited 1 / 2 / 3+ times this month

Usage:
  python -m repplan.cli --today 2026-10-15 window
  python -m repplan.cli show-plan rep-1
  python -m repplan.cli --actor mgr-1 --role manager approve rep-1
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from repplan.analytics import (
    compute_monthly_visit_frequency,
    compute_overdue_alerts,
    compute_working_day_rate,
    filter_overdue_alerts,
)
from repplan.config import DAY_NAMES, OVERDUE_THRESHOLD_DAYS, get_remote_settings
from repplan.errors import PlanError
from repplan.file_store import FilePlanRepository
from repplan.lifecycle import PlanLifecycle, is_plan_editable, pending_plans
from repplan.models import Actor, ClientKind, Role
from repplan.session import open_session
from repplan.store import PlanRepository
from repplan.supabase_client import SupabaseClient
from repplan.week_window import get_plan_week, get_working_days, is_planning_window

logger = logging.getLogger(__name__)

SEP = "=" * 60


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def _now(args) -> datetime:
    if args.today is None:
        return datetime.now()
    return datetime(args.today.year, args.today.month, args.today.day, 12, 0)


def open_repository(args) -> PlanRepository:
    if args.remote:
        settings = get_remote_settings()
        return SupabaseClient(settings["url"], settings["key"])
    return FilePlanRepository(args.data_dir, today=args.today)


def _actor(args) -> Actor:
    if not args.actor or not args.role:
        raise SystemExit("--actor and --role are required for this command")
    return Actor(user_id=args.actor, role=Role(args.role))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_window(repo: PlanRepository, args) -> int:
    now = _now(args)
    week = get_plan_week(now)
    settings = repo.fetch_system_settings()
    working = set(get_working_days(week, settings))

    print(f"\n{SEP}")
    mode = "PLANNING next week" if is_planning_window(now) else "Viewing current week"
    print(f"  {mode}: {week.week_start} → {week.week_end}")
    print(SEP)
    for d in week.days_list():
        flag = "" if d in working else "  (off)"
        print(f"  {d.strftime('%A'):<10} {d}{flag}")
    print()
    return 0


def cmd_show_plan(repo: PlanRepository, args) -> int:
    session = open_session(repo, args.rep, _now(args))
    region_names = {r.id: r.name for r in session.regions}
    doctor_names = {d.id: d.name for d in session.doctors}
    dates = session.day_dates()

    print(f"\n{SEP}")
    print(f"  Plan for rep {args.rep}  [{session.plan.status.value}, v{session.plan.version}]")
    print(f"  Week {session.week.week_start} → {session.week.week_end}"
          f"  editable={'yes' if session.editable else 'no'}")
    print(SEP)
    for day, assignment in session.store.snapshot().items():
        label = f"{DAY_NAMES[day]:<10} {dates[day]}"
        if assignment is None:
            print(f"  {label}  —")
            continue
        region = region_names.get(assignment.region_id, f"region {assignment.region_id}")
        names = ", ".join(doctor_names.get(i, f"#{i}") for i in assignment.client_ids) or "(no doctors)"
        print(f"  {label}  {region}: {names}")

    violations = session.violations()
    if violations:
        print(f"\n  ✗ {len(violations)} violation(s):")
        for v in violations:
            print(f"    {v}")
    print()
    return 0


def cmd_review_queue(repo: PlanRepository, args) -> int:
    queue = pending_plans(repo.fetch_all_plans())
    print(f"\n{len(queue)} plan(s) awaiting review")
    for rep_id, plan in queue:
        planned_days = sum(1 for a in plan.plan.values() if a)
        planned_doctors = sum(len(a.client_ids) for a in plan.plan.values() if a)
        print(f"  {rep_id:<20} v{plan.version:<4} {planned_days} day(s), {planned_doctors} doctor(s)")
    return 0


def cmd_transition(repo: PlanRepository, args) -> int:
    lifecycle = PlanLifecycle(repo)
    action = getattr(lifecycle, args.command)
    stored = action(_actor(args), args.rep, expected_version=args.expected_version)
    editable = is_plan_editable(stored.status, _now(args))
    print(f"  ✓ Plan for rep {args.rep} is now {stored.status.value} (v{stored.version}, "
          f"editable={'yes' if editable else 'no'})")
    return 0


def cmd_overdue(repo: PlanRepository, args) -> int:
    now = _now(args)
    clients = repo.fetch_clients_for_rep(args.rep)
    visits = repo.fetch_visit_history(args.rep)
    region_names = {r.id: r.name for r in repo.fetch_regions()}
    rep_names = {v.rep_id: v.rep_name for v in visits if v.rep_id and v.rep_name}

    alerts = filter_overdue_alerts(
        compute_overdue_alerts(clients, visits, now, region_names, rep_names),
        threshold_days=args.threshold,
    )
    print(f"\n{len(alerts)} client(s) not visited for {args.threshold}+ days")
    for a in alerts:
        days = "never" if a.days_since_last_visit is None else f"{a.days_since_last_visit}d"
        print(f"  {days:>6}  {a.type.value:<8} {a.name:<30} {a.region_name}")
    return 0


def cmd_frequency(repo: PlanRepository, args) -> int:
    now = _now(args)
    kind = ClientKind(args.kind)
    visits = repo.fetch_visit_history(args.rep)
    freq = compute_monthly_visit_frequency(visits, now, kind=kind)
    rate = compute_working_day_rate(visits, now, kind=kind)

    print(f"\n{kind.value.capitalize()} visits {now.date().replace(day=1)} → {now.date()}")
    print(f"  visited once:      {freq['freq1']}")
    print(f"  visited twice:     {freq['freq2']}")
    print(f"  visited 3+ times:  {freq['freq3']}")
    print(f"  per working day:   {rate:.2f}")
    return 0


COMMANDS = {
    "window":       cmd_window,
    "show-plan":    cmd_show_plan,
    "review-queue": cmd_review_queue,
    "approve":      cmd_transition,
    "reject":       cmd_transition,
    "revoke":       cmd_transition,
    "overdue":      cmd_overdue,
    "frequency":    cmd_frequency,
}


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weekly plan engine for field-sales representatives")
    parser.add_argument("--today",    type=_parse_day, default=None, help="Pin the clock (YYYY-MM-DD)")
    parser.add_argument("--data-dir", type=Path, default=None, help="Data directory (default: data/)")
    parser.add_argument("--remote",   action="store_true", help="Use the hosted database")
    parser.add_argument("--actor",    default=None, help="User id performing a transition")
    parser.add_argument("--role",     default=None, choices=[r.value for r in Role], help="Role of --actor")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("window", help="Show the plan week for --today")

    p = sub.add_parser("show-plan", help="Show a representative's plan")
    p.add_argument("rep")

    sub.add_parser("review-queue", help="List plans awaiting review")

    for name in ("approve", "reject", "revoke"):
        p = sub.add_parser(name, help=f"{name.capitalize()} a representative's plan")
        p.add_argument("rep")
        p.add_argument("--expected-version", type=int, default=None,
                       help="Fail if the stored plan has moved past this version")

    p = sub.add_parser("overdue", help="Clients not visited recently")
    p.add_argument("--rep", required=True)
    p.add_argument("--threshold", type=int, default=OVERDUE_THRESHOLD_DAYS)

    p = sub.add_parser("frequency", help="Monthly visit frequency buckets")
    p.add_argument("--rep", default=None)
    p.add_argument("--kind", default=ClientKind.DOCTOR.value, choices=[k.value for k in ClientKind])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    try:
        repo = open_repository(args)
        return COMMANDS[args.command](repo, args)
    except (PlanError, ValueError, FileNotFoundError) as e:
        print(f"✗ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
