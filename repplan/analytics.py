"""
analytics.py — Visit-history aggregates for the dashboards

Pure functions over already-fetched clients and visits; no I/O and no clock.
Every function takes `as_of` explicitly.

  compute_overdue_alerts          days since each client's last visit
  filter_overdue_alerts           apply an explicit threshold
  compute_monthly_visit_frequency visited once / twice / 3+ times this month
  compute_working_day_rate        month-to-date visits per day with visits
  monthly_visit_counts            doctor / pharmacy visits this month
  daily_visit_counts              doctor / pharmacy visits on one day
  monthly_summary_stats           totals, unique clients, average per month
  pending_doctors_for_today       planned today but not visited yet

Correlation of visits to clients:
  A visit that carries client_id is matched on (kind, client_id).  Visit
  reports from the hosted RPC only carry the target's display name; those
  are matched on (kind, name), which conflates namesakes.
"""

import logging
from collections import Counter
from datetime import date, datetime
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple, Union

from repplan.models import (
    Client,
    ClientAlert,
    ClientKind,
    Doctor,
    VisitRecord,
    WeeklyPlan,
)
from repplan.plan_config import OVERDUE_THRESHOLD_DAYS
from repplan.week_window import day_index

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_date(d: DateLike) -> date:
    return d.date() if isinstance(d, datetime) else d


def start_of_month(as_of: DateLike) -> date:
    return _as_date(as_of).replace(day=1)


def month_to_date(
    visits: Iterable[VisitRecord],
    as_of: DateLike,
    kind: Optional[ClientKind] = None,
) -> List[VisitRecord]:
    """Visits dated in [first of the month, as_of], both ends inclusive."""
    first = start_of_month(as_of)
    last = _as_date(as_of)
    return [
        v for v in visits
        if first <= v.day <= last and (kind is None or v.kind is kind)
    ]


def visit_target_key(visit: VisitRecord) -> Tuple[ClientKind, Hashable]:
    if visit.client_id is not None:
        return visit.kind, visit.client_id
    return visit.kind, visit.target_name


# ---------------------------------------------------------------------------
# Overdue alerts
# ---------------------------------------------------------------------------

def compute_overdue_alerts(
    clients: Iterable[Client],
    visits: Iterable[VisitRecord],
    as_of: DateLike,
    region_names: Optional[Dict[int, str]] = None,
    rep_names: Optional[Dict[str, str]] = None,
) -> List[ClientAlert]:
    """
    One alert per client with whole days since its latest visit on or before
    `as_of` (None when never visited).  No threshold is applied here.
    """
    today = _as_date(as_of)
    region_names = region_names or {}
    rep_names = rep_names or {}

    last_by_id: Dict[Tuple[ClientKind, int], date] = {}
    last_by_name: Dict[Tuple[ClientKind, str], date] = {}
    for v in visits:
        if v.day > today:
            continue
        if v.client_id is not None:
            key = (v.kind, v.client_id)
            if key not in last_by_id or v.day > last_by_id[key]:
                last_by_id[key] = v.day
        else:
            key = (v.kind, v.target_name)
            if key not in last_by_name or v.day > last_by_name[key]:
                last_by_name[key] = v.day

    alerts: List[ClientAlert] = []
    for client in clients:
        candidates = [
            d for d in (
                last_by_id.get((client.kind, client.id)),
                last_by_name.get((client.kind, client.name)),
            )
            if d is not None
        ]
        days: Optional[int] = (today - max(candidates)).days if candidates else None
        alerts.append(ClientAlert(
            id=client.key,
            name=client.name,
            type=client.kind,
            rep_id=client.rep_id,
            rep_name=rep_names.get(client.rep_id, ""),
            region_name=region_names.get(client.region_id, ""),
            days_since_last_visit=days,
        ))

    never = sum(1 for a in alerts if a.days_since_last_visit is None)
    logger.debug(f"Overdue scan: {len(alerts)} clients, {never} never visited")
    return alerts


def filter_overdue_alerts(
    alerts: Iterable[ClientAlert],
    threshold_days: int = OVERDUE_THRESHOLD_DAYS,
) -> List[ClientAlert]:
    """Never-visited clients first, then the longest-unvisited."""
    overdue = [
        a for a in alerts
        if a.days_since_last_visit is None or a.days_since_last_visit >= threshold_days
    ]
    return sorted(
        overdue,
        key=lambda a: (a.days_since_last_visit is not None, -(a.days_since_last_visit or 0), a.name),
    )


# ---------------------------------------------------------------------------
# Frequency and rates
# ---------------------------------------------------------------------------

def compute_monthly_visit_frequency(
    visits: Iterable[VisitRecord],
    as_of: DateLike,
    kind: Optional[ClientKind] = ClientKind.DOCTOR,
) -> Dict[str, int]:
    """Count of targets visited exactly once, exactly twice, and 3+ times this month."""
    counts = Counter(visit_target_key(v) for v in month_to_date(visits, as_of, kind))
    result = {"freq1": 0, "freq2": 0, "freq3": 0}
    for n in counts.values():
        if n == 1:
            result["freq1"] += 1
        elif n == 2:
            result["freq2"] += 1
        else:
            result["freq3"] += 1
    return result


def compute_working_day_rate(
    visits: Iterable[VisitRecord],
    as_of: DateLike,
    kind: Optional[ClientKind] = None,
) -> float:
    """Month-to-date visits divided by the number of distinct dates with a visit."""
    monthly = month_to_date(visits, as_of, kind)
    working_days = {v.day for v in monthly}
    if not working_days:
        return 0.0
    return len(monthly) / len(working_days)


def monthly_visit_counts(visits: Iterable[VisitRecord], as_of: DateLike) -> Dict[str, Any]:
    monthly = month_to_date(visits, as_of)
    by_kind = Counter(v.kind for v in monthly)
    return {
        "doctor_visits":          by_kind[ClientKind.DOCTOR],
        "pharmacy_visits":        by_kind[ClientKind.PHARMACY],
        "visits_per_working_day": compute_working_day_rate(monthly, as_of),
    }


def daily_visit_counts(visits: Iterable[VisitRecord], on: DateLike) -> Dict[str, int]:
    day = _as_date(on)
    by_kind = Counter(v.kind for v in visits if v.day == day)
    return {
        "doctor_visits":   by_kind[ClientKind.DOCTOR],
        "pharmacy_visits": by_kind[ClientKind.PHARMACY],
    }


def monthly_summary_stats(visits: Iterable[VisitRecord], as_of: DateLike) -> Dict[str, Any]:
    """
    total_visits_this_month, unique_clients_this_month, and
    average_visits_per_month over the calendar months spanned by the history.
    """
    visits = list(visits)
    if not visits:
        return {
            "total_visits_this_month":   0,
            "unique_clients_this_month": 0,
            "average_visits_per_month":  0.0,
        }

    monthly = month_to_date(visits, as_of)
    earliest = min(v.day for v in visits)
    latest = max(v.day for v in visits)
    months = (latest.year - earliest.year) * 12 + (latest.month - earliest.month) + 1

    return {
        "total_visits_this_month":   len(monthly),
        "unique_clients_this_month": len({visit_target_key(v) for v in monthly}),
        "average_visits_per_month":  round(len(visits) / months, 1),
    }


# ---------------------------------------------------------------------------
# Today's plan progress
# ---------------------------------------------------------------------------

def pending_doctors_for_today(
    plan: WeeklyPlan,
    visits: Iterable[VisitRecord],
    doctors: Iterable[Doctor],
    now: DateLike,
) -> List[Doctor]:
    """Doctors planned for today's weekday that have no doctor visit today."""
    today = _as_date(now)
    assignment = plan.plan.get(day_index(today))
    if not assignment or not assignment.client_ids:
        return []

    doctors = list(doctors)
    name_to_id = {d.name: d.id for d in doctors}
    visited = set()
    for v in visits:
        if v.day != today or v.kind is not ClientKind.DOCTOR:
            continue
        doctor_id = v.client_id if v.client_id is not None else name_to_id.get(v.target_name)
        if doctor_id is not None:
            visited.add(doctor_id)

    planned = [i for i in assignment.client_ids if i not in visited]
    by_id = {d.id: d for d in doctors}
    return [by_id[i] for i in planned if i in by_id]
