"""
plan_config.py — Work-week, planning-window and lifecycle configuration

WORK WEEK
─────────
  Day indices match the keys stored in the weekly_plans.plan column:
      0 = Sunday, 1 = Monday, ..., 6 = Saturday
  The work week starts on Saturday and runs seven days:
      Sat(6) Sun(0) Mon(1) Tue(2) Wed(3) Thu(4) Fri(5)

PLANNING WINDOW
───────────────
  Thursday and Friday, the two days before the week boundary.  Inside the
  window the representative plans the NEXT week (starting the coming
  Saturday); outside it they view the CURRENT week.

LIFECYCLE
─────────
  draft ──submit──▶ pending ──approve──▶ approved ──revoke──▶ draft
  rejected ─submit─▶ pending ──reject───▶ rejected
  submit:          representative (owner of the plan)
  approve/reject:  manager, supervisor
  revoke:          manager only
"""

from typing import Any, Dict, FrozenSet, Tuple

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

DAYS_PER_WEEK = 7

WEEK_START_DAY: int = 6                          # Saturday
PLANNING_DAYS: FrozenSet[int] = frozenset({4, 5})  # Thursday, Friday

WORK_WEEK_DAYS: Tuple[int, ...] = (6, 0, 1, 2, 3, 4, 5)

DAY_NAMES: Dict[int, str] = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

# The hosted get_overdue_visits RPC filtered server-side; locally the
# threshold is explicit.
OVERDUE_THRESHOLD_DAYS: int = 30

FREQUENCY_BUCKETS: Tuple[str, ...] = ("freq1", "freq2", "freq3")

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

TRIGGER_SUBMIT = "submit"
TRIGGER_APPROVE = "approve"
TRIGGER_REJECT = "reject"
TRIGGER_REVOKE = "revoke"

# trigger → {from, to, roles}; values are the wire strings of PlanStatus / Role
TRANSITION_RULES: Dict[str, Dict[str, Any]] = {
    TRIGGER_SUBMIT: {
        "from":  ("draft", "rejected", "pending"),
        "to":    "pending",
        "roles": ("representative",),
        # approved → pending only while the next week is being planned
        "from_in_planning_window": ("approved",),
    },
    TRIGGER_APPROVE: {
        "from":  ("pending",),
        "to":    "approved",
        "roles": ("manager", "supervisor"),
    },
    TRIGGER_REJECT: {
        "from":  ("pending",),
        "to":    "rejected",
        "roles": ("manager", "supervisor"),
    },
    TRIGGER_REVOKE: {
        "from":  ("approved",),
        "to":    "draft",
        "roles": ("manager",),
    },
}


def get_config() -> Dict[str, Any]:
    return {
        "week_start_day":          WEEK_START_DAY,
        "planning_days":           sorted(PLANNING_DAYS),
        "work_week_days":          list(WORK_WEEK_DAYS),
        "day_names":               DAY_NAMES.copy(),
        "overdue_threshold_days":  OVERDUE_THRESHOLD_DAYS,
        "frequency_buckets":       list(FREQUENCY_BUCKETS),
        "transition_rules":        {k: dict(v) for k, v in TRANSITION_RULES.items()},
    }
