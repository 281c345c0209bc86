"""
Weekly Plan Engine for Field-Sales Representatives

Modules:
- week_window: Planning window and work-week date arithmetic
- plan_store: Editable working copy of a representative's weekly plan
- validator: Plan invariant checks run before submission
- lifecycle: draft / pending / approved / rejected state machine
- analytics: Overdue alerts, visit frequency and dashboard aggregates
- store, file_store, supabase_client: Plan repositories
"""

from .models import (
    Actor,
    ClientKind,
    DayAssignment,
    Doctor,
    Pharmacy,
    PlanStatus,
    Region,
    Role,
    SystemSettings,
    VisitRecord,
    WeeklyPlan,
)

from .errors import (
    InvalidTransition,
    PermissionDenied,
    PersistenceFailure,
    PlanConflict,
    PlanError,
    ValidationFailure,
)

from .week_window import (
    get_plan_week,
    get_week_window,
    is_planning_window,
    is_working_day,
    resolve_plan_week_start,
)

from .plan_store import PlanStore
from .validator import PlanValidator
from .lifecycle import PlanLifecycle, is_plan_editable, pending_plans
from .session import PlanSession, open_session

from .analytics import (
    compute_monthly_visit_frequency,
    compute_overdue_alerts,
    compute_working_day_rate,
    filter_overdue_alerts,
)

from .store import InMemoryPlanRepository, PlanRepository

__all__ = [
    "Actor",
    "ClientKind",
    "DayAssignment",
    "Doctor",
    "Pharmacy",
    "PlanStatus",
    "Region",
    "Role",
    "SystemSettings",
    "VisitRecord",
    "WeeklyPlan",
    "InvalidTransition",
    "PermissionDenied",
    "PersistenceFailure",
    "PlanConflict",
    "PlanError",
    "ValidationFailure",
    "get_plan_week",
    "get_week_window",
    "is_planning_window",
    "is_working_day",
    "resolve_plan_week_start",
    "PlanStore",
    "PlanValidator",
    "PlanLifecycle",
    "is_plan_editable",
    "pending_plans",
    "PlanSession",
    "open_session",
    "compute_monthly_visit_frequency",
    "compute_overdue_alerts",
    "compute_working_day_rate",
    "filter_overdue_alerts",
    "InMemoryPlanRepository",
    "PlanRepository",
]
