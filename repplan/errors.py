"""
errors.py — Failure kinds raised by the planning engine

  ValidationFailure   plan invariants broken; carries the violation list
  PermissionDenied    actor lacks the role for a transition
  InvalidTransition   transition not allowed from the current status
  PersistenceFailure  the backing store reported an error
  PlanConflict        stored version differs from the expected one
"""

from typing import Any, List, Optional


class PlanError(Exception):
    """Base class for all planning-engine errors."""


class ValidationFailure(PlanError):
    def __init__(self, violations: List[Any]):
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations[:3])
        more = f" (+{len(self.violations) - 3} more)" if len(self.violations) > 3 else ""
        super().__init__(f"Plan has {len(self.violations)} violation(s): {summary}{more}")


class PermissionDenied(PlanError):
    def __init__(self, actor: Any, action: str, reason: str = ""):
        self.actor = actor
        self.action = action
        role = getattr(getattr(actor, "role", None), "value", actor)
        msg = f"{role} may not {action}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidTransition(PlanError):
    def __init__(self, from_status: Any, trigger: str):
        self.from_status = from_status
        self.trigger = trigger
        status = getattr(from_status, "value", from_status)
        super().__init__(f"Cannot {trigger} a plan in status '{status}'")


class PersistenceFailure(PlanError):
    """Raised when a repository call fails. Never retried by the engine."""


class PlanConflict(PersistenceFailure):
    def __init__(self, rep_id: str, expected_version: int, actual_version: Optional[int]):
        self.rep_id = rep_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Plan for rep {rep_id} changed underneath: "
            f"expected version {expected_version}, found {actual_version}"
        )
