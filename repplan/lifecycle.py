"""
lifecycle.py — Weekly plan status state machine

  | trigger | from                                  | to       | roles                |
  |---------|---------------------------------------|----------|----------------------|
  | submit  | draft, rejected, pending              | pending  | representative (own) |
  |         | approved (inside planning window)     |          |                      |
  | approve | pending                               | approved | manager, supervisor  |
  | reject  | pending                               | rejected | manager, supervisor  |
  | revoke  | approved                              | draft    | manager              |

Order of checks for every transition:
  1. role / ownership   → PermissionDenied
  2. current status     → InvalidTransition
  3. plan invariants    → ValidationFailure (submit only)
  4. persistence        → PersistenceFailure / PlanConflict from the repository
Nothing is written unless 1–3 pass.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union

from repplan.errors import InvalidTransition, PermissionDenied, ValidationFailure
from repplan.models import Actor, PlanMap, PlanStatus, Role, WeeklyPlan
from repplan.plan_config import (
    TRANSITION_RULES,
    TRIGGER_APPROVE,
    TRIGGER_REJECT,
    TRIGGER_REVOKE,
    TRIGGER_SUBMIT,
)
from repplan.store import PlanRepository
from repplan.validator import PlanValidator
from repplan.week_window import is_planning_window

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def is_plan_editable(status: PlanStatus, now: DateLike) -> bool:
    """The owner may edit unless the plan is approved outside the planning window."""
    return PlanStatus(status) is not PlanStatus.APPROVED or is_planning_window(now)


def allowed_roles(trigger: str) -> Tuple[Role, ...]:
    return tuple(Role(r) for r in TRANSITION_RULES[trigger]["roles"])


def allowed_from(trigger: str, now: Optional[DateLike] = None) -> Tuple[PlanStatus, ...]:
    rule = TRANSITION_RULES[trigger]
    states = list(rule["from"])
    if now is not None and is_planning_window(now):
        states.extend(rule.get("from_in_planning_window", ()))
    return tuple(PlanStatus(s) for s in states)


def pending_plans(plans: Dict[str, WeeklyPlan]) -> List[Tuple[str, WeeklyPlan]]:
    """Review queue: (rep_id, plan) for every plan awaiting a decision."""
    return sorted(
        ((rep_id, p) for rep_id, p in plans.items() if p.status is PlanStatus.PENDING),
        key=lambda item: item[0],
    )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class PlanLifecycle:
    """Applies status transitions through a PlanRepository."""

    def __init__(self, repository: PlanRepository):
        self.repository = repository

    # -----------------------------------------------------------------------
    # Checks
    # -----------------------------------------------------------------------

    def _authorize(self, actor: Actor, trigger: str, rep_id: str) -> None:
        if actor.role not in allowed_roles(trigger):
            raise PermissionDenied(actor, f"{trigger} plans")
        if trigger == TRIGGER_SUBMIT and actor.user_id != rep_id:
            raise PermissionDenied(actor, "submit plans", "only the owner may submit a plan")

    def _check_state(
        self,
        current: WeeklyPlan,
        trigger: str,
        now: Optional[DateLike] = None,
    ) -> None:
        if current.status not in allowed_from(trigger, now):
            raise InvalidTransition(current.status, trigger)

    def can_transition(
        self,
        actor: Actor,
        rep_id: str,
        current: WeeklyPlan,
        trigger: str,
        now: Optional[DateLike] = None,
    ) -> bool:
        """Dry check of role and status; does not validate plan content."""
        try:
            self._authorize(actor, trigger, rep_id)
            self._check_state(current, trigger, now)
        except (PermissionDenied, InvalidTransition):
            return False
        return True

    # -----------------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------------

    def submit(
        self,
        actor: Actor,
        rep_id: str,
        snapshot: PlanMap,
        now: DateLike,
        expected_version: Optional[int] = None,
    ) -> WeeklyPlan:
        """Representative submits their plan for review (→ pending)."""
        self._authorize(actor, TRIGGER_SUBMIT, rep_id)
        current = self.repository.fetch_plan(rep_id)
        self._check_state(current, TRIGGER_SUBMIT, now)

        doctors = self.repository.fetch_doctors_for_rep(rep_id)
        violations = PlanValidator(doctors).validate(snapshot)
        if violations:
            raise ValidationFailure(violations)

        # the write must land on the row the state check saw
        if expected_version is None:
            expected_version = current.version
        stored = self.repository.persist_plan(rep_id, snapshot, expected_version=expected_version)
        logger.info(f"Rep {rep_id} submitted plan ({current.status.value} → {stored.status.value})")
        return stored

    def approve(self, actor: Actor, rep_id: str, expected_version: Optional[int] = None) -> WeeklyPlan:
        return self._review(actor, rep_id, TRIGGER_APPROVE, expected_version)

    def reject(self, actor: Actor, rep_id: str, expected_version: Optional[int] = None) -> WeeklyPlan:
        return self._review(actor, rep_id, TRIGGER_REJECT, expected_version)

    def revoke(self, actor: Actor, rep_id: str, expected_version: Optional[int] = None) -> WeeklyPlan:
        """Manager reopens an approved plan for editing (→ draft)."""
        return self._review(actor, rep_id, TRIGGER_REVOKE, expected_version)

    def _review(
        self,
        actor: Actor,
        rep_id: str,
        trigger: str,
        expected_version: Optional[int],
    ) -> WeeklyPlan:
        self._authorize(actor, trigger, rep_id)
        current = self.repository.fetch_plan(rep_id)
        self._check_state(current, trigger)

        target = PlanStatus(TRANSITION_RULES[trigger]["to"])
        if expected_version is None:
            expected_version = current.version
        stored = self.repository.set_plan_status(rep_id, target, expected_version=expected_version)
        logger.info(
            f"{actor.role.value} {actor.user_id} {trigger}: rep {rep_id} "
            f"{current.status.value} → {stored.status.value}"
        )
        return stored
