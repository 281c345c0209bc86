"""
session.py — One representative's plan-editing session

Data flow:
  repository.fetch_plan / fetch_doctors_for_rep / fetch_regions
    → week window for `now` (current week, or next week while planning)
    → PlanStore working copy
    → PlanLifecycle.submit (validator gate, then persist_plan)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from repplan.lifecycle import PlanLifecycle, is_plan_editable
from repplan.models import Actor, Doctor, Region, WeeklyPlan
from repplan.plan_store import PlanStore
from repplan.store import PlanRepository
from repplan.validator import PlanValidator, PlanViolation
from repplan.week_window import WeekWindow, get_plan_week, is_planning_window

logger = logging.getLogger(__name__)


@dataclass
class PlanSession:
    rep_id: str
    now: datetime
    plan: WeeklyPlan
    week: WeekWindow
    planning_mode: bool
    editable: bool
    store: PlanStore
    doctors: List[Doctor] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)

    def day_dates(self) -> Dict[int, date]:
        """Plan day index → calendar date within the session's week."""
        return {day: self.week.date_for_day(day) for day in self.store.snapshot()}

    def violations(self) -> List[PlanViolation]:
        return PlanValidator(self.doctors).validate(self.store.snapshot())

    def submit(self, lifecycle: PlanLifecycle, actor: Actor) -> WeeklyPlan:
        """Submit the working copy; on success the session adopts the stored plan."""
        stored = lifecycle.submit(
            actor,
            self.rep_id,
            self.store.snapshot(),
            now=self.now,
            expected_version=self.plan.version,
        )
        self.plan = stored
        self.editable = is_plan_editable(stored.status, self.now)
        self.store = PlanStore(stored, self.doctors)
        return stored


def open_session(
    repository: PlanRepository,
    rep_id: str,
    now: datetime,
    regions: Optional[List[Region]] = None,
) -> PlanSession:
    plan = repository.fetch_plan(rep_id)
    doctors = repository.fetch_doctors_for_rep(rep_id)
    if regions is None:
        regions = repository.fetch_regions()

    session = PlanSession(
        rep_id=rep_id,
        now=now,
        plan=plan,
        week=get_plan_week(now),
        planning_mode=is_planning_window(now),
        editable=is_plan_editable(plan.status, now),
        store=PlanStore(plan, doctors),
        doctors=doctors,
        regions=regions,
    )
    logger.info(
        f"Session for rep {rep_id}: week {session.week.week_start} "
        f"status={plan.status.value} editable={session.editable} "
        f"planning={session.planning_mode}"
    )
    return session
