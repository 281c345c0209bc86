"""
plan_store.py — Working copy of one representative's weekly plan

PlanStore keeps the plan being edited apart from the persisted record until
it is submitted.  Mutations keep the plan invariants true at every step:

  - a doctor appears on at most one day of the week
  - every doctor listed under a day belongs to that day's region
  - only doctors (never pharmacies) can be planned

Guarded mutations that would break an invariant do nothing and return False.
An out-of-range day index is a caller bug and raises ValueError.

Usage:
  store = PlanStore(weekly_plan, doctors)
  store.set_day_region(6, region_id=1)
  store.add_client_to_day(6, doctor_id)
  snapshot = store.snapshot()
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from repplan.models import DayAssignment, Doctor, PlanMap, WeeklyPlan
from repplan.plan_config import WORK_WEEK_DAYS

logger = logging.getLogger(__name__)


class PlanStore:

    def __init__(
        self,
        plan: Union[WeeklyPlan, PlanMap, None] = None,
        doctors: Iterable[Doctor] = (),
    ):
        if isinstance(plan, WeeklyPlan):
            plan = plan.plan
        self._doctors: Dict[int, Doctor] = {d.id: d for d in doctors if isinstance(d, Doctor)}
        self._days: PlanMap = {day: None for day in WORK_WEEK_DAYS}
        self._dirty = False

        for day, assignment in (plan or {}).items():
            if day not in self._days:
                logger.warning(f"Ignoring assignment for unknown day index {day}")
                continue
            self._days[day] = assignment

    # -----------------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        """True once any mutation has changed the working copy."""
        return self._dirty

    def _check_day(self, day: int) -> None:
        if day not in self._days:
            raise ValueError(f"Day index {day} is not a work-week day {sorted(self._days)}")

    def day(self, day: int) -> Optional[DayAssignment]:
        self._check_day(day)
        return self._days[day]

    def assigned_client_ids(self) -> Set[int]:
        assigned: Set[int] = set()
        for assignment in self._days.values():
            if assignment:
                assigned.update(assignment.client_ids)
        return assigned

    def available_doctors(self, day: int) -> List[Doctor]:
        """Doctors of the day's region that are not planned on any day yet."""
        assignment = self.day(day)
        if assignment is None:
            return []
        taken = self.assigned_client_ids()
        return sorted(
            (d for d in self._doctors.values()
             if d.region_id == assignment.region_id and d.id not in taken),
            key=lambda d: d.name,
        )

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def set_day_region(self, day: int, region_id: Optional[int]) -> bool:
        """
        Set or clear the region of a day.

        None clears the day (and its doctors).  A different region starts the
        day with no doctors; the same region leaves the doctors in place.
        """
        self._check_day(day)
        current = self._days[day]

        if region_id is None:
            if current is None:
                return False
            self._days[day] = None
        else:
            if current is not None and current.region_id == region_id:
                return False
            self._days[day] = DayAssignment(region_id=region_id, client_ids=())

        self._dirty = True
        logger.debug(f"Day {day} region → {region_id}")
        return True

    def add_client_to_day(self, day: int, client_id: int) -> bool:
        """
        Plan a doctor on a day.  Returns False (no change) when the doctor is
        already planned this week, is unknown, or belongs to another region.
        """
        self._check_day(day)
        if client_id in self.assigned_client_ids():
            logger.debug(f"Doctor {client_id} already planned this week")
            return False

        doctor = self._doctors.get(client_id)
        if doctor is None:
            logger.debug(f"Doctor {client_id} unknown; region cannot be inferred")
            return False

        current = self._days[day]
        if current is None:
            self._days[day] = DayAssignment(region_id=doctor.region_id, client_ids=(client_id,))
        elif current.region_id != doctor.region_id:
            logger.debug(
                f"Doctor {client_id} is in region {doctor.region_id}, "
                f"day {day} is planned for region {current.region_id}"
            )
            return False
        else:
            self._days[day] = DayAssignment(
                region_id=current.region_id,
                client_ids=current.client_ids + (client_id,),
            )

        self._dirty = True
        return True

    def remove_client_from_day(self, day: int, client_id: int) -> bool:
        self._check_day(day)
        current = self._days[day]
        if current is None or client_id not in current.client_ids:
            return False
        self._days[day] = DayAssignment(
            region_id=current.region_id,
            client_ids=tuple(c for c in current.client_ids if c != client_id),
        )
        self._dirty = True
        return True

    # -----------------------------------------------------------------------
    # Snapshot
    # -----------------------------------------------------------------------

    def snapshot(self) -> PlanMap:
        """All seven work-week days, None where nothing is planned."""
        return {day: self._days[day] for day in WORK_WEEK_DAYS}
