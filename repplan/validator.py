"""
validator.py — Invariant checks for a weekly plan snapshot

PlanStore already keeps these invariants while editing; the validator is the
explicit pass run before submission and after loading a plan from storage.

Violation types:
  - UNKNOWN_DAY:       plan key outside the seven work-week day indices
  - DUPLICATE_CLIENT:  same doctor planned on more than one day
  - UNKNOWN_CLIENT:    doctor id not in the representative's doctor list
  - REGION_MISMATCH:   doctor's region differs from the day's region

Usage:
  validator = PlanValidator(doctors)
  violations = validator.validate(store.snapshot())
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from repplan.models import Doctor, PlanMap
from repplan.plan_config import DAY_NAMES, WORK_WEEK_DAYS

logger = logging.getLogger(__name__)


class ViolationType(Enum):
    UNKNOWN_DAY = "unknown_day"
    DUPLICATE_CLIENT = "duplicate_client"
    UNKNOWN_CLIENT = "unknown_client"
    REGION_MISMATCH = "region_mismatch"


@dataclass
class PlanViolation:
    violation_type: ViolationType
    description: str
    day: Optional[int] = None
    client_id: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [self.violation_type.name]
        if self.day is not None:
            parts.append(f"day={DAY_NAMES.get(self.day, self.day)}")
        if self.client_id is not None:
            parts.append(f"client={self.client_id}")
        parts.append(f"→ {self.description}")
        return " | ".join(parts)


class PlanValidator:

    def __init__(self, doctors: Iterable[Doctor] = ()):
        self._doctors: Dict[int, Doctor] = {d.id: d for d in doctors if isinstance(d, Doctor)}

    # -----------------------------------------------------------------------
    # Individual checks
    # -----------------------------------------------------------------------

    def check_days(self, snapshot: PlanMap) -> List[PlanViolation]:
        return [
            PlanViolation(
                violation_type=ViolationType.UNKNOWN_DAY,
                description=f"Day index {day} is not a work-week day",
                day=day,
            )
            for day in snapshot
            if day not in WORK_WEEK_DAYS
        ]

    def check_duplicates(self, snapshot: PlanMap) -> List[PlanViolation]:
        violations = []
        first_day: Dict[int, int] = {}   # client_id → first day it appears on
        for day in sorted(snapshot, key=_week_order):
            assignment = snapshot[day]
            if not assignment:
                continue
            for client_id in assignment.client_ids:
                if client_id in first_day:
                    violations.append(PlanViolation(
                        violation_type=ViolationType.DUPLICATE_CLIENT,
                        description=(
                            f"Doctor {client_id} planned on both "
                            f"{DAY_NAMES.get(first_day[client_id], first_day[client_id])} "
                            f"and {DAY_NAMES.get(day, day)}"
                        ),
                        day=day,
                        client_id=client_id,
                        details={"first_day": first_day[client_id]},
                    ))
                else:
                    first_day[client_id] = day
        return violations

    def check_clients(self, snapshot: PlanMap) -> List[PlanViolation]:
        """Unknown doctors and region mismatches."""
        violations = []
        for day in sorted(snapshot, key=_week_order):
            assignment = snapshot[day]
            if not assignment:
                continue
            for client_id in assignment.client_ids:
                doctor = self._doctors.get(client_id)
                if doctor is None:
                    violations.append(PlanViolation(
                        violation_type=ViolationType.UNKNOWN_CLIENT,
                        description=f"Doctor {client_id} is not in this representative's list",
                        day=day,
                        client_id=client_id,
                    ))
                elif doctor.region_id != assignment.region_id:
                    violations.append(PlanViolation(
                        violation_type=ViolationType.REGION_MISMATCH,
                        description=(
                            f"{doctor.name} belongs to region {doctor.region_id}, "
                            f"day is planned for region {assignment.region_id}"
                        ),
                        day=day,
                        client_id=client_id,
                        details={
                            "client_region": doctor.region_id,
                            "day_region": assignment.region_id,
                        },
                    ))
        return violations

    # -----------------------------------------------------------------------
    # Run all checks
    # -----------------------------------------------------------------------

    def validate(self, snapshot: PlanMap) -> List[PlanViolation]:
        violations: List[PlanViolation] = []
        violations.extend(self.check_days(snapshot))
        violations.extend(self.check_duplicates(snapshot))
        violations.extend(self.check_clients(snapshot))
        if violations:
            logger.info(f"Plan validation found {len(violations)} violation(s)")
        return violations


def _week_order(day: int) -> int:
    """Sort key: work-week position, unknown days last."""
    try:
        return WORK_WEEK_DAYS.index(day)
    except ValueError:
        return len(WORK_WEEK_DAYS) + day
