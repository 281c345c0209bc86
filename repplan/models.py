"""
models.py — Data model for the weekly planning engine

Reference data:   Region, Client (Doctor | Pharmacy)
Plan data:        DayAssignment, WeeklyPlan, PlanStatus
Actors:           Role, Actor
Visit history:    VisitRecord, ClientAlert (derived, never persisted)
Settings:         SystemSettings (weekend weekdays + holidays)

Wire format of a stored plan (weekly_plans row):
    {"plan": {"6": {"regionId": 1, "doctorIds": [3, 7]}, "0": null, ...},
     "status": "pending", "version": 4}
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ClientKind(Enum):
    DOCTOR = "doctor"
    PHARMACY = "pharmacy"


class PlanStatus(Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class Role(Enum):
    REPRESENTATIVE = "representative"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"

    @classmethod
    def _missing_(cls, value):
        # profiles.role stores REP / SUPERVISOR / MANAGER
        if isinstance(value, str):
            key = value.strip().lower()
            if key == "rep":
                return cls.REPRESENTATIVE
            for member in cls:
                if member.value == key:
                    return member
        return None


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Region:
    id: int
    name: str


@dataclass(frozen=True)
class Client:
    """Shared base of the two client variants. Never instantiated directly."""
    id: int
    name: str
    region_id: int
    rep_id: str

    kind: ClassVar[ClientKind]

    @property
    def key(self) -> str:
        """Identifier unique across variants, e.g. 'doctor-12'."""
        return f"{self.kind.value}-{self.id}"


@dataclass(frozen=True)
class Doctor(Client):
    specialization: str = ""

    kind: ClassVar[ClientKind] = ClientKind.DOCTOR


@dataclass(frozen=True)
class Pharmacy(Client):
    kind: ClassVar[ClientKind] = ClientKind.PHARMACY

    @property
    def specialization(self) -> str:
        return "PHARMACY"


def client_from_record(record: Dict[str, Any], kind: ClientKind) -> Client:
    """Build a Doctor/Pharmacy from a row using either camelCase or snake_case keys."""
    base = dict(
        id=int(record["id"]),
        name=str(record.get("name", "")).strip(),
        region_id=int(record.get("region_id", record.get("regionId"))),
        rep_id=str(record.get("rep_id", record.get("repId", "")) or ""),
    )
    if kind is ClientKind.DOCTOR:
        return Doctor(specialization=str(record.get("specialization", "") or ""), **base)
    return Pharmacy(**base)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DayAssignment:
    region_id: int
    client_ids: Tuple[int, ...] = ()

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "DayAssignment":
        region_id = record.get("regionId", record.get("region_id"))
        ids = record.get("doctorIds", record.get("client_ids")) or []
        return cls(region_id=int(region_id), client_ids=tuple(int(i) for i in ids))

    def to_record(self) -> Dict[str, Any]:
        return {"regionId": self.region_id, "doctorIds": list(self.client_ids)}


PlanMap = Dict[int, Optional[DayAssignment]]   # day_index → assignment | None


@dataclass
class WeeklyPlan:
    plan: PlanMap = field(default_factory=dict)
    status: PlanStatus = PlanStatus.DRAFT
    version: int = 0

    @classmethod
    def empty(cls) -> "WeeklyPlan":
        return cls(plan={}, status=PlanStatus.DRAFT)

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "WeeklyPlan":
        """
        Parse a stored plan row.  Day keys outside 0..6 are kept so the
        validator can report them; non-numeric keys are dropped.
        """
        if not record:
            return cls.empty()

        plan: PlanMap = {}
        for raw_key, raw_day in (record.get("plan") or {}).items():
            try:
                day = int(raw_key)
            except (TypeError, ValueError):
                logger.warning(f"Dropping non-numeric plan day key {raw_key!r}")
                continue
            if isinstance(raw_day, dict):
                plan[day] = DayAssignment.from_record(raw_day)
            else:
                plan[day] = None

        return cls(
            plan=plan,
            status=PlanStatus(record.get("status") or PlanStatus.DRAFT.value),
            version=int(record.get("version") or 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "plan": {
                str(day): (assignment.to_record() if assignment else None)
                for day, assignment in sorted(self.plan.items())
            },
            "status": self.status.value,
            "version": self.version,
        }


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role
    name: str = ""


# ---------------------------------------------------------------------------
# Visit history
# ---------------------------------------------------------------------------

_REPORT_TYPES = {
    "DOCTOR_VISIT": ClientKind.DOCTOR,
    "PHARMACY_VISIT": ClientKind.PHARMACY,
    "doctor": ClientKind.DOCTOR,
    "pharmacy": ClientKind.PHARMACY,
}


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO date/datetime (trailing 'Z' accepted)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class VisitRecord:
    kind: ClientKind
    target_name: str
    date: datetime
    rep_id: Optional[str] = None
    client_id: Optional[int] = None
    rep_name: str = ""
    region_name: str = ""

    @property
    def day(self) -> date:
        return self.date.date()

    @classmethod
    def from_report(cls, row: Dict[str, Any]) -> "VisitRecord":
        """Parse a get_visit_reports row (or an equivalent CSV row)."""
        raw_type = row.get("type") or row.get("kind")
        kind = _REPORT_TYPES.get(raw_type)
        if kind is None:
            raise ValueError(f"Unknown visit type: {raw_type!r}")

        client_id = row.get("targetId", row.get("client_id"))
        rep_id = row.get("repId", row.get("rep_id"))
        return cls(
            kind=kind,
            target_name=str(row.get("targetName", row.get("target_name", ""))).strip(),
            date=parse_timestamp(row["date"]),
            rep_id=str(rep_id) if rep_id not in (None, "") else None,
            client_id=int(client_id) if client_id not in (None, "") else None,
            rep_name=str(row.get("repName", row.get("rep_name", "")) or ""),
            region_name=str(row.get("regionName", row.get("region_name", "")) or ""),
        )


@dataclass(frozen=True)
class ClientAlert:
    id: str
    name: str
    type: ClientKind
    rep_id: str
    rep_name: str
    region_name: str
    days_since_last_visit: Optional[int]   # None = never visited


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SystemSettings:
    weekends: Tuple[int, ...] = ()        # day indices, 0 = Sunday
    holidays: Tuple[date, ...] = ()

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "SystemSettings":
        if not record:
            return cls()
        weekends = tuple(sorted(int(d) for d in record.get("weekends") or []))
        holidays = tuple(sorted(parse_timestamp(h).date() for h in record.get("holidays") or []))
        return cls(weekends=weekends, holidays=holidays)

    def to_record(self) -> Dict[str, List[Any]]:
        return {
            "weekends": list(self.weekends),
            "holidays": [h.isoformat() for h in self.holidays],
        }
