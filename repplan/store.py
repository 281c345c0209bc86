"""
store.py — Repository interface for plans, clients, regions and visits

The engine never talks to a database directly; it goes through a
PlanRepository.  Implementations:

  InMemoryPlanRepository   dict-backed (tests, demos)
  FilePlanRepository       CSV reference data + JSON plan file (file_store.py)
  SupabaseClient           hosted PostgREST API (supabase_client.py)

persist_plan always stores status = pending.  set_plan_status changes the
status only.  Both accept expected_version: when given, the write succeeds
only if the stored version still matches, otherwise PlanConflict is raised.
Without it the write goes through and the version still advances.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from repplan.errors import PersistenceFailure, PlanConflict
from repplan.models import (
    Client,
    Doctor,
    PlanMap,
    PlanStatus,
    Region,
    SystemSettings,
    VisitRecord,
    WeeklyPlan,
)

logger = logging.getLogger(__name__)


class PlanRepository(ABC):

    @abstractmethod
    def fetch_plan(self, rep_id: str) -> WeeklyPlan:
        """Stored plan, or an empty draft when the rep has none yet."""

    @abstractmethod
    def persist_plan(
        self,
        rep_id: str,
        snapshot: PlanMap,
        expected_version: Optional[int] = None,
    ) -> WeeklyPlan:
        """Insert or update the plan content with status forced to pending."""

    @abstractmethod
    def set_plan_status(
        self,
        rep_id: str,
        status: PlanStatus,
        expected_version: Optional[int] = None,
    ) -> WeeklyPlan:
        """Change status only; plan content is untouched."""

    @abstractmethod
    def fetch_all_plans(self) -> Dict[str, WeeklyPlan]:
        """rep_id → plan for every representative that has one."""

    @abstractmethod
    def fetch_clients_for_rep(self, rep_id: str) -> List[Client]:
        """Doctors and pharmacies owned by the representative."""

    @abstractmethod
    def fetch_regions(self) -> List[Region]:
        pass

    @abstractmethod
    def fetch_visit_history(self, rep_id: Optional[str] = None) -> List[VisitRecord]:
        """Visits of one representative, or of everyone when rep_id is None."""

    def fetch_system_settings(self) -> SystemSettings:
        return SystemSettings()

    def fetch_doctors_for_rep(self, rep_id: str) -> List[Doctor]:
        return [c for c in self.fetch_clients_for_rep(rep_id) if isinstance(c, Doctor)]


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryPlanRepository(PlanRepository):
    """
    Dict-backed repository.  Records every write in `calls` so tests can
    assert which persistence operations ran.
    """

    def __init__(
        self,
        clients: Iterable[Client] = (),
        regions: Iterable[Region] = (),
        visits: Iterable[VisitRecord] = (),
        plans: Optional[Dict[str, WeeklyPlan]] = None,
        settings: Optional[SystemSettings] = None,
    ):
        self.clients: List[Client] = list(clients)
        self.regions: List[Region] = list(regions)
        self.visits: List[VisitRecord] = list(visits)
        self.plans: Dict[str, WeeklyPlan] = dict(plans or {})
        self.settings = settings or SystemSettings()
        self.calls: List[tuple] = []

    def _check_version(self, rep_id: str, expected_version: Optional[int]) -> None:
        if expected_version is None:
            return
        current = self.plans.get(rep_id)
        actual = current.version if current else 0   # an unsaved draft is v0
        if actual != expected_version:
            raise PlanConflict(rep_id, expected_version, actual)

    def fetch_plan(self, rep_id: str) -> WeeklyPlan:
        plan = self.plans.get(rep_id)
        return copy.deepcopy(plan) if plan else WeeklyPlan.empty()

    def persist_plan(self, rep_id, snapshot, expected_version=None) -> WeeklyPlan:
        current = self.plans.get(rep_id)
        self._check_version(rep_id, expected_version)
        self.calls.append(("persist_plan", rep_id, dict(snapshot)))

        stored = WeeklyPlan(
            plan=dict(snapshot),
            status=PlanStatus.PENDING,
            version=(current.version if current else 0) + 1,
        )
        self.plans[rep_id] = stored
        logger.info(f"Plan for rep {rep_id} stored (pending, v{stored.version})")
        return copy.deepcopy(stored)

    def set_plan_status(self, rep_id, status, expected_version=None) -> WeeklyPlan:
        current = self.plans.get(rep_id)
        if current is None:
            raise PersistenceFailure(f"No plan stored for rep {rep_id}")
        self._check_version(rep_id, expected_version)
        self.calls.append(("set_plan_status", rep_id, status))

        current.status = PlanStatus(status)
        current.version += 1
        logger.info(f"Plan for rep {rep_id} → {current.status.value} (v{current.version})")
        return copy.deepcopy(current)

    def fetch_all_plans(self) -> Dict[str, WeeklyPlan]:
        return copy.deepcopy(self.plans)

    def fetch_clients_for_rep(self, rep_id: str) -> List[Client]:
        return [c for c in self.clients if c.rep_id == rep_id]

    def fetch_regions(self) -> List[Region]:
        return list(self.regions)

    def fetch_visit_history(self, rep_id: Optional[str] = None) -> List[VisitRecord]:
        if rep_id is None:
            return list(self.visits)
        return [v for v in self.visits if v.rep_id == rep_id]

    def fetch_system_settings(self) -> SystemSettings:
        return self.settings
