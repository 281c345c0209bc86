"""
file_store.py — Offline repository backed by files in a data directory

Reference data is read once from the CSV exports; plans are kept in
plans.json and rewritten after every successful write.
"""

import copy
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from repplan.config import (
    DEFAULT_DATA_DIR,
    load_clients,
    load_plans,
    load_regions,
    load_settings,
    load_visits,
    save_plans,
)
from repplan.errors import PersistenceFailure
from repplan.models import PlanStatus, WeeklyPlan
from repplan.store import InMemoryPlanRepository

logger = logging.getLogger(__name__)


class FilePlanRepository(InMemoryPlanRepository):

    def __init__(self, data_dir: Optional[Path] = None, today: Optional[date] = None):
        self.data_dir = Path(data_dir or DEFAULT_DATA_DIR)
        self.plans_path = self.data_dir / "plans.json"
        self.today = today
        super().__init__(
            clients=load_clients(
                self.data_dir / "doctors.csv",
                self.data_dir / "pharmacies.csv",
            ),
            regions=load_regions(self.data_dir / "regions.csv"),
            visits=load_visits(self.data_dir / "visits.csv"),
            plans=self._load_plans(),
            settings=load_settings(self.data_dir / "settings.json"),
        )
        logger.info(f"File repository ready at {self.data_dir} ({len(self.plans)} plans)")

    def _load_plans(self) -> Dict[str, WeeklyPlan]:
        try:
            return load_plans(self.plans_path)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed plan file {self.plans_path}: {e}")
            raise PersistenceFailure(f"Malformed plan file {self.plans_path}: {e}") from e

    def _flush(self, rep_id: str, previous: Optional[WeeklyPlan]) -> None:
        try:
            save_plans(self.plans, self.plans_path, today=self.today)
        except OSError as e:
            # keep memory and disk in step
            if previous is None:
                self.plans.pop(rep_id, None)
            else:
                self.plans[rep_id] = previous
            logger.error(f"Could not write {self.plans_path}: {e}")
            raise PersistenceFailure(f"Could not write {self.plans_path}: {e}") from e

    def persist_plan(self, rep_id, snapshot, expected_version=None) -> WeeklyPlan:
        previous = copy.deepcopy(self.plans.get(rep_id))
        stored = super().persist_plan(rep_id, snapshot, expected_version=expected_version)
        self._flush(rep_id, previous)
        return stored

    def set_plan_status(self, rep_id, status: PlanStatus, expected_version=None) -> WeeklyPlan:
        previous = copy.deepcopy(self.plans.get(rep_id))
        stored = super().set_plan_status(rep_id, status, expected_version=expected_version)
        self._flush(rep_id, previous)
        return stored
