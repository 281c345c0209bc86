"""
config.py — Data loaders and environment for the planning engine

Loads the reference data exported from the hosted database (regions,
doctors, pharmacies, visit reports) plus system settings and the plan file
used in offline mode.  Re-exports plan_config constants.

Expected files under data/ (override per call):
  regions.csv      id, name
  doctors.csv      id, name, region_id, rep_id, specialization
  pharmacies.csv   id, name, region_id, rep_id
  visits.csv       type, target_name, date, rep_id, client_id (optional),
                   rep_name, region_name
  settings.json    {"weekends": [5], "holidays": ["2026-10-06"]}
  plans.json       {rep_id: {"plan": {...}, "status": "...", "version": n}}

Remote access reads REPPLAN_SUPABASE_URL and REPPLAN_SUPABASE_KEY from the
environment (a .env file at the project root is honoured).
"""

import json
import logging
import math
import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from repplan.models import (
    Client,
    ClientKind,
    Region,
    SystemSettings,
    VisitRecord,
    WeeklyPlan,
    client_from_record,
)
from repplan.plan_config import (    # noqa: F401
    DAY_NAMES,
    OVERDUE_THRESHOLD_DAYS,
    PLANNING_DAYS,
    WEEK_START_DAY,
    WORK_WEEK_DAYS,
    get_config,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_REGIONS_PATH    = DEFAULT_DATA_DIR / "regions.csv"
DEFAULT_DOCTORS_PATH    = DEFAULT_DATA_DIR / "doctors.csv"
DEFAULT_PHARMACIES_PATH = DEFAULT_DATA_DIR / "pharmacies.csv"
DEFAULT_VISITS_PATH     = DEFAULT_DATA_DIR / "visits.csv"
DEFAULT_SETTINGS_PATH   = DEFAULT_DATA_DIR / "settings.json"
DEFAULT_PLANS_PATH      = DEFAULT_DATA_DIR / "plans.json"

ENV_SUPABASE_URL = "REPPLAN_SUPABASE_URL"
ENV_SUPABASE_KEY = "REPPLAN_SUPABASE_KEY"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _clean(value: Any) -> Any:
    """pandas NaN / blank → None; everything else unchanged."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _read_rows(path: Path) -> List[Dict[str, Any]]:
    import pandas as pd

    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    df = pd.read_csv(path, dtype={"rep_id": str})
    return [{k: _clean(v) for k, v in row.items()} for _, row in df.iterrows()]


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

def load_regions(regions_path: Optional[Path] = None) -> List[Region]:
    path = regions_path or DEFAULT_REGIONS_PATH
    regions = [Region(id=int(r["id"]), name=str(r["name"]).strip()) for r in _read_rows(path)]
    logger.info(f"Loaded {len(regions)} regions from {path}")
    return regions


def load_clients(
    doctors_path: Optional[Path] = None,
    pharmacies_path: Optional[Path] = None,
) -> List[Client]:
    """
    Doctors (required) followed by pharmacies (optional file).
    Rows with no region are skipped: such clients cannot be planned or
    reported by region.
    """
    sources: List[Tuple[Path, ClientKind, bool]] = [
        (doctors_path or DEFAULT_DOCTORS_PATH, ClientKind.DOCTOR, True),
        (pharmacies_path or DEFAULT_PHARMACIES_PATH, ClientKind.PHARMACY, False),
    ]

    clients: List[Client] = []
    for path, kind, required in sources:
        if not path.exists() and not required:
            logger.warning(f"{kind.value} file not found: {path}. Skipping.")
            continue
        skipped = 0
        for row in _read_rows(path):
            if row.get("region_id") is None:
                skipped += 1
                continue
            clients.append(client_from_record(row, kind))
        if skipped:
            logger.warning(f"Skipped {skipped} {kind.value} rows without region_id in {path}")

    logger.info(f"Loaded {len(clients)} clients")
    return clients


def load_visits(visits_path: Optional[Path] = None) -> List[VisitRecord]:
    """Visit reports; missing file → empty history."""
    path = visits_path or DEFAULT_VISITS_PATH
    if not path.exists():
        logger.warning(f"Visit history not found: {path}. Starting empty.")
        return []

    visits: List[VisitRecord] = []
    for row in _read_rows(path):
        if row.get("client_id") is not None:
            row["client_id"] = int(row["client_id"])
        visits.append(VisitRecord.from_report(row))
    logger.info(f"Loaded {len(visits)} visits from {path}")
    return visits


def load_settings(settings_path: Optional[Path] = None) -> SystemSettings:
    path = settings_path or DEFAULT_SETTINGS_PATH
    if not path.exists():
        logger.warning(f"Settings not found: {path}. Using no weekends/holidays.")
        return SystemSettings()
    with open(path) as f:
        return SystemSettings.from_record(json.load(f))


# ---------------------------------------------------------------------------
# Plans (offline mode)
# ---------------------------------------------------------------------------

def load_plans(plans_path: Optional[Path] = None) -> Dict[str, WeeklyPlan]:
    """Load the plan map from JSON. Returns empty dict if file missing."""
    path = plans_path or DEFAULT_PLANS_PATH
    if not path.exists():
        return {}
    with open(path) as f:
        data = json.load(f)
    return {
        rep_id: WeeklyPlan.from_record(record)
        for rep_id, record in data.items()
        if rep_id != "last_updated" and isinstance(record, dict)
    }


def save_plans(
    plans: Dict[str, WeeklyPlan],
    plans_path: Optional[Path] = None,
    today: Optional[date] = None,
) -> None:
    """Persist the plan map to JSON with a last_updated marker."""
    path = plans_path or DEFAULT_PLANS_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {rep_id: p.to_record() for rep_id, p in sorted(plans.items())}
    data["last_updated"] = (today or date.today()).isoformat()
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w") as f:
        json.dump(data, f, indent=2)
    tmp.replace(path)
    logger.info(f"Saved {len(plans)} plans to {path}")


# ---------------------------------------------------------------------------
# Remote settings
# ---------------------------------------------------------------------------

def get_remote_settings(env_file: Optional[Path] = None) -> Dict[str, str]:
    """URL and key for the hosted database. Raises ValueError when unusable."""
    load_dotenv(env_file or PROJECT_ROOT / ".env")
    url = (os.environ.get(ENV_SUPABASE_URL) or "").strip()
    key = (os.environ.get(ENV_SUPABASE_KEY) or "").strip()

    if not url or not key:
        raise ValueError(f"{ENV_SUPABASE_URL} and {ENV_SUPABASE_KEY} must both be set")
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"{ENV_SUPABASE_URL} must be an http(s) URL, got {url!r}")
    return {"url": url, "key": key}
