"""
Shared fixtures: one representative with two regions of doctors, a pharmacy,
and an in-memory repository around them.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from repplan.models import Actor, Doctor, Pharmacy, Region, Role
from repplan.store import InMemoryPlanRepository

REP_ID = "rep-1"

# Week of Sat 2026-10-10 .. Fri 2026-10-16
WEDNESDAY = datetime(2026, 10, 14, 10, 0)
THURSDAY = datetime(2026, 10, 15, 10, 0)


@pytest.fixture
def regions():
    return [Region(1, "Downtown"), Region(2, "North Hills")]


@pytest.fixture
def doctors():
    return [
        Doctor(id=1, name="Dr. Haddad", region_id=1, rep_id=REP_ID, specialization="Cardiology"),
        Doctor(id=2, name="Dr. Saleh", region_id=1, rep_id=REP_ID),
        Doctor(id=3, name="Dr. Khoury", region_id=2, rep_id=REP_ID),
        Doctor(id=4, name="Dr. Nasser", region_id=2, rep_id=REP_ID),
    ]


@pytest.fixture
def pharmacy():
    return Pharmacy(id=1, name="Central Pharmacy", region_id=1, rep_id=REP_ID)


@pytest.fixture
def repo(doctors, pharmacy, regions):
    return InMemoryPlanRepository(clients=doctors + [pharmacy], regions=regions)


@pytest.fixture
def rep():
    return Actor(user_id=REP_ID, role=Role.REPRESENTATIVE, name="Maya")


@pytest.fixture
def other_rep():
    return Actor(user_id="rep-2", role=Role.REPRESENTATIVE)


@pytest.fixture
def supervisor():
    return Actor(user_id="sup-1", role=Role.SUPERVISOR)


@pytest.fixture
def manager():
    return Actor(user_id="mgr-1", role=Role.MANAGER)
