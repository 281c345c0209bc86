"""
Tests for the plan lifecycle: legal transitions, role checks before any
write, validation gate, editability and optimistic concurrency
"""

import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from repplan.errors import (
    InvalidTransition,
    PermissionDenied,
    PlanConflict,
    ValidationFailure,
)
from repplan.lifecycle import PlanLifecycle, allowed_from, is_plan_editable, pending_plans
from repplan.models import Actor, DayAssignment, PlanStatus, Role, WeeklyPlan
from repplan.validator import ViolationType

from conftest import REP_ID, THURSDAY, WEDNESDAY

TRIGGERS = ("submit", "approve", "reject", "revoke")

# (trigger, role, from status) → resulting status, outside the planning window
LEGAL_TRANSITIONS = {
    ("submit", Role.REPRESENTATIVE, PlanStatus.DRAFT):    PlanStatus.PENDING,
    ("submit", Role.REPRESENTATIVE, PlanStatus.REJECTED): PlanStatus.PENDING,
    ("submit", Role.REPRESENTATIVE, PlanStatus.PENDING):  PlanStatus.PENDING,
    ("approve", Role.MANAGER, PlanStatus.PENDING):        PlanStatus.APPROVED,
    ("approve", Role.SUPERVISOR, PlanStatus.PENDING):     PlanStatus.APPROVED,
    ("reject", Role.MANAGER, PlanStatus.PENDING):         PlanStatus.REJECTED,
    ("reject", Role.SUPERVISOR, PlanStatus.PENDING):      PlanStatus.REJECTED,
    ("revoke", Role.MANAGER, PlanStatus.APPROVED):        PlanStatus.DRAFT,
}


@pytest.fixture
def lifecycle(repo):
    return PlanLifecycle(repo)


@pytest.fixture
def snapshot():
    return {6: DayAssignment(1, (1, 2)), 0: DayAssignment(2, (3,))}


def _store_plan(repo, status, version=1):
    repo.plans[REP_ID] = WeeklyPlan(plan={6: DayAssignment(1, (1,))}, status=status, version=version)


def _actor_for(role):
    user_id = REP_ID if role is Role.REPRESENTATIVE else f"{role.value}-1"
    return Actor(user_id=user_id, role=role)


def _fire(lifecycle, trigger, actor, snapshot, now=WEDNESDAY):
    if trigger == "submit":
        return lifecycle.submit(actor, REP_ID, snapshot, now=now)
    return getattr(lifecycle, trigger)(actor, REP_ID)


class TestSubmit:
    """Test representative submission"""

    def test_submit_from_draft(self, lifecycle, repo, rep, snapshot):
        """First submit stores the snapshot as pending v1"""
        stored = lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY)
        assert stored.status is PlanStatus.PENDING
        assert stored.version == 1
        assert repo.calls == [("persist_plan", REP_ID, snapshot)]

    def test_resubmit_after_rejection(self, lifecycle, repo, rep, snapshot):
        """Rejected plan goes back to pending"""
        _store_plan(repo, PlanStatus.REJECTED)
        assert lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY).status is PlanStatus.PENDING

    def test_resubmit_pending(self, lifecycle, repo, rep, snapshot):
        """Pending plan can be edited and resubmitted"""
        _store_plan(repo, PlanStatus.PENDING, version=2)
        stored = lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY)
        assert stored.version == 3

    def test_approved_locked_outside_planning_window(self, lifecycle, repo, rep, snapshot):
        """Approved plan cannot be resubmitted mid-week"""
        _store_plan(repo, PlanStatus.APPROVED)
        with pytest.raises(InvalidTransition):
            lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY)
        assert repo.calls == []
        assert repo.plans[REP_ID].status is PlanStatus.APPROVED

    def test_approved_editable_inside_planning_window(self, lifecycle, repo, rep, snapshot):
        """Approved plan reopens on Thursday"""
        _store_plan(repo, PlanStatus.APPROVED)
        stored = lifecycle.submit(rep, REP_ID, snapshot, now=THURSDAY)
        assert stored.status is PlanStatus.PENDING

    def test_other_rep_cannot_submit(self, lifecycle, repo, other_rep, snapshot):
        """Only the owner may submit"""
        with pytest.raises(PermissionDenied):
            lifecycle.submit(other_rep, REP_ID, snapshot, now=WEDNESDAY)
        assert repo.calls == []

    def test_manager_cannot_submit(self, lifecycle, repo, manager, snapshot):
        """Managers do not submit plans"""
        with pytest.raises(PermissionDenied):
            lifecycle.submit(manager, REP_ID, snapshot, now=WEDNESDAY)
        assert repo.calls == []

    def test_invalid_plan_not_persisted(self, lifecycle, repo, rep):
        """Violations block the write and are carried on the error"""
        bad = {6: DayAssignment(1, (1, 3))}
        with pytest.raises(ValidationFailure) as exc:
            lifecycle.submit(rep, REP_ID, bad, now=WEDNESDAY)
        assert [v.violation_type for v in exc.value.violations] == [ViolationType.REGION_MISMATCH]
        assert repo.calls == []
        assert REP_ID not in repo.plans

    def test_stale_version_conflicts(self, lifecycle, repo, rep, snapshot):
        """Editing an old version raises PlanConflict and writes nothing"""
        _store_plan(repo, PlanStatus.PENDING, version=4)
        with pytest.raises(PlanConflict) as exc:
            lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY, expected_version=3)
        assert exc.value.actual_version == 4
        assert repo.plans[REP_ID].version == 4
        assert repo.calls == []

    def test_first_save_expects_version_zero(self, lifecycle, rep, snapshot):
        """Unsaved draft counts as version 0"""
        stored = lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY, expected_version=0)
        assert stored.version == 1

    def test_submit_without_version_pins_fetched_version(self, lifecycle, repo, rep, snapshot, monkeypatch):
        """The write is conditioned on the version the state check saw"""
        _store_plan(repo, PlanStatus.PENDING, version=5)
        spy = MagicMock(wraps=repo.persist_plan)
        monkeypatch.setattr(repo, "persist_plan", spy)
        lifecycle.submit(rep, REP_ID, snapshot, now=WEDNESDAY)
        assert spy.call_args.kwargs["expected_version"] == 5


class TestReview:
    """Test manager / supervisor decisions"""

    def test_manager_approves(self, lifecycle, repo, manager):
        """Pending → approved"""
        _store_plan(repo, PlanStatus.PENDING)
        assert lifecycle.approve(manager, REP_ID).status is PlanStatus.APPROVED
        assert repo.calls == [("set_plan_status", REP_ID, PlanStatus.APPROVED)]

    def test_supervisor_rejects(self, lifecycle, repo, supervisor):
        """Pending → rejected"""
        _store_plan(repo, PlanStatus.PENDING)
        assert lifecycle.reject(supervisor, REP_ID).status is PlanStatus.REJECTED

    def test_reject_keeps_content(self, lifecycle, repo, manager):
        """Status change leaves assignments untouched"""
        _store_plan(repo, PlanStatus.PENDING)
        stored = lifecycle.reject(manager, REP_ID)
        assert stored.plan == {6: DayAssignment(1, (1,))}

    def test_manager_revokes(self, lifecycle, repo, manager):
        """Approved → draft"""
        _store_plan(repo, PlanStatus.APPROVED)
        assert lifecycle.revoke(manager, REP_ID).status is PlanStatus.DRAFT

    def test_approve_missing_plan(self, lifecycle, repo, manager):
        """No stored plan reads as draft and cannot be approved"""
        with pytest.raises(InvalidTransition):
            lifecycle.approve(manager, REP_ID)
        assert repo.calls == []

    def test_review_with_stale_version(self, lifecycle, repo, manager):
        """Stale decision raises PlanConflict and leaves the status"""
        _store_plan(repo, PlanStatus.PENDING, version=2)
        with pytest.raises(PlanConflict):
            lifecycle.approve(manager, REP_ID, expected_version=1)
        assert repo.plans[REP_ID].status is PlanStatus.PENDING
        assert repo.calls == []

    def test_review_without_version_pins_fetched_version(self, lifecycle, repo, manager, monkeypatch):
        """Approval is conditioned on the version the state check saw"""
        _store_plan(repo, PlanStatus.PENDING, version=3)
        spy = MagicMock(wraps=repo.set_plan_status)
        monkeypatch.setattr(repo, "set_plan_status", spy)
        assert lifecycle.approve(manager, REP_ID).version == 4
        assert spy.call_args.kwargs["expected_version"] == 3


class TestTransitionMatrix:
    """Every (status, role, trigger) combination outside the table is refused"""

    @pytest.mark.parametrize("trigger", TRIGGERS)
    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("status", list(PlanStatus))
    def test_transition(self, lifecycle, repo, snapshot, status, role, trigger):
        """Legal moves land on the target status; all others write nothing"""
        _store_plan(repo, status)
        actor = _actor_for(role)
        expected = LEGAL_TRANSITIONS.get((trigger, role, status))

        if expected is None:
            with pytest.raises((PermissionDenied, InvalidTransition)):
                _fire(lifecycle, trigger, actor, snapshot)
            assert repo.calls == []
            assert repo.plans[REP_ID].status is status
            assert repo.plans[REP_ID].version == 1
        else:
            assert _fire(lifecycle, trigger, actor, snapshot).status is expected
            assert len(repo.calls) == 1
            assert repo.plans[REP_ID].version == 2

    @pytest.mark.parametrize("role", [Role.MANAGER, Role.SUPERVISOR])
    def test_reviewers_never_submit_in_window(self, lifecycle, repo, snapshot, role):
        """Planning window does not widen submit beyond the owner"""
        _store_plan(repo, PlanStatus.APPROVED)
        with pytest.raises(PermissionDenied):
            _fire(lifecycle, "submit", _actor_for(role), snapshot, now=THURSDAY)
        assert repo.calls == []


class TestRules:
    """Test editability and helper rules"""

    @pytest.mark.parametrize("status, now, expected", [
        (PlanStatus.DRAFT, WEDNESDAY, True),
        (PlanStatus.PENDING, WEDNESDAY, True),
        (PlanStatus.REJECTED, WEDNESDAY, True),
        (PlanStatus.APPROVED, WEDNESDAY, False),
        (PlanStatus.APPROVED, THURSDAY, True),
        (PlanStatus.APPROVED, datetime(2026, 10, 16, 18, 0), True),
    ])
    def test_is_plan_editable(self, status, now, expected):
        """Only an approved plan outside the window is read-only"""
        assert is_plan_editable(status, now) is expected

    def test_allowed_from_submit(self):
        """Approved joins submit's sources only in the window"""
        assert PlanStatus.APPROVED not in allowed_from("submit", WEDNESDAY)
        assert PlanStatus.APPROVED in allowed_from("submit", THURSDAY)

    def test_can_transition(self, lifecycle, rep, manager, supervisor):
        """Dry check mirrors role and status rules"""
        pending = WeeklyPlan(status=PlanStatus.PENDING)
        approved = WeeklyPlan(status=PlanStatus.APPROVED)
        assert lifecycle.can_transition(manager, REP_ID, pending, "approve") is True
        assert lifecycle.can_transition(rep, REP_ID, pending, "approve") is False
        assert lifecycle.can_transition(supervisor, REP_ID, approved, "revoke") is False
        assert lifecycle.can_transition(rep, REP_ID, approved, "submit", WEDNESDAY) is False
        assert lifecycle.can_transition(rep, REP_ID, approved, "submit", THURSDAY) is True

    def test_pending_plans_queue(self):
        """Review queue lists pending plans sorted by rep"""
        plans = {
            "rep-b": WeeklyPlan(status=PlanStatus.PENDING),
            "rep-a": WeeklyPlan(status=PlanStatus.PENDING),
            "rep-c": WeeklyPlan(status=PlanStatus.APPROVED),
        }
        assert [rep_id for rep_id, _ in pending_plans(plans)] == ["rep-a", "rep-b"]

    def test_wire_role_names(self):
        """Stored role / status strings parse case-insensitively"""
        assert Role("REP") is Role.REPRESENTATIVE
        assert Role("MANAGER") is Role.MANAGER
        assert PlanStatus("Approved") is PlanStatus.APPROVED
