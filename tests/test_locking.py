"""Bulk lock/unlock: atomic conditional update, preview, audit trail, guards."""

import uuid
from datetime import date, timedelta

import pytest

from timeledger.models.audit_log import AuditLog
from timeledger.models.timesheet import TimesheetEntry, TimesheetStatus
from timeledger.services import locking
from timeledger.services.audit import list_actions
from timeledger.services.errors import Forbidden, NotFound, ValidationError
from timeledger.services.locking import LockFilter

WEEK_START = date(2024, 1, 1)
WEEK_END = date(2024, 1, 7)


@pytest.fixture
def approved_week(world, make_entry):
    """Ten APPROVED entries on project_a spread over the first week of 2024."""
    entries = []
    for i in range(10):
        user = world.employee if i % 2 == 0 else world.employee2
        entries.append(
            make_entry(user, world.project_a, WEEK_START + timedelta(days=i % 7), "4", status=TimesheetStatus.APPROVED)
        )
    return entries


def _statuses(db, project):
    db.expire_all()
    return [
        e.status
        for e in db.query(TimesheetEntry).filter(TimesheetEntry.project_id == project.project_id).all()
    ]


def test_lock_approved_week(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)

    result = locking.lock(db, flt, preview=False, actor_id=world.approver.user_id)

    assert result.affected_count == 10
    assert result.preview is False
    assert _statuses(db, world.project_a) == ["LOCKED"] * 10

    audits = list_actions(db, action="LOCK")
    assert len(audits) == 1
    before = audits[0].before_json
    assert before["from"] == "2024-01-01"
    assert before["to"] == "2024-01-07"
    assert before["project_id"] == str(world.project_a.project_id)
    assert before["user_id"] is None
    assert before["expected"] == 10
    assert audits[0].after_json == {"locked": 10}
    assert audits[0].actor_id == world.approver.user_id


def test_lock_is_idempotent(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)
    locking.lock(db, flt, False, world.admin.user_id)

    again = locking.lock(db, flt, False, world.admin.user_id)

    assert again.affected_count == 0
    assert db.query(AuditLog).count() == 2


def test_preview_matches_commit_and_changes_nothing(db, world, approved_week, make_entry):
    make_entry(world.employee, world.project_a, date(2024, 1, 3), "1", status=TimesheetStatus.SUBMITTED)
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id, user_id=world.employee.user_id)

    preview = locking.lock(db, flt, True, world.admin.user_id)
    assert preview.preview is True
    assert "LOCKED" not in _statuses(db, world.project_a)
    assert db.query(AuditLog).count() == 0

    committed = locking.lock(db, flt, False, world.admin.user_id)
    assert committed.affected_count == preview.affected_count == 5


def test_lock_only_touches_approved_rows(db, world, make_entry):
    for status in TimesheetStatus:
        make_entry(world.employee, world.project_a, date(2024, 1, 2), "1", status=status)

    result = locking.lock(db, LockFilter(WEEK_START, WEEK_END), False, world.admin.user_id)

    assert result.affected_count == 1
    assert sorted(_statuses(db, world.project_a)) == ["DRAFT", "LOCKED", "LOCKED", "REJECTED", "SUBMITTED"]


def test_lock_respects_range_bounds(db, world, make_entry):
    make_entry(world.employee, world.project_a, date(2023, 12, 31), status=TimesheetStatus.APPROVED)
    make_entry(world.employee, world.project_a, date(2024, 1, 8), status=TimesheetStatus.APPROVED)
    make_entry(world.employee, world.project_a, WEEK_END, status=TimesheetStatus.APPROVED)

    result = locking.lock(db, LockFilter(WEEK_START, WEEK_END), False, world.admin.user_id)
    assert result.affected_count == 1


def test_unlock_round_trip(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)
    locking.lock(db, flt, False, world.approver.user_id)

    result = locking.unlock(db, flt, False, "  payroll correction ", world.approver.user_id)

    assert result.affected_count == 10
    assert _statuses(db, world.project_a) == ["APPROVED"] * 10
    audit = list_actions(db, action="UNLOCK")[0]
    assert audit.before_json["reason"] == "payroll correction"
    assert audit.after_json == {"unlocked": 10}


def test_unlock_only_touches_locked_rows(db, world, make_entry):
    for offset, status in enumerate(TimesheetStatus):
        make_entry(world.employee, world.project_a, WEEK_START + timedelta(days=offset), "2", status=status)

    result = locking.unlock(db, LockFilter(WEEK_START, WEEK_END), False, "reopen", world.admin.user_id)

    assert result.affected_count == 1
    assert sorted(_statuses(db, world.project_a)) == ["APPROVED", "APPROVED", "DRAFT", "REJECTED", "SUBMITTED"]


def test_second_unlock_is_a_no_op(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)
    locking.lock(db, flt, False, world.approver.user_id)

    assert locking.unlock(db, flt, False, "reopen", world.approver.user_id).affected_count == 10
    assert locking.unlock(db, flt, False, "reopen", world.approver.user_id).affected_count == 0
    assert _statuses(db, world.project_a) == ["APPROVED"] * 10


def test_unlock_preview_matches_commit(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)
    locking.lock(db, flt, False, world.approver.user_id)

    preview = locking.unlock(db, flt, True, "reopen", world.approver.user_id)
    assert preview.preview is True
    assert _statuses(db, world.project_a) == ["LOCKED"] * 10
    assert list_actions(db, action="UNLOCK") == []

    committed = locking.unlock(db, flt, False, "reopen", world.approver.user_id)
    assert preview.affected_count == committed.affected_count == 10


def test_unlock_requires_reason(db, world, approved_week):
    flt = LockFilter(WEEK_START, WEEK_END)
    with pytest.raises(ValidationError):
        locking.unlock(db, flt, False, "  ", world.admin.user_id)


@pytest.mark.parametrize(
    "flt",
    [
        LockFilter(date(2024, 1, 7), date(2024, 1, 1)),
        LockFilter(date(2024, 1, 1), date(2024, 3, 31)),
    ],
)
def test_range_guards(db, world, flt):
    with pytest.raises(ValidationError):
        locking.lock(db, flt, True, world.admin.user_id)


def test_range_at_the_limit_is_accepted(db, world):
    flt = LockFilter(date(2024, 1, 1), date(2024, 1, 1) + timedelta(days=62))
    assert locking.lock(db, flt, True, world.admin.user_id).affected_count == 0


def test_lock_authorization(db, world, approved_week):
    own = LockFilter(WEEK_START, WEEK_END, project_id=world.project_a.project_id)
    everything = LockFilter(WEEK_START, WEEK_END)

    with pytest.raises(Forbidden):
        locking.lock(db, own, False, world.employee.user_id)
    with pytest.raises(Forbidden):
        locking.lock(db, own, False, world.approver2.user_id)
    with pytest.raises(Forbidden):
        locking.lock(db, everything, False, world.approver.user_id)
    with pytest.raises(Forbidden):
        locking.lock(db, own, False, None)

    assert "LOCKED" not in _statuses(db, world.project_a)
    assert db.query(AuditLog).count() == 0


def test_lock_unknown_project(db, world):
    with pytest.raises(NotFound):
        locking.lock(db, LockFilter(WEEK_START, WEEK_END, project_id=uuid.uuid4()), True, world.admin.user_id)


def test_failed_audit_rolls_back_the_update(db, world, approved_week, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(locking, "log_action", boom)

    with pytest.raises(RuntimeError):
        locking.lock(db, LockFilter(WEEK_START, WEEK_END), False, world.admin.user_id)

    assert _statuses(db, world.project_a) == ["APPROVED"] * 10
