"""
Approval workflow: submit (owner), approve/reject (project default approver),
and the approver's review queue.

Authorization is resolved before the state check, so an actor without rights
gets ``Forbidden`` regardless of where the entry sits in its lifecycle.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from timeledger.models.timesheet import TimesheetEntry
from timeledger.services import directory
from timeledger.services.authorization import is_default_approver, log_denied, owns_entry
from timeledger.services.entry_store import commit_or_rollback, require_description, validate_range
from timeledger.services.errors import Forbidden, NotFound, ValidationError
from timeledger.services.lifecycle import Action, PENDING_STATUSES, require_transition

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _lock_entry(db: Session, entry_id: uuid.UUID) -> TimesheetEntry:
    entry = (
        db.query(TimesheetEntry)
        .filter(TimesheetEntry.entry_id == entry_id)
        .with_for_update()
        .first()
    )
    if entry is None:
        raise NotFound("Entry not found.", entity="TimesheetEntry", entity_id=entry_id)
    return entry


def _authorize_review(db: Session, approver_id: uuid.UUID, entry: TimesheetEntry, operation: str) -> None:
    project = directory.require_project(db, entry.project_id)
    decision = is_default_approver(approver_id, project)
    if not decision:
        log_denied(decision, approver_id, entry.entry_id, operation)
        raise Forbidden(
            f"Not authorized to {operation} this timesheet entry.",
            actor_id=approver_id,
            entity_id=entry.entry_id,
            project_id=entry.project_id,
        )


# ──────────────────────────────────────────────
# Transitions
# ──────────────────────────────────────────────

def submit(db: Session, owner_id: uuid.UUID, entry_id: uuid.UUID) -> TimesheetEntry:
    try:
        entry = _lock_entry(db, entry_id)
        decision = owns_entry(owner_id, entry)
        if not decision:
            log_denied(decision, owner_id, entry_id, "submit")
            raise Forbidden(
                "Cannot submit another user's timesheet.",
                actor_id=owner_id,
                entity_id=entry_id,
            )
        new_status = require_transition(entry, Action.SUBMIT)
        require_description(entry.hours, entry.description)

        now = _now()
        entry.status = new_status.value
        entry.submitted_at = now
        entry.updated_at = now
    except Exception:
        db.rollback()
        raise

    commit_or_rollback(db)
    db.refresh(entry)
    logger.info("Entry %s submitted by %s", entry_id, owner_id)
    return entry


def approve(db: Session, approver_id: uuid.UUID, entry_id: uuid.UUID) -> TimesheetEntry:
    try:
        entry = _lock_entry(db, entry_id)
        _authorize_review(db, approver_id, entry, "approve")
        new_status = require_transition(entry, Action.APPROVE)

        now = _now()
        entry.status = new_status.value
        entry.approved_at = now
        entry.approved_by = approver_id
        entry.updated_at = now
    except Exception:
        db.rollback()
        raise

    commit_or_rollback(db)
    db.refresh(entry)
    logger.info("Entry %s approved by %s", entry_id, approver_id)
    return entry


def reject(db: Session, approver_id: uuid.UUID, entry_id: uuid.UUID, comment: str) -> TimesheetEntry:
    if not (comment or "").strip():
        raise ValidationError("Rejection comment is required.", entity_id=entry_id)

    try:
        entry = _lock_entry(db, entry_id)
        _authorize_review(db, approver_id, entry, "reject")
        new_status = require_transition(entry, Action.REJECT)

        entry.status = new_status.value
        entry.approver_comment = comment.strip()
        entry.approved_at = None
        entry.approved_by = None
        entry.updated_at = _now()
    except Exception:
        db.rollback()
        raise

    commit_or_rollback(db)
    db.refresh(entry)
    logger.info("Entry %s rejected by %s", entry_id, approver_id)
    return entry


# ──────────────────────────────────────────────
# Review queue
# ──────────────────────────────────────────────

def _pending_query(
    db: Session,
    from_date: date,
    to_date: date,
    project_id: Optional[uuid.UUID],
    user_id: Optional[uuid.UUID],
):
    validate_range(from_date, to_date)
    q = db.query(TimesheetEntry).filter(
        TimesheetEntry.status.in_([s.value for s in PENDING_STATUSES]),
        TimesheetEntry.work_date >= from_date,
        TimesheetEntry.work_date <= to_date,
    )
    if project_id:
        q = q.filter(TimesheetEntry.project_id == project_id)
    if user_id:
        q = q.filter(TimesheetEntry.user_id == user_id)
    return q


def list_pending(
    db: Session,
    approver_id: uuid.UUID,
    from_date: date,
    to_date: date,
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> list[TimesheetEntry]:
    """SUBMITTED and REJECTED entries on projects the approver owns.

    REJECTED entries stay visible so the approver can follow items waiting
    for the owner to resubmit.
    """
    q = _pending_query(db, from_date, to_date, project_id, user_id).filter(
        TimesheetEntry.project_id.in_(directory.projects_approved_by(approver_id))
    )
    return q.order_by(
        TimesheetEntry.work_date, TimesheetEntry.user_id, TimesheetEntry.project_id
    ).all()


def list_all_pending(
    db: Session,
    from_date: date,
    to_date: date,
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> list[TimesheetEntry]:
    q = _pending_query(db, from_date, to_date, project_id, user_id)
    return q.order_by(
        TimesheetEntry.work_date, TimesheetEntry.user_id, TimesheetEntry.project_id
    ).all()
