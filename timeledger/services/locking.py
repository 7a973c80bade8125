"""
Bulk lock/unlock of timesheet entries over a date range.

Both directions run as one conditional UPDATE:

    UPDATE timesheet_entries
       SET status = :target, updated_at = :now
     WHERE work_date BETWEEN :from AND :to
       [AND project_id = :project_id] [AND user_id = :user_id]
       AND status IN (:source)

followed by a single audit row, committed together. Rows that changed status
between a preview and the commit are simply not matched; there is no
read-then-write loop to race against.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func as sa_func, update
from sqlalchemy.orm import Session

from timeledger import config
from timeledger.models.timesheet import TimesheetEntry
from timeledger.models.user import User
from timeledger.services import directory
from timeledger.services.audit import log_action
from timeledger.services.authorization import log_denied, may_transition_range
from timeledger.services.errors import Forbidden, ValidationError
from timeledger.services.lifecycle import Action, source_statuses, target_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockFilter:
    from_date: date
    to_date: date
    project_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None

    def validate(self) -> None:
        if self.from_date > self.to_date:
            raise ValidationError(
                "from must be on or before to.", from_date=self.from_date, to_date=self.to_date
            )
        span = (self.to_date - self.from_date).days
        if span > config.MAX_LOCK_RANGE_DAYS:
            raise ValidationError(
                f"Range too large (max {config.MAX_LOCK_RANGE_DAYS} days).",
                from_date=self.from_date,
                to_date=self.to_date,
            )

    def clauses(self) -> list:
        out = [
            TimesheetEntry.work_date >= self.from_date,
            TimesheetEntry.work_date <= self.to_date,
        ]
        if self.project_id:
            out.append(TimesheetEntry.project_id == self.project_id)
        if self.user_id:
            out.append(TimesheetEntry.user_id == self.user_id)
        return out

    def as_dict(self) -> dict:
        return {
            "from": self.from_date.isoformat(),
            "to": self.to_date.isoformat(),
            "project_id": str(self.project_id) if self.project_id else None,
            "user_id": str(self.user_id) if self.user_id else None,
        }


@dataclass(frozen=True)
class LockResult:
    filter: LockFilter
    preview: bool
    affected_count: int


def _status_predicate(action: Action):
    return TimesheetEntry.status.in_(sorted(s.value for s in source_statuses(action)))


def count_matching(db: Session, flt: LockFilter, action: Action) -> int:
    """Rows the given bulk action would transition right now."""
    return (
        db.query(sa_func.count(TimesheetEntry.entry_id))
        .filter(*flt.clauses(), _status_predicate(action))
        .scalar()
    ) or 0


def authorize_range(db: Session, actor_id: Optional[uuid.UUID], flt: LockFilter, operation: str) -> None:
    actor = None
    if actor_id is not None:
        actor = db.query(User).filter(User.user_id == actor_id).first()
    project = directory.require_project(db, flt.project_id) if flt.project_id else None
    decision = may_transition_range(actor, project)
    if not decision:
        log_denied(decision, actor_id, flt.project_id or "all projects", operation)
        raise Forbidden(decision.reason, actor_id=actor_id, project_id=flt.project_id)


def _transition_range(
    db: Session,
    flt: LockFilter,
    action: Action,
    actor_id: Optional[uuid.UUID],
    audit_extra: dict,
    result_key: str,
) -> int:
    now = datetime.now(timezone.utc)
    stmt = (
        update(TimesheetEntry)
        .where(*flt.clauses(), _status_predicate(action))
        .values(status=target_status(action).value, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    try:
        expected = count_matching(db, flt, action)
        affected = db.execute(stmt).rowcount
        before = flt.as_dict()
        before.update(audit_extra)
        before.update({"preview": False, "expected": expected})
        log_action(
            db,
            actor_id=actor_id,
            action=action.value,
            before=before,
            after={result_key: affected},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Bulk %s failed for %s; rolled back", action.value, flt.as_dict())
        raise

    logger.info(
        "Bulk %s by %s: %d entries (expected %d) filter=%s",
        action.value, actor_id, affected, expected, flt.as_dict(),
    )
    return affected


def lock(db: Session, flt: LockFilter, preview: bool, actor_id: Optional[uuid.UUID]) -> LockResult:
    """Move APPROVED entries matching ``flt`` to LOCKED (or just count them)."""
    flt.validate()
    authorize_range(db, actor_id, flt, "lock")
    if preview:
        return LockResult(flt, True, count_matching(db, flt, Action.LOCK))

    affected = _transition_range(db, flt, Action.LOCK, actor_id, {}, "locked")
    return LockResult(flt, False, affected)


def unlock(
    db: Session,
    flt: LockFilter,
    preview: bool,
    reason: str,
    actor_id: Optional[uuid.UUID],
) -> LockResult:
    """Move LOCKED entries matching ``flt`` back to APPROVED. A reason is mandatory."""
    if not (reason or "").strip():
        raise ValidationError("Reason is required for unlock.")
    flt.validate()
    authorize_range(db, actor_id, flt, "unlock")
    if preview:
        return LockResult(flt, True, count_matching(db, flt, Action.UNLOCK))

    affected = _transition_range(
        db, flt, Action.UNLOCK, actor_id, {"reason": reason.strip()}, "unlocked"
    )
    return LockResult(flt, False, affected)
