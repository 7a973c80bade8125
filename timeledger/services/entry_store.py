"""
Entry Store: owns timesheet entry persistence and its field invariants.

Every write validates before touching the table:
  * 0 <= hours <= 24
  * hours > 0 requires a non-blank description
  * sum(hours) for (user_id, work_date), including the entry being written,
    stays within the daily cap; the sum is read under lock_user_day so
    concurrent writers for the same day are serialized

Status changes other than create/edit/delete belong to the approval workflow
and the bulk lock engine.
"""

import logging
import uuid
import zlib
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import func as sa_func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timeledger import config
from timeledger.models.timesheet import TaskType, TimesheetEntry, TimesheetStatus
from timeledger.models.user import User
from timeledger.services import directory
from timeledger.services.authorization import log_denied, may_read_entry, owns_entry
from timeledger.services.errors import DailyCapExceeded, NotFound, ValidationError
from timeledger.services.lifecycle import require_editable

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def commit_or_rollback(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def validate_hours(hours) -> Decimal:
    try:
        value = hours if isinstance(hours, Decimal) else Decimal(str(hours))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Hours must be a number.", hours=hours)
    if not value.is_finite() or value < 0 or value > config.MAX_ENTRY_HOURS:
        raise ValidationError(
            f"Hours must be between 0 and {config.MAX_ENTRY_HOURS}.", hours=hours
        )
    return value


def require_description(hours: Decimal, description: Optional[str]) -> None:
    if hours > 0 and not (description or "").strip():
        raise ValidationError("Description is required when hours > 0.")


def validate_range(from_date: date, to_date: date) -> None:
    if from_date > to_date:
        raise ValidationError("from must be on or before to.", from_date=from_date, to_date=to_date)


def _task_type(value) -> str:
    if value is None:
        return TaskType.development.value
    try:
        return TaskType(value).value
    except ValueError:
        allowed = ", ".join(t.value for t in TaskType)
        raise ValidationError(f"Invalid task type. Must be one of: {allowed}", task_type=value)


def day_total(
    db: Session,
    user_id: uuid.UUID,
    work_date: date,
    exclude_entry_id: Optional[uuid.UUID] = None,
) -> Decimal:
    """Sum of hours already booked by ``user_id`` on ``work_date`` (any status)."""
    q = db.query(sa_func.coalesce(sa_func.sum(TimesheetEntry.hours), 0)).filter(
        TimesheetEntry.user_id == user_id,
        TimesheetEntry.work_date == work_date,
    )
    if exclude_entry_id is not None:
        q = q.filter(TimesheetEntry.entry_id != exclude_entry_id)
    return Decimal(str(q.scalar() or 0))


def _day_lock_key(user_id: uuid.UUID, work_date: date) -> int:
    return zlib.crc32(f"{user_id}:{work_date.isoformat()}".encode("utf-8"))


def lock_user_day(db: Session, user_id: uuid.UUID, work_date: date) -> None:
    """Serialize cap checks for one (user, day) until the transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock keyed on the pair.
    SQLite has no row or advisory locks, so a no-op write on the user row
    takes the database write lock instead.
    """
    if db.get_bind().dialect.name == "postgresql":
        db.execute(select(sa_func.pg_advisory_xact_lock(_day_lock_key(user_id, work_date))))
    else:
        db.execute(
            update(User)
            .where(User.user_id == user_id)
            .values(is_active=User.is_active)
            .execution_options(synchronize_session=False)
        )


def ensure_daily_cap(
    db: Session,
    user_id: uuid.UUID,
    work_date: date,
    new_hours: Decimal,
    exclude_entry_id: Optional[uuid.UUID] = None,
    cap: Optional[Decimal] = None,
) -> Decimal:
    cap = config.DAILY_HOURS_CAP if cap is None else cap
    total = day_total(db, user_id, work_date, exclude_entry_id) + new_hours
    if total > cap:
        raise DailyCapExceeded(
            f"Daily cap exceeded: {total}h > {cap}h.",
            user_id=user_id,
            work_date=work_date,
            total=total,
            cap=cap,
        )
    return total


def _load_owned_for_update(db: Session, owner_id: uuid.UUID, entry_id: uuid.UUID, operation: str) -> TimesheetEntry:
    entry = (
        db.query(TimesheetEntry)
        .filter(TimesheetEntry.entry_id == entry_id)
        .with_for_update()
        .first()
    )
    if entry is None:
        raise NotFound("Entry not found.", entity="TimesheetEntry", entity_id=entry_id)
    decision = owns_entry(owner_id, entry)
    if not decision:
        # Another user's entry reads as missing to the caller
        log_denied(decision, owner_id, entry_id, operation)
        raise NotFound("Entry not found.", entity="TimesheetEntry", entity_id=entry_id)
    return entry


# ──────────────────────────────────────────────
# Writes
# ──────────────────────────────────────────────

def create_draft(
    db: Session,
    owner_id: uuid.UUID,
    project_id: uuid.UUID,
    work_date: date,
    hours,
    description: Optional[str] = None,
    ticket_ref: Optional[str] = None,
    task_id: Optional[uuid.UUID] = None,
    task_type=None,
) -> TimesheetEntry:
    hours = validate_hours(hours)
    require_description(hours, description)
    task_type = _task_type(task_type)
    directory.require_project(db, project_id)

    try:
        lock_user_day(db, owner_id, work_date)
        ensure_daily_cap(db, owner_id, work_date, hours)
    except Exception:
        db.rollback()
        raise

    now = _now()
    entry = TimesheetEntry(
        entry_id=uuid.uuid4(),
        user_id=owner_id,
        project_id=project_id,
        task_id=task_id,
        work_date=work_date,
        hours=hours,
        description=description,
        ticket_ref=ticket_ref,
        task_type=task_type,
        status=TimesheetStatus.DRAFT.value,
        created_at=now,
        updated_at=now,
    )
    db.add(entry)
    commit_or_rollback(db)
    db.refresh(entry)
    logger.info("Created draft %s for user %s on %s (%sh)", entry.entry_id, owner_id, work_date, hours)
    return entry


def update_draft(
    db: Session,
    owner_id: uuid.UUID,
    entry_id: uuid.UUID,
    hours,
    description: Optional[str] = None,
    ticket_ref: Optional[str] = None,
    task_id: Optional[uuid.UUID] = None,
    task_type=None,
) -> TimesheetEntry:
    try:
        entry = _load_owned_for_update(db, owner_id, entry_id, "update")
        require_editable(entry, "edited")

        hours = validate_hours(hours)
        require_description(hours, description)
        lock_user_day(db, owner_id, entry.work_date)
        ensure_daily_cap(db, owner_id, entry.work_date, hours, exclude_entry_id=entry.entry_id)

        entry.hours = hours
        entry.description = description
        entry.ticket_ref = ticket_ref
        entry.task_id = task_id
        if task_type is not None:
            entry.task_type = _task_type(task_type)
        entry.updated_at = _now()
    except Exception:
        # release the row lock and drop any half-applied attribute changes
        db.rollback()
        raise

    commit_or_rollback(db)
    db.refresh(entry)
    logger.info("Updated entry %s (%sh)", entry.entry_id, hours)
    return entry


def delete(db: Session, owner_id: uuid.UUID, entry_id: uuid.UUID) -> None:
    try:
        entry = _load_owned_for_update(db, owner_id, entry_id, "delete")
        require_editable(entry, "deleted")
    except Exception:
        db.rollback()
        raise

    db.delete(entry)
    commit_or_rollback(db)
    logger.info("Deleted entry %s", entry_id)


# ──────────────────────────────────────────────
# Reads
# ──────────────────────────────────────────────

def get_by_id(db: Session, entry_id: uuid.UUID) -> TimesheetEntry:
    entry = db.query(TimesheetEntry).filter(TimesheetEntry.entry_id == entry_id).first()
    if entry is None:
        raise NotFound("Entry not found.", entity="TimesheetEntry", entity_id=entry_id)
    return entry


def get_for_actor(db: Session, actor_id: uuid.UUID, entry_id: uuid.UUID) -> TimesheetEntry:
    """Like get_by_id, but entries the actor may not see read as missing."""
    entry = get_by_id(db, entry_id)
    actor = db.query(User).filter(User.user_id == actor_id).first()
    decision = may_read_entry(actor_id, actor, entry, directory.get_project(db, entry.project_id))
    if not decision:
        log_denied(decision, actor_id, entry_id, "read")
        raise NotFound("Entry not found.", entity="TimesheetEntry", entity_id=entry_id)
    return entry


def list_by_user_and_range(
    db: Session, user_id: uuid.UUID, from_date: date, to_date: date
) -> list[TimesheetEntry]:
    validate_range(from_date, to_date)
    return (
        db.query(TimesheetEntry)
        .filter(
            TimesheetEntry.user_id == user_id,
            TimesheetEntry.work_date >= from_date,
            TimesheetEntry.work_date <= to_date,
        )
        .order_by(TimesheetEntry.work_date, TimesheetEntry.project_id)
        .all()
    )


def list_all_in_range(
    db: Session,
    from_date: date,
    to_date: date,
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> list[TimesheetEntry]:
    validate_range(from_date, to_date)
    q = db.query(TimesheetEntry).filter(
        TimesheetEntry.work_date >= from_date,
        TimesheetEntry.work_date <= to_date,
    )
    if project_id:
        q = q.filter(TimesheetEntry.project_id == project_id)
    if user_id:
        q = q.filter(TimesheetEntry.user_id == user_id)
    return q.order_by(
        TimesheetEntry.work_date, TimesheetEntry.user_id, TimesheetEntry.project_id
    ).all()
