import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from timeledger.models.audit_log import AuditLog

TIMESHEET_ENTITY = "TimesheetEntry"


def log_action(
    db: Session,
    actor_id: Optional[uuid.UUID],
    action: str,
    entity: str = TIMESHEET_ENTITY,
    entity_id: Optional[uuid.UUID] = None,
    before: dict | None = None,
    after: dict | None = None,
) -> AuditLog:
    """Stage an audit row on the caller's transaction.

    The caller commits, so the audit row lands together with the change it
    describes or not at all.

    Payloads are stored as JSON, so values must already be JSON types.
    """
    entry = AuditLog(
        actor_id=actor_id,
        entity=entity,
        entity_id=entity_id,
        action=action,
        before_json=before,
        after_json=after,
        at=datetime.now(timezone.utc),
    )
    db.add(entry)
    return entry


def list_actions(
    db: Session,
    entity: str = TIMESHEET_ENTITY,
    action: Optional[str] = None,
    limit: int = 100,
) -> list[AuditLog]:
    q = db.query(AuditLog).filter(AuditLog.entity == entity)
    if action:
        q = q.filter(AuditLog.action == action)
    return q.order_by(AuditLog.at.desc()).limit(limit).all()
