import uuid

from sqlalchemy import JSON, Column, String, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from timeledger.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
AuditPayload = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """Append-only trail of bulk lock/unlock operations."""

    __tablename__ = "audit_logs"

    audit_log_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, nullable=True, index=True)
    entity = Column(String(100), nullable=False)
    entity_id = Column(Uuid, nullable=True)
    action = Column(String(50), nullable=False)
    before_json = Column(AuditPayload, nullable=True)
    after_json = Column(AuditPayload, nullable=True)
    at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
