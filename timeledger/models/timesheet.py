import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, Date, Numeric, Index, Uuid
from sqlalchemy.sql import func

from timeledger.database import Base


# ---------------------------------------------------------
# Enums (kept as string values, no DB enum)
# ---------------------------------------------------------

class TimesheetStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    LOCKED = "LOCKED"


class TaskType(str, enum.Enum):
    development = "development"
    qa = "qa"
    ux = "ux"
    ui = "ui"
    meeting = "meeting"
    rnd = "rnd"
    adhoc = "adhoc"
    process = "process"
    operations = "operations"


# ---------------------------------------------------------
# Timesheet entries
# ---------------------------------------------------------

class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    entry_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    project_id = Column(Uuid, nullable=False, index=True)
    task_id = Column(Uuid, nullable=True)

    work_date = Column(Date, nullable=False)
    hours = Column(Numeric(5, 2), nullable=False)
    description = Column(Text, nullable=True)
    ticket_ref = Column(String(100), nullable=True)
    task_type = Column(String(30), nullable=False, default=TaskType.development.value)

    status = Column(String(20), nullable=False, default=TimesheetStatus.DRAFT.value)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Uuid, nullable=True)
    approver_comment = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_ts_user_date", "user_id", "work_date"),
        Index("ix_ts_status_date", "status", "work_date"),
    )
