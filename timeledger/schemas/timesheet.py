from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from decimal import Decimal

from timeledger.models.timesheet import TaskType


# Range and description rules are enforced by the entry store so that every
# caller gets the same ValidationError, not only HTTP clients.

class TimesheetEntryCreate(BaseModel):
    project_id: UUID
    work_date: date
    hours: Decimal
    description: Optional[str] = None
    ticket_ref: Optional[str] = None
    task_id: Optional[UUID] = None
    task_type: TaskType = TaskType.development


class TimesheetEntryUpdate(BaseModel):
    hours: Decimal
    description: Optional[str] = None
    ticket_ref: Optional[str] = None
    task_id: Optional[UUID] = None
    task_type: Optional[TaskType] = None


class TimesheetEntryResponse(BaseModel):
    entry_id: UUID
    user_id: UUID
    project_id: UUID
    task_id: Optional[UUID] = None
    work_date: date
    hours: Decimal
    description: Optional[str] = None
    ticket_ref: Optional[str] = None
    task_type: str
    status: str
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    approver_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RejectRequest(BaseModel):
    comment: str = ""
