"""
Approver endpoints: review queue, approve, reject.

Only the project's default approver may act on an entry; the queue is scoped
the same way.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeledger.database import get_db
from timeledger.dependencies import get_current_user_id, require_admin
from timeledger.schemas.timesheet import RejectRequest, TimesheetEntryResponse
from timeledger.services import approvals

router = APIRouter(prefix="/api/v1/approvals", tags=["approvals"])


@router.get("/pending", response_model=list[TimesheetEntryResponse])
def list_pending(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    project_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    approver_id: uuid.UUID = Depends(get_current_user_id),
):
    """SUBMITTED and REJECTED entries on the caller's projects."""
    return approvals.list_pending(db, approver_id, from_date, to_date, project_id, user_id)


@router.get("/pending/all", response_model=list[TimesheetEntryResponse])
def list_all_pending(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    project_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    return approvals.list_all_pending(db, from_date, to_date, project_id, user_id)


@router.post("/{entry_id}/approve", response_model=TimesheetEntryResponse)
def approve_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
    approver_id: uuid.UUID = Depends(get_current_user_id),
):
    return approvals.approve(db, approver_id, entry_id)


@router.post("/{entry_id}/reject", response_model=TimesheetEntryResponse)
def reject_entry(
    entry_id: uuid.UUID,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    approver_id: uuid.UUID = Depends(get_current_user_id),
):
    return approvals.reject(db, approver_id, entry_id, payload.comment)
