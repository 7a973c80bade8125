"""
Timesheet entries: the owner's CRUD and submit.

Static routes (/all) MUST come BEFORE /{entry_id}.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeledger.database import get_db
from timeledger.dependencies import get_current_user_id, require_admin
from timeledger.schemas.timesheet import (
    TimesheetEntryCreate,
    TimesheetEntryResponse,
    TimesheetEntryUpdate,
)
from timeledger.services import approvals, entry_store

router = APIRouter(prefix="/api/v1/timesheets", tags=["timesheets"])


# ══════════════════════════════════════════════
# STATIC ROUTES: MUST be before /{entry_id}
# ══════════════════════════════════════════════

@router.get("/all", response_model=list[TimesheetEntryResponse])
def list_all_entries(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    project_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    return entry_store.list_all_in_range(db, from_date, to_date, project_id, user_id)


@router.get("/", response_model=list[TimesheetEntryResponse])
def list_my_entries(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return entry_store.list_by_user_and_range(db, user_id, from_date, to_date)


@router.post("/", status_code=201, response_model=TimesheetEntryResponse)
def create_entry(
    payload: TimesheetEntryCreate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return entry_store.create_draft(
        db,
        owner_id=user_id,
        project_id=payload.project_id,
        work_date=payload.work_date,
        hours=payload.hours,
        description=payload.description,
        ticket_ref=payload.ticket_ref,
        task_id=payload.task_id,
        task_type=payload.task_type,
    )


# ══════════════════════════════════════════════
# DYNAMIC ROUTES: /{entry_id} AFTER static routes
# ══════════════════════════════════════════════

@router.get("/{entry_id}", response_model=TimesheetEntryResponse)
def get_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return entry_store.get_for_actor(db, user_id, entry_id)


@router.put("/{entry_id}", response_model=TimesheetEntryResponse)
def update_entry(
    entry_id: uuid.UUID,
    payload: TimesheetEntryUpdate,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return entry_store.update_draft(
        db,
        owner_id=user_id,
        entry_id=entry_id,
        hours=payload.hours,
        description=payload.description,
        ticket_ref=payload.ticket_ref,
        task_id=payload.task_id,
        task_type=payload.task_type,
    )


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    entry_store.delete(db, user_id, entry_id)
    return {"ok": True}


@router.post("/{entry_id}/submit", response_model=TimesheetEntryResponse)
def submit_entry(
    entry_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    return approvals.submit(db, user_id, entry_id)
