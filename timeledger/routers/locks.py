"""
Bulk lock / unlock of approved periods.

POST /api/v1/locks
  {"from": "2025-09-08", "to": "2025-09-14", "project_id": null, "user_id": null, "preview": true}
POST /api/v1/unlocks
  {... same filter ..., "reason": "Invoice correction"}
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timeledger.database import get_db
from timeledger.dependencies import get_current_user_id
from timeledger.schemas.locks import LockRequest, LockResponse, LockScope, UnlockRequest
from timeledger.services import locking

router = APIRouter(prefix="/api/v1", tags=["locks"])


def _filter(body: LockRequest) -> locking.LockFilter:
    return locking.LockFilter(
        from_date=body.from_date,
        to_date=body.to_date,
        project_id=body.project_id,
        user_id=body.user_id,
    )


def _response(res: locking.LockResult) -> LockResponse:
    return LockResponse(
        from_date=res.filter.from_date,
        to_date=res.filter.to_date,
        scope=LockScope(project_id=res.filter.project_id, user_id=res.filter.user_id),
        preview=res.preview,
        affected_count=res.affected_count,
    )


@router.post("/locks", response_model=LockResponse)
def lock_range(
    body: LockRequest,
    db: Session = Depends(get_db),
    actor_id: uuid.UUID = Depends(get_current_user_id),
):
    return _response(locking.lock(db, _filter(body), body.preview, actor_id))


@router.post("/unlocks", response_model=LockResponse)
def unlock_range(
    body: UnlockRequest,
    db: Session = Depends(get_db),
    actor_id: uuid.UUID = Depends(get_current_user_id),
):
    return _response(locking.unlock(db, _filter(body), body.preview, body.reason, actor_id))
