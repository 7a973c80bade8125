"""
Identity dependencies.

Authentication happens upstream (gateway / auth service); by the time a request
reaches us the caller's id travels in the ``X-User-Id`` header.

AUTH_MODE=demo   missing header falls back to DEMO_USER_ID
AUTH_MODE=strict header required and must name an active user
"""

import uuid
from fastapi import HTTPException, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional

from timeledger.config import AUTH_MODE
from timeledger.database import get_db
from timeledger.models.user import User, ROLE_ADMIN

# Demo placeholder, used only when AUTH_MODE=demo and no header is sent
DEMO_USER_ID = "00000000-0000-0000-0000-000000000000"


def _as_uuid(value) -> uuid.UUID:
    if value is None:
        raise ValueError("None is not a UUID")
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> uuid.UUID:
    """Resolve the caller's user id from the X-User-Id header."""
    if not x_user_id and AUTH_MODE == "demo":
        return _as_uuid(DEMO_USER_ID)
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user_id = _as_uuid(x_user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-User-Id (must be UUID)")

    if AUTH_MODE != "demo":
        user = db.query(User).filter(User.user_id == user_id).first()
        if not user or user.is_active is False:
            raise HTTPException(status_code=401, detail="User not found or disabled")

    return user_id


def require_admin(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> uuid.UUID:
    """Require an ADMIN caller. Returns the caller's user id."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user or user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id
