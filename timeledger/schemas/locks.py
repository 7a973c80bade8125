from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from uuid import UUID


class LockRequest(BaseModel):
    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")
    project_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    preview: bool = False

    model_config = {"populate_by_name": True}


class UnlockRequest(LockRequest):
    reason: str = ""


class LockScope(BaseModel):
    project_id: Optional[UUID] = None
    user_id: Optional[UUID] = None


class LockResponse(BaseModel):
    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")
    scope: LockScope
    preview: bool
    affected_count: int

    model_config = {"populate_by_name": True}
