from pydantic import BaseModel
from datetime import date
from typing import Optional
from uuid import UUID
from decimal import Decimal


# --- Missing timesheets ---

class MissingRowOut(BaseModel):
    user_id: UUID
    user_name: str
    date: date

    model_config = {"from_attributes": True}


class MissingSummaryOut(BaseModel):
    total_missing_days: int
    affected_users: int
    working_days_in_range: int

    model_config = {"from_attributes": True}


class MissingReportOut(BaseModel):
    rows: list[MissingRowOut] = []
    summary: MissingSummaryOut

    model_config = {"from_attributes": True}


# --- Overtime ---

class OvertimeRowOut(BaseModel):
    user_id: UUID
    user_name: str
    date: date
    total_hours: Decimal

    model_config = {"from_attributes": True}


class OvertimeSummaryOut(BaseModel):
    total_overtime_days: int
    affected_users: int
    total_excess_hours: Decimal
    daily_cap: Decimal

    model_config = {"from_attributes": True}


class OvertimeReportOut(BaseModel):
    rows: list[OvertimeRowOut] = []
    summary: OvertimeSummaryOut

    model_config = {"from_attributes": True}


# --- Utilization ---

class UtilizationRowOut(BaseModel):
    user_id: Optional[UUID] = None
    user_name: Optional[str] = None
    project_id: Optional[UUID] = None
    project_name: Optional[str] = None
    billable: Optional[bool] = None
    billable_hours: Decimal
    total_hours: Decimal
    utilization_pct: Decimal

    model_config = {"from_attributes": True}


class UtilizationSummaryOut(BaseModel):
    billable_hours: Decimal
    total_hours: Decimal
    utilization_pct: Decimal

    model_config = {"from_attributes": True}


class UtilizationReportOut(BaseModel):
    group_by: str
    rows: list[UtilizationRowOut] = []
    summary: UtilizationSummaryOut

    model_config = {"from_attributes": True}
