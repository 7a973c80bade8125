"""
Compliance reports: missing timesheets, overtime and utilization, as JSON or CSV download.

GET /api/v1/reports/missing-timesheets?from=YYYY-MM-DD&to=YYYY-MM-DD&skip_weekends=true&holiday_region=IN
GET /api/v1/reports/overtime?from=YYYY-MM-DD&to=YYYY-MM-DD&cap=12
GET /api/v1/reports/utilization?from=YYYY-MM-DD&to=YYYY-MM-DD&group_by=project|user|user_project
(append .csv to any path for a file download)
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from timeledger.database import get_db
from timeledger.dependencies import require_admin
from timeledger.schemas.reports import MissingReportOut, OvertimeReportOut, UtilizationReportOut
from timeledger.services import compliance

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def _csv_response(content: bytes, name: str, from_date: date, to_date: date) -> StreamingResponse:
    filename = f"{name}_{from_date:%Y%m%d}_{to_date:%Y%m%d}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/missing-timesheets", response_model=MissingReportOut)
def missing_timesheets(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    skip_weekends: bool = Query(True),
    holiday_region: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    report = compliance.missing_timesheets(db, from_date, to_date, skip_weekends, holiday_region)
    return MissingReportOut.model_validate(report)


@router.get("/missing-timesheets.csv")
def missing_timesheets_csv(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    skip_weekends: bool = Query(True),
    holiday_region: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    content = compliance.missing_timesheets_csv(db, from_date, to_date, skip_weekends, holiday_region)
    return _csv_response(content, "missing_timesheets", from_date, to_date)


@router.get("/overtime", response_model=OvertimeReportOut)
def overtime(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    cap: Optional[Decimal] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    report = compliance.overtime(db, from_date, to_date, cap)
    return OvertimeReportOut.model_validate(report)


@router.get("/overtime.csv")
def overtime_csv(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    cap: Optional[Decimal] = Query(None),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    content = compliance.overtime_csv(db, from_date, to_date, cap)
    return _csv_response(content, "overtime", from_date, to_date)


@router.get("/utilization", response_model=UtilizationReportOut)
def utilization(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    group_by: str = Query("project"),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    report = compliance.utilization(db, from_date, to_date, group_by)
    return UtilizationReportOut.model_validate(report)


@router.get("/utilization.csv")
def utilization_csv(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    group_by: str = Query("project"),
    db: Session = Depends(get_db),
    _admin: uuid.UUID = Depends(require_admin),
):
    content = compliance.utilization_csv(db, from_date, to_date, group_by)
    return _csv_response(content, "utilization", from_date, to_date)
