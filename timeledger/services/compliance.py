"""
Compliance & aggregation: missing-timesheet, overtime and utilization reports.

Missing-timesheet and overtime look at entries of every status: a DRAFT still
counts as "the user logged something that day", and hours in any state count
toward overtime. Utilization only counts reviewed hours (APPROVED and LOCKED).
"""

import csv
import io
import logging
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import case, func as sa_func
from sqlalchemy.orm import Session

from timeledger import config
from timeledger.models.project import Project
from timeledger.models.timesheet import TimesheetEntry, TimesheetStatus
from timeledger.services import directory
from timeledger.services.entry_store import validate_range
from timeledger.services.errors import ValidationError

logger = logging.getLogger(__name__)

WEEKEND = (5, 6)  # Saturday, Sunday

UTILIZATION_GROUPS = ("project", "user", "user_project")
REVIEWED_STATUSES = (TimesheetStatus.APPROVED.value, TimesheetStatus.LOCKED.value)


@dataclass(frozen=True)
class MissingRow:
    user_id: uuid.UUID
    user_name: str
    date: date


@dataclass(frozen=True)
class MissingSummary:
    total_missing_days: int
    affected_users: int
    working_days_in_range: int


@dataclass
class MissingReport:
    rows: list[MissingRow]
    summary: MissingSummary


@dataclass(frozen=True)
class OvertimeRow:
    user_id: uuid.UUID
    user_name: str
    date: date
    total_hours: Decimal


@dataclass(frozen=True)
class OvertimeSummary:
    total_overtime_days: int
    affected_users: int
    total_excess_hours: Decimal
    daily_cap: Decimal


@dataclass
class OvertimeReport:
    rows: list[OvertimeRow]
    summary: OvertimeSummary


@dataclass(frozen=True)
class UtilizationRow:
    user_id: Optional[uuid.UUID]
    user_name: Optional[str]
    project_id: Optional[uuid.UUID]
    project_name: Optional[str]
    billable: Optional[bool]
    billable_hours: Decimal
    total_hours: Decimal
    utilization_pct: Decimal


@dataclass(frozen=True)
class UtilizationSummary:
    billable_hours: Decimal
    total_hours: Decimal
    utilization_pct: Decimal


@dataclass
class UtilizationReport:
    group_by: str
    rows: list[UtilizationRow]
    summary: UtilizationSummary


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def each_day(from_date: date, to_date: date) -> Iterator[date]:
    d = from_date
    while d <= to_date:
        yield d
        d += timedelta(days=1)


def working_days(
    db: Session,
    from_date: date,
    to_date: date,
    skip_weekends: bool = True,
    holiday_region: Optional[str] = None,
) -> list[date]:
    holidays = directory.holiday_dates(db, from_date, to_date, holiday_region)
    return [
        d for d in each_day(from_date, to_date)
        if not (skip_weekends and d.weekday() in WEEKEND) and d not in holidays
    ]


def _days_with_entries(db: Session, from_date: date, to_date: date) -> set[tuple[uuid.UUID, date]]:
    rows = (
        db.query(TimesheetEntry.user_id, TimesheetEntry.work_date)
        .filter(
            TimesheetEntry.work_date >= from_date,
            TimesheetEntry.work_date <= to_date,
        )
        .distinct()
        .all()
    )
    return {(r.user_id, r.work_date) for r in rows}


def utilization_pct(billable_hours: Decimal, total_hours: Decimal) -> Decimal:
    """Billable share of total hours as a percentage, 2 places, half-even."""
    if not total_hours:
        return Decimal("0")
    return (billable_hours / total_hours * 100).quantize(Decimal("0.01"))


def _group_columns(group_by: str) -> list:
    project_cols = [
        Project.project_id.label("project_id"),
        Project.name.label("project_name"),
        Project.billable.label("billable"),
    ]
    if group_by == "user":
        return [TimesheetEntry.user_id.label("user_id")]
    if group_by == "user_project":
        return [TimesheetEntry.user_id.label("user_id")] + project_cols
    return project_cols


# ──────────────────────────────────────────────
# Reports
# ──────────────────────────────────────────────

def missing_timesheets(
    db: Session,
    from_date: date,
    to_date: date,
    skip_weekends: bool = True,
    holiday_region: Optional[str] = None,
) -> MissingReport:
    """One row per (active user, working day) with no entry of any status."""
    validate_range(from_date, to_date)
    region = holiday_region or config.DEFAULT_HOLIDAY_REGION

    users = directory.get_active_users(db)
    days = working_days(db, from_date, to_date, skip_weekends, region)
    present = _days_with_entries(db, from_date, to_date)

    rows = [
        MissingRow(user_id=u.user_id, user_name=u.display_name, date=d)
        for u in users
        for d in days
        if (u.user_id, d) not in present
    ]
    rows.sort(key=lambda r: (r.date, r.user_name))

    summary = MissingSummary(
        total_missing_days=len(rows),
        affected_users=len({r.user_id for r in rows}),
        working_days_in_range=len(days),
    )
    logger.info(
        "Missing timesheets %s..%s region=%s: %d rows across %d users",
        from_date, to_date, region, summary.total_missing_days, summary.affected_users,
    )
    return MissingReport(rows=rows, summary=summary)


def overtime(
    db: Session,
    from_date: date,
    to_date: date,
    daily_cap=None,
) -> OvertimeReport:
    """Days where a user's summed hours (any status) exceed ``daily_cap``."""
    validate_range(from_date, to_date)
    cap = config.DAILY_HOURS_CAP if daily_cap is None else Decimal(str(daily_cap))
    if cap < 0:
        raise ValidationError("Daily cap must not be negative.", daily_cap=daily_cap)

    total = sa_func.sum(TimesheetEntry.hours)
    totals = (
        db.query(
            TimesheetEntry.user_id,
            TimesheetEntry.work_date,
            total.label("total_hours"),
        )
        .filter(
            TimesheetEntry.work_date >= from_date,
            TimesheetEntry.work_date <= to_date,
        )
        .group_by(TimesheetEntry.user_id, TimesheetEntry.work_date)
        .having(total > cap)
        .all()
    )

    names = directory.user_names(db, (t.user_id for t in totals))
    rows = [
        OvertimeRow(
            user_id=t.user_id,
            user_name=names.get(t.user_id, str(t.user_id)),
            date=t.work_date,
            total_hours=Decimal(str(t.total_hours)),
        )
        for t in totals
    ]
    rows.sort(key=lambda r: (r.date, r.user_name))

    summary = OvertimeSummary(
        total_overtime_days=len(rows),
        affected_users=len({r.user_id for r in rows}),
        total_excess_hours=sum((r.total_hours - cap for r in rows), Decimal("0")),
        daily_cap=cap,
    )
    logger.info(
        "Overtime %s..%s cap=%s: %d days across %d users",
        from_date, to_date, cap, summary.total_overtime_days, summary.affected_users,
    )
    return OvertimeReport(rows=rows, summary=summary)


def utilization(
    db: Session,
    from_date: date,
    to_date: date,
    group_by: str = "project",
) -> UtilizationReport:
    """Billable vs total reviewed hours, grouped by project, user or user_project."""
    validate_range(from_date, to_date)
    group = (group_by or "project").strip().lower()
    if group not in UTILIZATION_GROUPS:
        raise ValidationError(
            "group_by must be one of: " + ", ".join(UTILIZATION_GROUPS) + ".", group_by=group_by
        )

    keys = _group_columns(group)
    total = sa_func.sum(TimesheetEntry.hours)
    billable = sa_func.sum(case((Project.billable.is_(True), TimesheetEntry.hours), else_=0))
    totals = (
        db.query(*keys, billable.label("billable_hours"), total.label("total_hours"))
        .select_from(TimesheetEntry)
        .join(Project, Project.project_id == TimesheetEntry.project_id)
        .filter(
            TimesheetEntry.status.in_(REVIEWED_STATUSES),
            TimesheetEntry.work_date >= from_date,
            TimesheetEntry.work_date <= to_date,
        )
        .group_by(*keys)
        .all()
    )

    names = {}
    if group != "project":
        names = directory.user_names(db, (t.user_id for t in totals))

    rows = []
    for t in totals:
        fields = t._mapping
        billable_hours = Decimal(str(t.billable_hours or 0))
        total_hours = Decimal(str(t.total_hours or 0))
        user_id = fields.get("user_id")
        rows.append(
            UtilizationRow(
                user_id=user_id,
                user_name=names.get(user_id, str(user_id)) if user_id else None,
                project_id=fields.get("project_id"),
                project_name=fields.get("project_name"),
                billable=fields.get("billable"),
                billable_hours=billable_hours,
                total_hours=total_hours,
                utilization_pct=utilization_pct(billable_hours, total_hours),
            )
        )
    if group == "project":
        rows.sort(key=lambda r: r.project_name or "")
    else:
        rows.sort(key=lambda r: (r.user_name or "", r.project_name or ""))

    billable_sum = sum((r.billable_hours for r in rows), Decimal("0"))
    total_sum = sum((r.total_hours for r in rows), Decimal("0"))
    summary = UtilizationSummary(
        billable_hours=billable_sum,
        total_hours=total_sum,
        utilization_pct=utilization_pct(billable_sum, total_sum),
    )
    logger.info(
        "Utilization %s..%s by %s: %d rows, %s of %s hours billable",
        from_date, to_date, group, len(rows), billable_sum, total_sum,
    )
    return UtilizationReport(group_by=group, rows=rows, summary=summary)


# ──────────────────────────────────────────────
# CSV projections
# ──────────────────────────────────────────────

def _to_csv(header: list[str], records) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    for rec in records:
        writer.writerow(rec)
    return buf.getvalue().encode("utf-8")


def missing_rows_csv(report: MissingReport) -> bytes:
    return _to_csv(
        ["user_id", "user_name", "date"],
        ([str(r.user_id), r.user_name, r.date.isoformat()] for r in report.rows),
    )


def overtime_rows_csv(report: OvertimeReport) -> bytes:
    return _to_csv(
        ["user_id", "user_name", "date", "total_hours"],
        ([str(r.user_id), r.user_name, r.date.isoformat(), str(r.total_hours)] for r in report.rows),
    )


def missing_timesheets_csv(
    db: Session,
    from_date: date,
    to_date: date,
    skip_weekends: bool = True,
    holiday_region: Optional[str] = None,
) -> bytes:
    return missing_rows_csv(missing_timesheets(db, from_date, to_date, skip_weekends, holiday_region))


def overtime_csv(db: Session, from_date: date, to_date: date, daily_cap=None) -> bytes:
    return overtime_rows_csv(overtime(db, from_date, to_date, daily_cap))


def _flag(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def utilization_rows_csv(report: UtilizationReport) -> bytes:
    return _to_csv(
        [
            "group", "user_id", "user_name", "project_id", "project_name",
            "billable", "billable_hours", "total_hours", "utilization_pct",
        ],
        (
            [
                report.group_by,
                str(r.user_id) if r.user_id else "",
                r.user_name or "",
                str(r.project_id) if r.project_id else "",
                r.project_name or "",
                _flag(r.billable),
                str(r.billable_hours),
                str(r.total_hours),
                str(r.utilization_pct),
            ]
            for r in report.rows
        ),
    )


def utilization_csv(db: Session, from_date: date, to_date: date, group_by: str = "project") -> bytes:
    return utilization_rows_csv(utilization(db, from_date, to_date, group_by))
