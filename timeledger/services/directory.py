"""
Read-only lookups against master data owned by other services:
users (identity, active flag), projects (default approver) and holidays.
"""

import uuid
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from timeledger.models.holiday import Holiday
from timeledger.models.project import Project
from timeledger.models.user import User
from timeledger.services.errors import NotFound


def get_project(db: Session, project_id: uuid.UUID) -> Project | None:
    return db.query(Project).filter(Project.project_id == project_id).first()


def require_project(db: Session, project_id: uuid.UUID) -> Project:
    project = get_project(db, project_id)
    if project is None:
        raise NotFound("Project not found.", entity="Project", entity_id=project_id)
    return project


def projects_approved_by(approver_id: uuid.UUID) -> Select:
    """Project ids whose default approver is ``approver_id``, for use in IN (...)."""
    return select(Project.project_id).where(Project.default_approver == approver_id)


def get_active_users(db: Session) -> list[User]:
    return (
        db.query(User)
        .filter(User.is_active == True)  # noqa: E712
        .order_by(User.last_name, User.first_name)
        .all()
    )


def user_names(db: Session, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    rows = db.query(User).filter(User.user_id.in_(ids)).all()
    return {u.user_id: u.display_name for u in rows}


def holiday_dates(
    db: Session, from_date: date, to_date: date, region: Optional[str] = None
) -> set[date]:
    q = db.query(Holiday.holiday_date).filter(
        Holiday.holiday_date >= from_date,
        Holiday.holiday_date <= to_date,
    )
    if region and region.strip():
        q = q.filter(Holiday.region == region.strip())
    return {row[0] for row in q.all()}
