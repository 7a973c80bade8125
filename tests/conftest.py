"""Shared fixtures: an in-memory SQLite database per test and seeded master data."""

import os

# Settings are read at import time, so they must be in place before timeledger loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_MODE"] = "strict"
os.environ["DAILY_HOURS_CAP"] = "12"
os.environ["MAX_LOCK_RANGE_DAYS"] = "62"
os.environ["DEFAULT_HOLIDAY_REGION"] = ""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timeledger.database import Base, get_db
from timeledger.models import Holiday, Project, TimesheetEntry, TimesheetStatus, User
from timeledger.models.user import ROLE_ADMIN, ROLE_APPROVER, ROLE_EMPLOYEE

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema and session for every test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _user(db, first, last, role=ROLE_EMPLOYEE, active=True):
    user = User(
        user_id=uuid.uuid4(),
        first_name=first,
        last_name=last,
        email=f"{first.lower()}@example.com",
        role=role,
        is_active=active,
    )
    db.add(user)
    return user


@pytest.fixture
def world(db):
    """Two employees, two approvers, an admin and three projects.

    project_a is approved by ``approver``, project_b by ``approver2`` and
    project_orphan has no default approver at all.
    """
    employee = _user(db, "Asha", "Rao")
    employee2 = _user(db, "Ben", "Okafor")
    approver = _user(db, "Carla", "Mendes", ROLE_APPROVER)
    approver2 = _user(db, "Dev", "Patel", ROLE_APPROVER)
    admin = _user(db, "Erin", "Walsh", ROLE_ADMIN)
    former = _user(db, "Finn", "Gray", active=False)

    project_a = Project(project_id=uuid.uuid4(), name="Apollo", default_approver=approver.user_id)
    project_b = Project(project_id=uuid.uuid4(), name="Borealis", default_approver=approver2.user_id)
    project_orphan = Project(project_id=uuid.uuid4(), name="Orphan", default_approver=None)
    db.add_all([project_a, project_b, project_orphan])
    db.commit()

    return SimpleNamespace(
        employee=employee,
        employee2=employee2,
        approver=approver,
        approver2=approver2,
        admin=admin,
        former=former,
        project_a=project_a,
        project_b=project_b,
        project_orphan=project_orphan,
    )


@pytest.fixture
def make_entry(db):
    """Insert an entry directly in any status, bypassing the workflow."""

    def _make(user, project, work_date, hours="8", status=TimesheetStatus.DRAFT, description="work"):
        now = datetime.now(timezone.utc)
        entry = TimesheetEntry(
            entry_id=uuid.uuid4(),
            user_id=user.user_id,
            project_id=project.project_id,
            work_date=work_date,
            hours=Decimal(hours),
            description=description,
            status=status.value,
            created_at=now,
            updated_at=now,
        )
        db.add(entry)
        db.commit()
        return entry

    return _make


@pytest.fixture
def add_holiday(db):
    def _add(day: date, name: str, region: str = ""):
        db.add(Holiday(holiday_date=day, region=region, name=name))
        db.commit()

    return _add


@pytest.fixture
def client(db):
    """TestClient whose requests share the test's in-memory database."""
    from main import app

    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
