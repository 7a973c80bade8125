import uuid

from sqlalchemy import Column, String, Boolean, Uuid

from timeledger.database import Base


class Project(Base):
    """Project master data. Owned by the projects service; read-only here."""

    __tablename__ = "projects"

    project_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    # user authorized to approve/reject/lock entries booked on this project
    default_approver = Column(Uuid, nullable=True, index=True)
    billable = Column(Boolean, default=True, nullable=False)
