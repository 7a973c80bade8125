import uuid

from sqlalchemy import Column, String, Boolean, Uuid

from timeledger.database import Base


# ---------------------------------------------------
# Enums
# ---------------------------------------------------

USER_ROLE_ENUM = String(20)  # keep String to avoid enum migration issues

ROLE_EMPLOYEE = "EMPLOYEE"
ROLE_APPROVER = "APPROVER"
ROLE_ADMIN = "ADMIN"


# ---------------------------------------------------
# User (identity directory, read-only here)
# ---------------------------------------------------

class User(Base):
    __tablename__ = "users"

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=True, index=True)
    role = Column(USER_ROLE_ENUM, nullable=False, default=ROLE_EMPLOYEE)
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
