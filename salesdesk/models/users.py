# salesdesk/models/users.py

import enum

from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime
from sqlalchemy.sql import func

from salesdesk.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    # Admins manage the catalog and users; agents record sales and debts
    role = Column(String, nullable=False, default=UserRole.AGENT.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'agent')", name="ck_user_role_valid"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
