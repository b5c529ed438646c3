# salesdesk/models/debts.py

import enum

from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from salesdesk.database import Base


class DebtStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REJECTED = "Rejected"


class Debt(Base):
    __tablename__ = "debts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(String, nullable=False)
    status = Column(String, nullable=False, default=DebtStatus.PENDING.value)

    issuer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    issuer = relationship("User")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_debt_amount_non_negative"),
        CheckConstraint("status IN ('Pending', 'Paid', 'Rejected')", name="ck_debt_status_valid"),
    )
