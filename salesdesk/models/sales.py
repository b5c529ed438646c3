# models/sales.py

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from salesdesk.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total = Column(Numeric(12, 2), nullable=False)
    total_profit = Column(Numeric(12, 2), nullable=False)

    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)

    # Client supplied key; a retried submission returns the original sale
    request_id = Column(String, nullable=True, unique=True)

    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    user = relationship("User")
