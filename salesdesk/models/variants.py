# salesdesk/models/variants.py

from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from salesdesk.database import Base


class Variant(Base):
    """One purchasable pack of a product.

    ``quantity`` is counted in base units (single pieces); ``price`` is per
    sale-unit (one pack of ``pack_size`` pieces) and ``cost_price`` is per
    base unit.
    """

    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    pack_size = Column(Integer, nullable=False, default=1)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_variant_quantity_non_negative"),
        CheckConstraint("pack_size >= 1", name="ck_variant_pack_size_positive"),
        CheckConstraint("cost_price >= 0", name="ck_variant_cost_price_non_negative"),
        CheckConstraint("price >= 0", name="ck_variant_price_non_negative"),
    )
