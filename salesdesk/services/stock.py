# =========================================================
# STOCK RESERVATION
#
# Variant.quantity is the only contended value in the system. It is
# changed exclusively through single-statement conditional updates, so
# concurrent sales on the same variant are serialized by the database and
# the stored quantity can never drop below zero.
#
# Nothing here commits: the caller owns the transaction.
# =========================================================

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from salesdesk.core.errors import InsufficientStock, InvalidSaleInput
from salesdesk.models.products import Product
from salesdesk.models.variants import Variant

logger = logging.getLogger("app.stock")


def reserve_stock(db: Session, product_id: int, variant_id: int, units_required: int):
    """Decrement a variant's stock by ``units_required`` base units.

    Raises InsufficientStock when the variant holds fewer units than
    requested; stock is left untouched in that case.
    """
    if not isinstance(units_required, int) or units_required <= 0:
        raise InvalidSaleInput("Units to reserve must be a positive integer")

    result = db.execute(
        update(Variant)
        .where(
            Variant.id == variant_id,
            Variant.product_id == product_id,
            Variant.quantity >= units_required,
        )
        .values(quantity=Variant.quantity - units_required)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        return

    # Guard failed. Read the current row only to explain why.
    row = (
        db.query(Product.name, Variant.title, Variant.quantity)
        .join(Variant, Variant.product_id == Product.id)
        .filter(Variant.id == variant_id, Product.id == product_id)
        .first()
    )

    if row is None:
        product_name, variant_title, available = str(product_id), str(variant_id), 0
    else:
        product_name, variant_title, available = row

    logger.info(
        f"Stock reservation rejected for {product_name} ({variant_title}): "
        f"requested={units_required} available={available}"
    )

    raise InsufficientStock(product_name, variant_title, units_required, available)


def adjust_stock(db: Session, product_id: int, variant_id: int, delta: int) -> bool:
    """Atomically shift a variant's stock by ``delta`` base units.

    Returns False when the variant does not belong to the product or the
    shifted quantity would be negative; nothing changes in that case.
    """
    result = db.execute(
        update(Variant)
        .where(
            Variant.id == variant_id,
            Variant.product_id == product_id,
            Variant.quantity + delta >= 0,
        )
        .values(quantity=Variant.quantity + delta)
        .execution_options(synchronize_session=False)
    )

    return result.rowcount == 1


def restock(db: Session, product_id: int, variant_id: int, units: int) -> bool:
    """Atomically add ``units`` base units to a variant.

    Returns False when the variant does not belong to the product.
    """
    if units <= 0:
        raise ValueError("Restock quantity must be positive")

    if not adjust_stock(db, product_id, variant_id, units):
        return False

    logger.info(f"Restocked variant {variant_id} of product {product_id} by {units} units")
    return True


def set_stock_level(db: Session, variant: Variant, target: int) -> bool:
    """Bring a loaded variant to ``target`` units.

    The change is applied as a delta against ``variant.quantity`` as it
    was read, so sales committed since then stay deducted. Returns False
    when those sales leave too little stock for the delta.
    """
    delta = target - variant.quantity
    if delta == 0:
        return True

    if not adjust_stock(db, variant.product_id, variant.id, delta):
        return False

    logger.info(
        f"Stock of variant {variant.id} set from {variant.quantity} to {target} "
        f"(delta {delta:+d})"
    )
    return True
