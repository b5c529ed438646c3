# =========================================================
# SALE TRANSACTION
#
# One request = one database transaction:
#   validate -> per item (load product, resolve variant, reserve stock,
#   snapshot price/cost) -> insert sale -> commit
#
# Any failure rolls the whole transaction back, including stock already
# reserved for earlier items of the same request.
# =========================================================

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salesdesk.core.config import settings
from salesdesk.core.errors import (
    InvalidSaleInput,
    ProductNotFound,
    SaleError,
    VariantNotFound,
)
from salesdesk.models.products import Product
from salesdesk.models.sales import Sale
from salesdesk.models.sale_items import SaleItem
from salesdesk.services.concurrency import run_with_retry
from salesdesk.services.stock import reserve_stock

logger = logging.getLogger("app.sales")


def validate_items(items) -> None:
    if not items:
        raise InvalidSaleInput("Sale must contain items")

    for item in items:
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidSaleInput("Item quantity must be greater than zero")


def resolve_variant(product: Product, variant_id: int | None):
    if not product.variants:
        raise VariantNotFound(product.name, variant_id or "default")

    if variant_id is None:
        return product.variants[0]

    for variant in product.variants:
        if variant.id == variant_id:
            return variant

    raise VariantNotFound(product.name, variant_id)


def record_sale(
    db: Session,
    items,
    user_id: int,
    customer=None,
    request_id: str | None = None,
) -> Sale:
    """Reserve stock for every item and persist the sale in one transaction.

    ``items`` are objects exposing ``product_id``, ``variant_id`` and
    ``quantity`` (sale-units). Commits on success; on failure the caller
    must roll back.
    """
    validate_items(items)

    total = Decimal("0.00")
    total_profit = Decimal("0.00")
    sale_items = []

    for item in items:
        product = db.query(Product).filter(Product.id == item.product_id).first()

        if not product:
            raise ProductNotFound(item.product_id)

        variant = resolve_variant(product, item.variant_id)

        units_sold = item.quantity * variant.pack_size

        reserve_stock(db, product.id, variant.id, units_sold)

        unit_price = Decimal(variant.price)
        cost_at_sale = Decimal(variant.cost_price)
        subtotal = unit_price * item.quantity

        sale_item = SaleItem(
            product_id=product.id,
            product_name=product.name,
            variant_id=variant.id,
            variant_title=variant.title,
            quantity=item.quantity,
            units_sold=units_sold,
            unit_price=unit_price,
            subtotal=subtotal,
            cost_at_sale=cost_at_sale,
        )

        total += subtotal
        total_profit += sale_item.profit
        sale_items.append(sale_item)

    sale = Sale(
        user_id=user_id,
        total=total,
        total_profit=total_profit,
        customer_name=customer.name if customer else None,
        customer_phone=customer.phone if customer else None,
        request_id=request_id,
        items=sale_items,
    )

    db.add(sale)
    db.commit()
    db.refresh(sale)

    return sale


def _find_by_request_id(db: Session, request_id: str, user_id: int):
    existing = db.query(Sale).filter(Sale.request_id == request_id).first()

    if existing and existing.user_id != user_id:
        raise InvalidSaleInput("request_id has already been used")

    return existing


def create_sale(
    db: Session,
    items,
    user_id: int,
    customer=None,
    request_id: str | None = None,
) -> Sale:
    """Entry point used by the API: idempotency check plus bounded retry."""
    # Blank keys are stored as NULL, which the unique index never matches
    request_id = (request_id or "").strip() or None

    if request_id:
        existing = _find_by_request_id(db, request_id, user_id)
        if existing:
            logger.info(f"Duplicate sale submission {request_id}, returning sale {existing.id}")
            return existing

    try:
        sale = run_with_retry(
            db,
            lambda: record_sale(db, items, user_id, customer, request_id),
            attempts=settings.SALE_RETRY_ATTEMPTS,
            backoff_base=settings.SALE_RETRY_BACKOFF,
        )

    except SaleError:
        db.rollback()
        raise

    except IntegrityError:
        db.rollback()
        # Lost a race against a concurrent submission with the same key
        if request_id:
            existing = _find_by_request_id(db, request_id, user_id)
            if existing:
                return existing
        raise

    logger.info(
        f"Sale {sale.id} recorded by user {user_id}: "
        f"{len(sale.items)} items, total={sale.total} profit={sale.total_profit}"
    )

    return sale
