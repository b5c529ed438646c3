# =========================================================
# SALES ROUTER
#
# - Any authenticated user (admin or agent) can record sales
# - A sale is recorded only if stock for every item was reserved
# - Sales are immutable: there is no update or delete endpoint
# =========================================================

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError

from salesdesk.database import get_db
from salesdesk.core.auth import get_current_user
from salesdesk.core.errors import SaleError
from salesdesk.core.rate_limiter import limiter
from salesdesk.models.sales import Sale
from salesdesk.models.sale_items import SaleItem
from salesdesk.schemas.sale import (
    CustomerInfo,
    SaleCreate,
    SaleItemResponse,
    SaleProductRef,
    SaleResponse,
)
from salesdesk.services.sales import create_sale as record_sale_transaction

logger = logging.getLogger("app.sales")

router = APIRouter(prefix="/sales", tags=["Sales"])


def _serialize_sale(sale: Sale) -> SaleResponse:
    items = []

    for item in sale.items:
        # Prefer the live product name; fall back to the snapshot taken at sale time
        name = item.product.name if item.product is not None else item.product_name

        items.append(
            SaleItemResponse(
                product=SaleProductRef(id=item.product_id, name=name),
                variant_id=item.variant_id,
                variant_title=item.variant_title,
                quantity=item.quantity,
                units_sold=item.units_sold,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                cost_at_sale=item.cost_at_sale,
                profit=item.profit,
            )
        )

    customer = None
    if sale.customer_name or sale.customer_phone:
        customer = CustomerInfo(name=sale.customer_name, phone=sale.customer_phone)

    return SaleResponse(
        id=sale.id,
        user_id=sale.user_id,
        total=sale.total,
        total_profit=sale.total_profit,
        customer=customer,
        request_id=sale.request_id,
        created_at=sale.created_at,
        items=items,
    )


# =========================================================
# CREATE SALE
# =========================================================
@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_sale(
    request: Request,
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    try:
        sale = record_sale_transaction(
            db,
            sale_data.items,
            user_id=current_user.id,
            customer=sale_data.customer,
            request_id=sale_data.request_id,
        )

    except SaleError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))

    except SQLAlchemyError:
        db.rollback()
        logger.exception("Sale transaction failed")
        raise HTTPException(status_code=500, detail="Unable to complete sale")

    return _serialize_sale(sale)


# =========================================================
# LIST SALES (NEWEST FIRST)
# =========================================================
@router.get("", response_model=list[SaleResponse])
def list_sales(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    limit: int | None = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    query = (
        db.query(Sale)
        .options(selectinload(Sale.items).selectinload(SaleItem.product))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset(offset)
    )

    if limit:
        query = query.limit(limit)

    return [_serialize_sale(sale) for sale in query.all()]


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    sale = (
        db.query(Sale)
        .options(selectinload(Sale.items).selectinload(SaleItem.product))
        .filter(Sale.id == sale_id)
        .first()
    )

    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sale not found",
        )

    return _serialize_sale(sale)
