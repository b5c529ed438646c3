# salesdesk/routers/products.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from salesdesk.database import get_db
from salesdesk.core.auth import get_admin_user
from salesdesk.core.config import settings
from salesdesk.models.products import Product
from salesdesk.models.variants import Variant
from salesdesk.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    RestockRequest,
    VariantCreate,
    VariantUpdate,
    VariantResponse,
)
from salesdesk.services import catalog
from salesdesk.services.stock import restock, set_stock_level

logger = logging.getLogger("app.products")

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

# Generated SKUs are re-drawn when a concurrent create takes the same one
SKU_ATTEMPTS = 5


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return product


def _get_variant_or_404(product: Product, variant_id: int) -> Variant:
    for variant in product.variants:
        if variant.id == variant_id:
            return variant

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Variant not found",
    )


def _sku_conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Product with this SKU already exists",
    )


def _ensure_sku_free(db: Session, sku: str, product_id: int | None = None):
    query = db.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)

    if query.first():
        raise _sku_conflict()


# =========================================================
# PUBLIC CATALOG
# =========================================================
@router.get("", response_model=list[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    return (
        db.query(Product)
        .options(selectinload(Product.variants))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


@router.get("/low-stock", response_model=list[ProductResponse])
def list_low_stock_products(db: Session = Depends(get_db)):
    # Any variant at or below the threshold flags the whole product
    low_stock_ids = (
        db.query(Variant.product_id)
        .filter(Variant.quantity <= settings.LOW_STOCK_THRESHOLD)
        .distinct()
    )

    return (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.id.in_(low_stock_ids))
        .order_by(Product.created_at, Product.id)
        .all()
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


# =========================================================
# ADMIN: PRODUCTS
# =========================================================
@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    if product_data.sku:
        _ensure_sku_free(db, product_data.sku)

    for attempt in range(1, SKU_ATTEMPTS + 1):
        product = catalog.build_product(
            db,
            name=product_data.name,
            category=product_data.category,
            sku=product_data.sku,
            variants=product_data.variants,
        )
        sku = product.sku
        db.add(product)

        try:
            db.commit()
            break
        except IntegrityError:
            db.rollback()
            if product_data.sku or attempt == SKU_ATTEMPTS:
                raise _sku_conflict()
            logger.warning(f"Generated SKU {sku} was taken concurrently, retrying")

    db.refresh(product)

    logger.info(f"Product {product.id} ({product.sku}) created by user {admin.id}")

    return product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product_or_404(db, product_id)

    if product_data.sku is not None and product_data.sku != product.sku:
        _ensure_sku_free(db, product_data.sku, product.id)
        product.sku = product_data.sku

    if product_data.name is not None:
        product.name = product_data.name

    if product_data.category is not None:
        product.category = product_data.category

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _sku_conflict()

    db.refresh(product)

    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product_or_404(db, product_id)

    db.delete(product)
    db.commit()

    logger.info(f"Product {product_id} deleted by user {admin.id}")

    return None


# =========================================================
# ADMIN: VARIANTS
# =========================================================
@router.post(
    "/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_variant(
    product_id: int,
    variant_data: VariantCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product_or_404(db, product_id)

    variant = Variant(**variant_data.model_dump())
    if not variant.sku:
        variant.sku = catalog.next_variant_sku(product)

    product.variants.append(variant)
    db.commit()
    db.refresh(variant)

    return variant


@router.put("/{product_id}/variants/{variant_id}", response_model=VariantResponse)
def update_variant(
    product_id: int,
    variant_id: int,
    variant_data: VariantUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product_or_404(db, product_id)
    variant = _get_variant_or_404(product, variant_id)

    changes = variant_data.model_dump(exclude_unset=True)
    target_quantity = changes.pop("quantity", None)

    for field, value in changes.items():
        if value is None and field != "sku":
            continue
        setattr(variant, field, value)

    if target_quantity is not None and not set_stock_level(db, variant, target_quantity):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Stock was sold while editing; reload the variant and try again",
        )

    db.commit()
    db.refresh(variant)

    return variant


@router.delete("/{product_id}/variants/{variant_id}")
def delete_variant(
    product_id: int,
    variant_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    product = _get_product_or_404(db, product_id)
    variant = _get_variant_or_404(product, variant_id)

    if len(product.variants) == 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A product must keep at least one variant",
        )

    product.variants.remove(variant)
    db.commit()

    return {"message": "Variant deleted", "variant_id": variant_id}


@router.post("/{product_id}/variants/{variant_id}/restock", response_model=VariantResponse)
def restock_variant(
    product_id: int,
    variant_id: int,
    restock_data: RestockRequest,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    if not restock(db, product_id, variant_id, restock_data.quantity):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Variant not found",
        )

    db.commit()

    return db.query(Variant).filter(Variant.id == variant_id).first()
