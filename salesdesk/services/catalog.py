# salesdesk/services/catalog.py

import re

from sqlalchemy.orm import Session

from salesdesk.models.products import Product
from salesdesk.models.variants import Variant


def _sku_part(value: str) -> str:
    return re.sub(r"\s+", "", value.upper())[:4]


def generate_sku(db: Session, category: str, name: str) -> str:
    """Build the next free SKU of the form CATE-NAME-001."""
    prefix = f"{_sku_part(category)}-{_sku_part(name)}-"

    existing = (
        db.query(Product.sku)
        .filter(Product.sku.like(f"{prefix}%"))
        .all()
    )

    sequence = 0
    for (sku,) in existing:
        suffix = sku[len(prefix):]
        if suffix.isdigit():
            sequence = max(sequence, int(suffix))

    sequence += 1
    sku = f"{prefix}{sequence:03d}"

    # Pending, unflushed products are not visible to the query above
    while db.query(Product.id).filter(Product.sku == sku).first():
        sequence += 1
        sku = f"{prefix}{sequence:03d}"

    return sku


def default_variant() -> Variant:
    return Variant(
        title="Default",
        pack_size=1,
        cost_price=0,
        price=0,
        quantity=0,
    )


def build_product(db: Session, name: str, category: str, sku: str | None, variants) -> Product:
    """Create (unflushed) a product with its variants.

    ``variants`` are VariantCreate-like objects; an empty list yields one
    zero-priced default variant.
    """
    product = Product(
        name=name,
        category=category,
        sku=sku or generate_sku(db, category, name),
    )

    if variants:
        product.variants = [Variant(**v.model_dump()) for v in variants]
    else:
        product.variants = [default_variant()]

    for index, variant in enumerate(product.variants, start=1):
        if not variant.sku:
            variant.sku = f"{product.sku}-V{index}"

    return product


def next_variant_sku(product: Product) -> str:
    prefix = f"{product.sku}-V"
    highest = len(product.variants)

    for variant in product.variants:
        if variant.sku and variant.sku.startswith(prefix) and variant.sku[len(prefix):].isdigit():
            highest = max(highest, int(variant.sku[len(prefix):]))

    return f"{prefix}{highest + 1}"
