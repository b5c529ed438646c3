# Seed a development database with two users and a small stationery catalog.
#
#   salesdesk-seed            add missing demo data
#   salesdesk-seed --reset    wipe users, products and the ledger first

import argparse
import logging

from salesdesk.database import Base, SessionLocal, engine
from salesdesk.core.hashing import hash_password
from salesdesk.models.debts import Debt
from salesdesk.models.products import Product
from salesdesk.models.sale_items import SaleItem
from salesdesk.models.sales import Sale
from salesdesk.models.users import User, UserRole
from salesdesk.models.variants import Variant
from salesdesk.services.catalog import build_product
from salesdesk.schemas.product import VariantCreate

logger = logging.getLogger("app.seed")

DEMO_PASSWORD = "changeme123"

USERS = [
    ("admin@example.com", UserRole.ADMIN),
    ("agent@example.com", UserRole.AGENT),
]

# Prices are per sale-unit, costs per base unit
PRODUCTS = [
    ("Bic Pen", "Stationery", [
        VariantCreate(title="Single", pack_size=1, cost_price=500, price=700, quantity=200),
        VariantCreate(title="Dozen", pack_size=12, cost_price=500, price=8000, quantity=0),
    ]),
    ("Nataraj Pen", "Stationery", [
        VariantCreate(title="Single", pack_size=1, cost_price=350, price=500, quantity=200),
    ]),
    ("Book 4QR", "Books", [
        VariantCreate(title="Single", pack_size=1, cost_price=4000, price=5000, quantity=120),
    ]),
    ("A4 Paper", "Paper", [
        VariantCreate(title="Ream", pack_size=1, cost_price=18000, price=22000, quantity=40),
        VariantCreate(title="Box of 5", pack_size=5, cost_price=17500, price=105000, quantity=0),
    ]),
]


def seed(reset: bool = False) -> None:
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if reset:
            for model in (SaleItem, Sale, Debt, Variant, Product, User):
                db.query(model).delete()
            db.commit()
            logger.info("Existing data removed")

        for email, role in USERS:
            if db.query(User).filter(User.email == email).first():
                continue
            db.add(User(email=email, password_hash=hash_password(DEMO_PASSWORD), role=role.value))
            logger.info(f"Created {role.value} {email}")

        for name, category, variants in PRODUCTS:
            if db.query(Product).filter(Product.name == name).first():
                continue
            db.add(build_product(db, name=name, category=category, sku=None, variants=variants))
            # Flush so the next SKU lookup sees this product
            db.flush()
            logger.info(f"Created product {name}")

        db.commit()

    finally:
        db.close()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Seed the SalesDesk database with demo data")
    parser.add_argument("--reset", action="store_true", help="delete existing data first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    seed(reset=args.reset)


if __name__ == "__main__":
    main()
