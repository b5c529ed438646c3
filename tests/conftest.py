"""
Pytest fixtures for the SalesDesk API tests.

Settings are read at import time, so the environment is prepared before
any salesdesk module is imported. Tests share one SQLite file (the
concurrency tests need real connections from several threads) and every
test starts from empty tables.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="salesdesk-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'salesdesk.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["INTERNAL_ADMIN_SECRET"] = "bootstrap-secret"
os.environ["SALE_RETRY_BACKOFF"] = "0.01"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from salesdesk.main import app as fastapi_app
from salesdesk.database import Base, SessionLocal, engine
from salesdesk.core.hashing import hash_password
from salesdesk.core.jwt import token_for_user
from salesdesk.models.products import Product
from salesdesk.models.sales import Sale
from salesdesk.models.sale_items import SaleItem
from salesdesk.models.users import User, UserRole
from salesdesk.models.variants import Variant


@pytest.fixture(scope='session')
def app():
    """FastAPI application with a freshly created schema."""
    Base.metadata.create_all(bind=engine)
    yield fastapi_app
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def db_session(app):
    """Session on an empty database."""
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())

    session = SessionLocal()
    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def client(app, db_session):
    return TestClient(app)


def _create_user(db, email, role):
    user = User(
        email=email,
        password_hash=hash_password("Str0ngPass!"),
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers_for(user):
    token = token_for_user(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _create_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture(scope='function')
def agent_user(db_session):
    return _create_user(db_session, "agent@example.com", UserRole.AGENT)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers_for(admin_user)


@pytest.fixture(scope='function')
def agent_headers(agent_user):
    return auth_headers_for(agent_user)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory creating a product with the given variants.

    Each variant is a dict of Variant column values; defaults give a single
    piece sold at 100 with cost 60 and 50 pieces in stock.
    """
    counter = {"n": 0}

    def _make(name="Widget", category="General", variants=None):
        counter["n"] += 1
        product = Product(
            name=name,
            category=category,
            sku=f"TEST-{counter['n']:03d}",
        )

        for overrides in variants or [{}]:
            values = {
                "title": "Single",
                "pack_size": 1,
                "cost_price": Decimal("60"),
                "price": Decimal("100"),
                "quantity": 50,
            }
            values.update(overrides)
            product.variants.append(Variant(**values))

        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture(scope='function')
def a4_product(make_product):
    """Exercise book sold by the dozen: 120 pieces on hand."""
    return make_product(
        name="A4",
        category="Books",
        variants=[{
            "title": "A4 (dozen)",
            "pack_size": 12,
            "cost_price": Decimal("1500"),
            "price": Decimal("22000"),
            "quantity": 120,
        }],
    )


def variant_quantity(db, variant_id):
    """Current stored quantity, bypassing the session identity map."""
    db.expire_all()
    return db.query(Variant.quantity).filter(Variant.id == variant_id).scalar()


def ledger_sale(db, user, product, created_at, quantity=1):
    """Insert a sale of the first variant directly, bypassing stock reservation."""
    variant = product.variants[0]
    subtotal = variant.price * quantity
    units = quantity * variant.pack_size
    sale = Sale(
        user_id=user.id,
        total=subtotal,
        total_profit=subtotal - units * variant.cost_price,
        created_at=created_at,
        items=[
            SaleItem(
                product_id=product.id,
                product_name=product.name,
                variant_id=variant.id,
                variant_title=variant.title,
                quantity=quantity,
                units_sold=units,
                unit_price=variant.price,
                subtotal=subtotal,
                cost_at_sale=variant.cost_price,
            )
        ],
    )
    db.add(sale)
    db.commit()
    return sale
