# SalesDesk application entry point: uvicorn salesdesk.main:app

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from salesdesk.database import SessionLocal, engine, Base
from salesdesk.core.rate_limiter import limiter
from salesdesk.core.config import settings
from salesdesk.models import users, products, variants, sales, sale_items, debts  # noqa: F401  (table registration)
from salesdesk.routers import (
    auth,
    internal_admin,
    users as users_router,
    products as products_router,
    sales as sales_router,
    debts as debts_router,
    analytics,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("app")
http_logger = logging.getLogger("app.http")


# DATABASE (Alembic manages production schemas)

Base.metadata.create_all(bind=engine)


# APP INIT

app = FastAPI(
    title="SalesDesk API",
    description="Sales, inventory and debt tracking for small shops",
    version="1.0.0",
    debug=settings.DEBUG,
)


# CORS (bearer tokens, no cookies)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    level = logging.WARNING if response.status_code >= 500 else logging.INFO

    http_logger.log(
        level,
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
    )

    return response


# ROUTERS

for module in (
    auth,
    internal_admin,
    users_router,
    products_router,
    sales_router,
    debts_router,
    analytics,
):
    app.include_router(module.router)


# HEALTH CHECK

@app.get("/")
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.exception("Health check could not reach the database")
        database = "unavailable"
    finally:
        db.close()

    return {
        "service": "SalesDesk API",
        "env": settings.ENV,
        "database": database,
    }
