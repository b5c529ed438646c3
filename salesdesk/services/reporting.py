# =========================================================
# REPORTING
#
# Read-only rollups over the sale ledger. Window arithmetic is kept in
# pure functions that take an explicit ``now`` so reports can be computed
# for any point in time; the database functions only aggregate rows
# inside a given [start, end) range.
# =========================================================

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from salesdesk.core.config import settings
from salesdesk.models.products import Product
from salesdesk.models.sales import Sale
from salesdesk.models.sale_items import SaleItem
from salesdesk.models.variants import Variant

PERIODS = ("day", "week", "month", "quarter", "year")
TREND_MONTHS = 6
TOP_PRODUCTS_LIMIT = 5
CENT = Decimal("0.01")


@dataclass(frozen=True)
class ReportWindow:
    start: datetime
    end: datetime
    previous_start: datetime
    previous_end: datetime


@dataclass
class RangeSummary:
    revenue: Decimal = Decimal("0.00")
    orders: int = 0
    profit: Decimal = Decimal("0.00")


@dataclass
class PeriodStats:
    total_sales: Decimal
    total_profit: Decimal
    total_orders: int
    avg_order_value: Decimal
    profit_margin: Decimal
    growth_rate: Decimal


@dataclass
class TrendBucket:
    year: int
    month: int
    sales: Decimal = Decimal("0.00")
    profit: Decimal = Decimal("0.00")
    label: str = field(init=False)

    def __post_init__(self):
        self.label = calendar.month_abbr[self.month]


# =========================================================
# PURE HELPERS
# =========================================================
def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT)


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _shift_months(moment: datetime, months: int) -> datetime:
    """First day of the month ``months`` away from ``moment``'s month."""
    index = moment.year * 12 + (moment.month - 1) + months
    return _start_of_day(moment).replace(year=index // 12, month=index % 12 + 1, day=1)


def period_window(period: str, now: datetime) -> ReportWindow:
    """Current window [start, now] and the calendar period before it."""
    today = _start_of_day(now)

    if period == "day":
        start = today
        previous_start = start - timedelta(days=1)

    elif period == "week":
        # Last 7 days including today
        start = today - timedelta(days=6)
        previous_start = start - timedelta(days=7)

    elif period == "month":
        start = _shift_months(now, 0)
        previous_start = _shift_months(now, -1)

    elif period == "quarter":
        start = _shift_months(now, -((now.month - 1) % 3))
        previous_start = _shift_months(start, -3)

    elif period == "year":
        start = today.replace(month=1, day=1)
        previous_start = start.replace(year=start.year - 1)

    else:
        raise ValueError(f"Unknown report period: {period}")

    return ReportWindow(
        start=start,
        end=now,
        previous_start=previous_start,
        previous_end=start,
    )


def build_stats(current: RangeSummary, previous: RangeSummary) -> PeriodStats:
    if current.orders:
        avg_order_value = (current.revenue / current.orders).quantize(CENT)
    else:
        avg_order_value = Decimal("0.00")

    if current.revenue:
        profit_margin = (current.profit / current.revenue * 100).quantize(Decimal("0.1"))
    else:
        profit_margin = Decimal("0.0")

    if previous.revenue:
        growth_rate = (
            (current.revenue - previous.revenue) / previous.revenue * 100
        ).quantize(Decimal("0.1"))
    else:
        growth_rate = Decimal("0.0")

    return PeriodStats(
        total_sales=current.revenue,
        total_profit=current.profit,
        total_orders=current.orders,
        avg_order_value=avg_order_value,
        profit_margin=profit_margin,
        growth_rate=growth_rate,
    )


def trend_months(now: datetime, months: int = TREND_MONTHS) -> list[tuple[int, int]]:
    """(year, month) keys of the last ``months`` calendar months, oldest first."""
    keys = []
    for offset in range(months - 1, -1, -1):
        first = _shift_months(now, -offset)
        keys.append((first.year, first.month))
    return keys


def bucket_trend(rows, now: datetime, months: int = TREND_MONTHS) -> list[TrendBucket]:
    """Group (created_at, total, total_profit) rows into monthly buckets.

    Every month of the series is present, with zeros when it had no sales.
    Rows outside the series are ignored.
    """
    buckets = {key: TrendBucket(year=key[0], month=key[1]) for key in trend_months(now, months)}

    for created_at, total, total_profit in rows:
        bucket = buckets.get((created_at.year, created_at.month))
        if bucket is None:
            continue
        bucket.sales += _money(total)
        bucket.profit += _money(total_profit)

    return list(buckets.values())


# =========================================================
# LEDGER QUERIES
# =========================================================
def _item_profit():
    return SaleItem.subtotal - SaleItem.units_sold * SaleItem.cost_at_sale


def _range_filter(start: datetime, end: datetime | None):
    conditions = [Sale.created_at >= start]
    if end is not None:
        conditions.append(Sale.created_at < end)
    return conditions


def summarize_range(db: Session, start: datetime, end: datetime | None = None) -> RangeSummary:
    base_filter = _range_filter(start, end)

    revenue, orders = (
        db.query(
            func.coalesce(func.sum(Sale.total), 0),
            func.count(Sale.id),
        )
        .filter(*base_filter)
        .one()
    )

    profit = (
        db.query(func.coalesce(func.sum(_item_profit()), 0))
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(*base_filter)
        .scalar()
    )

    return RangeSummary(
        revenue=_money(revenue),
        orders=orders or 0,
        profit=_money(profit),
    )


def top_products(db: Session, start: datetime, end: datetime | None = None, limit: int = TOP_PRODUCTS_LIMIT):
    quantity_sold = func.sum(SaleItem.quantity).label("quantity")
    revenue = func.sum(SaleItem.subtotal).label("revenue")

    rows = (
        db.query(
            SaleItem.product_id.label("product_id"),
            func.max(Product.name).label("current_name"),
            func.max(SaleItem.product_name).label("snapshot_name"),
            quantity_sold,
            revenue,
            func.sum(_item_profit()).label("profit"),
        )
        .join(Sale, SaleItem.sale_id == Sale.id)
        .outerjoin(Product, Product.id == SaleItem.product_id)
        .filter(
            SaleItem.product_id.isnot(None),
            *_range_filter(start, end),
        )
        .group_by(SaleItem.product_id)
        .order_by(quantity_sold.desc(), revenue.desc())
        .limit(limit)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "name": row.current_name or row.snapshot_name,
            "quantity": int(row.quantity or 0),
            "revenue": _money(row.revenue),
            "profit": _money(row.profit),
        }
        for row in rows
    ]


def sales_trend(db: Session, now: datetime, months: int = TREND_MONTHS) -> list[TrendBucket]:
    series_start = _shift_months(now, -(months - 1))

    rows = (
        db.query(Sale.created_at, Sale.total, Sale.total_profit)
        .filter(Sale.created_at >= series_start)
        .all()
    )

    return bucket_trend(rows, now, months)


def build_report(db: Session, period: str, now: datetime) -> dict:
    window = period_window(period, now)

    current = summarize_range(db, window.start)
    previous = summarize_range(db, window.previous_start, window.previous_end)

    return {
        "period": period,
        "start": window.start,
        "end": window.end,
        "stats": build_stats(current, previous),
        "sales_trend": sales_trend(db, now),
        "top_products": top_products(db, window.start),
    }


def dashboard_summary(db: Session, now: datetime) -> dict:
    all_time = (
        db.query(
            func.coalesce(func.sum(Sale.total), 0),
            func.count(Sale.id),
        )
        .one()
    )

    total_profit = (
        db.query(func.coalesce(func.sum(_item_profit()), 0))
        .scalar()
    )

    today_sales = (
        db.query(func.count(Sale.id))
        .filter(Sale.created_at >= _start_of_day(now))
        .scalar()
    )

    total_products = db.query(func.count(Product.id)).scalar()

    products_low_stock = (
        db.query(func.count(func.distinct(Variant.product_id)))
        .filter(Variant.quantity <= settings.LOW_STOCK_THRESHOLD)
        .scalar()
    )

    return {
        "total_sales": all_time[1] or 0,
        "total_revenue": _money(all_time[0]),
        "total_profit": _money(total_profit),
        "today_sales": today_sales or 0,
        "total_products": total_products or 0,
        "products_low_stock": products_low_stock or 0,
    }
