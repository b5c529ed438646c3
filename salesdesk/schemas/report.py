# schemas/report.py

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import List



class DashboardSummaryResponse(BaseModel):
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    today_sales: int
    total_products: int
    products_low_stock: int


class PeriodStatsResponse(BaseModel):
    total_sales: Decimal
    total_profit: Decimal
    total_orders: int
    avg_order_value: Decimal
    profit_margin: Decimal
    growth_rate: Decimal

    class Config:
        from_attributes = True


class TrendPointResponse(BaseModel):
    year: int
    month: int
    label: str
    sales: Decimal
    profit: Decimal

    class Config:
        from_attributes = True


class TopProductResponse(BaseModel):
    product_id: int
    name: str
    quantity: int
    revenue: Decimal
    profit: Decimal


class AnalyticsReportResponse(BaseModel):
    period: str
    start: datetime
    end: datetime
    stats: PeriodStatsResponse
    sales_trend: List[TrendPointResponse]
    top_products: List[TopProductResponse]
