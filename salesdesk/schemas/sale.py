# schemas/sale.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
from decimal import Decimal

class SaleItemCreate(BaseModel):
    product_id: int
    variant_id: int | None = None
    quantity: int

class CustomerInfo(BaseModel):
    name: str | None = None
    phone: str | None = None

class SaleCreate(BaseModel):
    items: List[SaleItemCreate]
    customer: CustomerInfo | None = None
    request_id: str | None = Field(None, max_length=64)

class SaleProductRef(BaseModel):
    id: int | None
    name: str

class SaleItemResponse(BaseModel):
    product: SaleProductRef
    variant_id: int | None
    variant_title: str
    quantity: int
    units_sold: int
    unit_price: Decimal
    subtotal: Decimal
    cost_at_sale: Decimal
    profit: Decimal

class SaleResponse(BaseModel):
    id: int
    user_id: int
    total: Decimal
    total_profit: Decimal
    customer: CustomerInfo | None
    request_id: str | None
    created_at: datetime
    items: List[SaleItemResponse]
