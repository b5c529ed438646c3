from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List


class VariantCreate(BaseModel):
    title: str = Field(..., min_length=1)
    sku: str | None = None

    pack_size: int = Field(
        1,
        ge=1,
        description="Base units contained in one sale-unit",
    )

    cost_price: Decimal = Field(
        Decimal("0"),
        ge=0,
        lt=100_000_000,
        description="Cost per base unit",
    )

    price: Decimal = Field(
        Decimal("0"),
        ge=0,
        lt=100_000_000,
        description="Selling price per sale-unit",
    )

    quantity: int = Field(0, ge=0, description="Stock on hand in base units")


class VariantUpdate(BaseModel):
    title: str | None = None
    sku: str | None = None
    pack_size: int | None = Field(None, ge=1)
    cost_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    quantity: int | None = Field(None, ge=0)


class VariantResponse(BaseModel):
    id: int
    title: str
    sku: str | None
    pack_size: int
    cost_price: Decimal
    price: Decimal
    quantity: int

    class Config:
        from_attributes = True


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0, description="Base units to add")


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    sku: str | None = None
    variants: List[VariantCreate] = []


class ProductUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    sku: str | None = None


class ProductResponse(BaseModel):
    id: int
    name: str
    sku: str
    category: str
    # Sum over variants, in base units
    total_quantity: int
    created_at: datetime
    variants: List[VariantResponse]

    class Config:
        from_attributes = True
