from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal


class DebtCreate(BaseModel):
    title: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0, lt=100_000_000)
    reason: str = Field(..., min_length=1)


class DebtStatusUpdate(BaseModel):
    status: Literal["Pending", "Paid", "Rejected"]


class DebtIssuer(BaseModel):
    id: int
    email: str

    class Config:
        from_attributes = True


class DebtResponse(BaseModel):
    id: int
    title: str
    amount: Decimal
    reason: str
    status: str
    issuer: DebtIssuer
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
