"""
Payment Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from app.models.activity import PaymentMethod


class PaymentCreate(BaseModel):
    """Log a payment received at the front desk"""
    member_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    payment_date: date = Field(default_factory=date.today)
    notes: Optional[str] = Field(None, max_length=500)


class PaymentResponse(BaseModel):
    id: int
    organization_id: int
    member_id: int
    family_group_id: Optional[int] = None
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    recorded_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
