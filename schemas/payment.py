"""
Pydantic schemas for payment records and Paystack payment links.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models import PaymentStatus, PaymentType


class PaymentCreate(BaseModel):
     """Request body for POST /api/payments (landlord records a payment by hand)."""

     lease_id: int = Field(..., gt=0)
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     late_fee: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
     due_date: date
     status: PaymentStatus = PaymentStatus.PENDING
     payment_type: PaymentType = PaymentType.RENT
     paid_date: Optional[datetime] = None
     payment_method: Optional[str] = Field(None, max_length=100)
     notes: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "lease_id": 1,
                    "amount": 250000.00,
                    "due_date": "2024-06-01",
                    "status": "PAID",
                    "paid_date": "2024-06-01T09:30:00",
                    "payment_method": "Bank transfer",
               }
          }
     )


class PaymentLinkRequest(BaseModel):
     """Request body for POST /api/paystack/initialize."""

     lease_id: int = Field(..., gt=0)
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     due_date: date
     payment_type: PaymentType = PaymentType.RENT
     notes: Optional[str] = None


class PaymentLinkResponse(BaseModel):
     payment_id: int
     reference: str
     authorization_url: str
     payment_link: str
     already_initiated: bool = False


class PaymentResponse(BaseModel):
     id: int
     lease_id: int
     amount: Decimal
     late_fee: Decimal
     due_date: date
     paid_date: Optional[datetime] = None
     status: PaymentStatus
     payment_type: PaymentType
     payment_method: Optional[str] = None
     reference: Optional[str] = None
     checkout_url: Optional[str] = None
     notes: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)
