"""
Pydantic schemas for expenses and shared expense allocations.
"""
import datetime as dt
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models import ExpenseCategory, PaymentType


class AllocationIn(BaseModel):
     unit_id: int = Field(..., gt=0)
     percentage: Decimal = Field(..., gt=0, le=100, max_digits=5, decimal_places=2)


class ExpenseCreate(BaseModel):
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     category: ExpenseCategory
     description: str = Field(..., min_length=1, max_length=500)
     date: dt.date
     property_id: Optional[int] = Field(None, gt=0)
     maintenance_request_id: Optional[int] = Field(None, gt=0)
     vendor: Optional[str] = None
     receipt_url: Optional[str] = None
     notes: Optional[str] = None
     is_shared: bool = False
     allocations: Optional[List[AllocationIn]] = Field(
          None, description="Per-unit percentages; omitted means an equal split over the property's units"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": 100.00,
                    "category": "UTILITIES",
                    "description": "Shared water bill",
                    "date": "2024-03-10",
                    "property_id": 1,
                    "is_shared": True,
               }
          }
     )


class AllocationResponse(BaseModel):
     unit_id: int
     percentage: Decimal
     amount: Decimal

     model_config = ConfigDict(from_attributes=True)


class ExpenseResponse(BaseModel):
     id: int
     amount: Decimal
     category: ExpenseCategory
     description: str
     date: dt.date
     property_id: Optional[int] = None
     maintenance_request_id: Optional[int] = None
     is_shared: bool
     allocations: List[AllocationResponse] = []

     model_config = ConfigDict(from_attributes=True)


class RequestedPayment(BaseModel):
     id: int
     lease_id: int
     amount: Decimal
     payment_type: PaymentType

     model_config = ConfigDict(from_attributes=True)


class SkippedUnitResponse(BaseModel):
     unit_id: int
     unit_name: str
     reason: str

     model_config = ConfigDict(from_attributes=True)


class RequestPaymentResponse(BaseModel):
     created: List[RequestedPayment]
     skipped: List[SkippedUnitResponse]
     message: str
