"""
Pydantic schemas for the lease endpoints.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from models import LeaseStatus, UnitStatus


class LeaseFields(BaseModel):
     """Editable lease attributes shared by create and update."""
     start_date: date = Field(..., description="First day of the lease")
     end_date: date = Field(..., description="Last day of the lease")
     monthly_rent: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     deposit: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
     terms: Optional[str] = None

     @model_validator(mode="after")
     def check_dates(self):
          if self.end_date < self.start_date:
               raise ValueError("end_date must not be before start_date")
          return self

     def editable_fields(self) -> dict:
          return {
               "start_date": self.start_date,
               "end_date": self.end_date,
               "monthly_rent": self.monthly_rent,
               "deposit": self.deposit,
               "terms": (self.terms or "").strip() or None,
          }


class LeaseCreate(LeaseFields):
     tenant_id: int = Field(..., gt=0)
     unit_id: int = Field(..., gt=0)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "tenant_id": 1,
                    "unit_id": 3,
                    "start_date": "2024-01-01",
                    "end_date": "2024-12-31",
                    "monthly_rent": 250000.00,
                    "deposit": 500000.00,
               }
          }
     )


class LeaseUpdate(LeaseFields):
     status: LeaseStatus = Field(..., description="PENDING, ACTIVE, EXPIRED or TERMINATED")


class LeaseResponse(BaseModel):
     id: int
     unit_id: int
     tenant_id: int
     status: LeaseStatus
     monthly_rent: Decimal
     deposit: Decimal
     start_date: date
     end_date: date
     terms: Optional[str] = None
     unit_status: Optional[UnitStatus] = None
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class LeaseSweepResponse(BaseModel):
     success: bool
     updated_count: int
     failed_count: int
     overdue_payments: int
     message: str
     timestamp: datetime
