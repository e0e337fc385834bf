# routers/expenses.py
"""
Expense API routes: create expenses (optionally shared across units) and
turn a shared expense's allocations into tenant payments.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from schemas.expense import (
     ExpenseCreate,
     ExpenseResponse,
     RequestedPayment,
     RequestPaymentResponse,
     SkippedUnitResponse,
)
from services.expense_service import create_expense, request_allocation_payments

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense_route(
     body: ExpenseCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     expense = create_expense(db, token["id"], body)
     db.refresh(expense)
     return expense


@router.post("/{expense_id}/request-payment", response_model=RequestPaymentResponse)
def request_payment_route(
     expense_id: int,
     due_date: Optional[date] = Query(None, description="Defaults to today"),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     """One PENDING payment per allocated unit with an active lease."""
     created, skipped = request_allocation_payments(db, expense_id, token["id"], due_date=due_date)
     message = f"Created {len(created)} payment request(s)"
     if skipped:
          message += f"; skipped {len(skipped)} unit(s) without an active lease"
     return RequestPaymentResponse(
          created=[RequestedPayment.model_validate(p) for p in created],
          skipped=[SkippedUnitResponse.model_validate(s) for s in skipped],
          message=message,
     )
