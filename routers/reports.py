# routers/reports.py
"""
Financial summary for the landlord dashboard.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from database import get_session
from dependencies import verify_token
from models import Expense
from schemas.report import ExpensesOut, IncomeOut, ProfitLossOut, PropertyMetricsOut, ReportSummary
from services.payment_store import list_payments_for_landlord
from services.reports import (
     TimeRange,
     date_range_for,
     expense_metrics,
     income_metrics,
     per_property_metrics,
     profit_loss,
     time_range_label,
)

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/summary", response_model=ReportSummary)
def report_summary(
     range_kind: TimeRange = Query(TimeRange.MONTH, alias="range"),
     start: Optional[date] = Query(None),
     end: Optional[date] = Query(None),
     property_id: Optional[int] = Query(None),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     window = date_range_for(range_kind, custom_start=start, custom_end=end)

     payments = list_payments_for_landlord(db, token["id"])
     expense_query = (
          db.query(Expense)
          .options(joinedload(Expense.property))
          .filter(Expense.user_id == token["id"])
     )
     if property_id is not None:
          payments = [p for p in payments if p.lease.unit.property_id == property_id]
          expense_query = expense_query.filter(Expense.property_id == property_id)
     expenses = expense_query.all()

     income = income_metrics(payments, window.start, window.end)
     spent = expense_metrics(expenses, window.start, window.end)
     return ReportSummary(
          range=range_kind.value,
          label=time_range_label(range_kind, start, end),
          start=window.start,
          end=window.end,
          income=IncomeOut.model_validate(income),
          expenses=ExpensesOut.model_validate(spent),
          profit_loss=ProfitLossOut.model_validate(profit_loss(income.paid_income, spent.total_expenses)),
          properties=[
               PropertyMetricsOut.model_validate(metrics)
               for metrics in per_property_metrics(payments, expenses, window.start, window.end)
          ],
     )
