"""
Financial reporting calculations.

Pure functions over payments and expenses that have already been scoped to
one landlord. Nothing here touches the database; objects only need the
attributes the ORM models expose (amount, late_fee, status, due_date, date,
category, lease.unit.property, property).
"""
import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from exceptions import ValidationFailed
from models import PaymentStatus

ZERO = Decimal("0")
END_OF_DAY = time(23, 59, 59)
ALL_TIME_START = datetime(2000, 1, 1)
ALL_TIME_END = datetime(2099, 12, 31, 23, 59, 59)


class TimeRange(str, enum.Enum):
     MONTH = "month"
     QUARTER = "quarter"
     YEAR = "year"
     ALL = "all"
     CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
     start: datetime
     end: datetime


@dataclass
class IncomeMetrics:
     total_income: Decimal = ZERO
     paid_income: Decimal = ZERO
     pending_income: Decimal = ZERO
     overdue_income: Decimal = ZERO


@dataclass
class ExpenseMetrics:
     total_expenses: Decimal = ZERO
     by_category: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class ProfitLoss:
     income: Decimal
     expenses: Decimal
     net_profit: Decimal
     margin: Decimal  # percentage


@dataclass
class PropertyMetrics:
     property_id: int
     property_name: str
     income: Decimal = ZERO
     expenses: Decimal = ZERO
     net_profit: Decimal = ZERO
     margin: Decimal = ZERO


def _last_day_of_month(year: int, month: int) -> date:
     if month == 12:
          return date(year, 12, 31)
     return date(year, month + 1, 1) - timedelta(days=1)


def date_range_for(
     range_kind: TimeRange | str,
     reference: Optional[date] = None,
     custom_start: Optional[date] = None,
     custom_end: Optional[date] = None,
) -> DateRange:
     """
     Resolve a named reporting window.

     Ends are inclusive and normalised to 23:59:59 on the last day. Unknown
     kinds fall back to all time.
     """
     ref = reference or date.today()
     if isinstance(ref, datetime):
          ref = ref.date()
     try:
          kind = TimeRange(range_kind)
     except ValueError:
          kind = TimeRange.ALL

     if kind == TimeRange.MONTH:
          start = date(ref.year, ref.month, 1)
          end = _last_day_of_month(ref.year, ref.month)
     elif kind == TimeRange.QUARTER:
          first_month = (ref.month - 1) // 3 * 3 + 1
          start = date(ref.year, first_month, 1)
          end = _last_day_of_month(ref.year, first_month + 2)
     elif kind == TimeRange.YEAR:
          start = date(ref.year, 1, 1)
          end = date(ref.year, 12, 31)
     elif kind == TimeRange.CUSTOM:
          if custom_start is None or custom_end is None:
               raise ValidationFailed("Custom date range requires both start and end dates")
          start_dt = custom_start if isinstance(custom_start, datetime) else datetime.combine(custom_start, time.min)
          end_day = custom_end.date() if isinstance(custom_end, datetime) else custom_end
          return DateRange(start=start_dt, end=datetime.combine(end_day, END_OF_DAY))
     else:
          return DateRange(start=ALL_TIME_START, end=ALL_TIME_END)

     return DateRange(start=datetime.combine(start, time.min), end=datetime.combine(end, END_OF_DAY))


def time_range_label(
     range_kind: TimeRange | str,
     custom_start: Optional[date] = None,
     custom_end: Optional[date] = None,
) -> str:
     try:
          kind = TimeRange(range_kind)
     except ValueError:
          kind = TimeRange.ALL
     if kind == TimeRange.MONTH:
          return "This Month"
     if kind == TimeRange.QUARTER:
          return "This Quarter"
     if kind == TimeRange.YEAR:
          return "This Year"
     if kind == TimeRange.CUSTOM:
          if custom_start and custom_end:
               return f"{custom_start:%d %b %Y} - {custom_end:%d %b %Y}"
          return "Custom Range"
     return "All Time"


def _as_datetime(value) -> datetime:
     if isinstance(value, datetime):
          return value
     return datetime.combine(value, time.min)


def _in_range(value, start: Optional[datetime], end: Optional[datetime]) -> bool:
     if value is None:
          return False
     moment = _as_datetime(value)
     if start is not None and moment < start:
          return False
     if end is not None and moment > end:
          return False
     return True


def _payment_total(payment) -> Decimal:
     return Decimal(payment.amount or 0) + Decimal(payment.late_fee or 0)


def income_metrics(payments: Iterable, start: Optional[datetime] = None, end: Optional[datetime] = None) -> IncomeMetrics:
     """Sum amount + late fee by status for payments due within the window."""
     metrics = IncomeMetrics()
     for payment in payments:
          if not _in_range(payment.due_date, start, end):
               continue
          total = _payment_total(payment)
          if payment.status == PaymentStatus.PAID:
               metrics.paid_income += total
          elif payment.status == PaymentStatus.PENDING:
               metrics.pending_income += total
          elif payment.status == PaymentStatus.OVERDUE:
               metrics.overdue_income += total
     metrics.total_income = metrics.paid_income + metrics.pending_income + metrics.overdue_income
     return metrics


def group_expenses_by_category(expenses: Iterable) -> dict[str, Decimal]:
     grouped: dict[str, Decimal] = {}
     for expense in expenses:
          category = getattr(expense.category, "value", expense.category)
          grouped[category] = grouped.get(category, ZERO) + Decimal(expense.amount or 0)
     return grouped


def expense_metrics(expenses: Iterable, start: Optional[datetime] = None, end: Optional[datetime] = None) -> ExpenseMetrics:
     in_window = [e for e in expenses if _in_range(e.date, start, end)]
     return ExpenseMetrics(
          total_expenses=sum((Decimal(e.amount or 0) for e in in_window), ZERO),
          by_category=group_expenses_by_category(in_window),
     )


def _margin(income: Decimal, net_profit: Decimal) -> Decimal:
     if income <= 0:
          return ZERO
     return net_profit / income * 100


def profit_loss(paid_income: Decimal, total_expenses: Decimal) -> ProfitLoss:
     income = Decimal(paid_income)
     expenses = Decimal(total_expenses)
     net_profit = income - expenses
     return ProfitLoss(income=income, expenses=expenses, net_profit=net_profit, margin=_margin(income, net_profit))


def per_property_metrics(
     payments: Iterable,
     expenses: Iterable,
     start: Optional[datetime] = None,
     end: Optional[datetime] = None,
) -> list[PropertyMetrics]:
     """
     PAID income (via lease -> unit -> property) and expenses (via the expense's
     own property) per property, sorted by net profit descending. Expenses with
     no property are general overhead and are left out.
     """
     by_property: dict[int, PropertyMetrics] = {}

     def bucket(prop) -> PropertyMetrics:
          if prop.id not in by_property:
               by_property[prop.id] = PropertyMetrics(property_id=prop.id, property_name=prop.name)
          return by_property[prop.id]

     for payment in payments:
          lease = getattr(payment, "lease", None)
          unit = getattr(lease, "unit", None)
          prop = getattr(unit, "property", None)
          if prop is None or payment.status != PaymentStatus.PAID:
               continue
          if not _in_range(payment.due_date, start, end):
               continue
          bucket(prop).income += _payment_total(payment)

     for expense in expenses:
          prop = getattr(expense, "property", None)
          if prop is None or not _in_range(expense.date, start, end):
               continue
          bucket(prop).expenses += Decimal(expense.amount or 0)

     for metrics in by_property.values():
          metrics.net_profit = metrics.income - metrics.expenses
          metrics.margin = _margin(metrics.income, metrics.net_profit)

     return sorted(by_property.values(), key=lambda m: m.net_profit, reverse=True)
