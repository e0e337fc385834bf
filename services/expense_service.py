"""
Expense Service - shared expense allocation and payment requests.

A shared expense is split across units by percentage. Percentages must total
100 (within ALLOCATION_TOLERANCE) before anything is written. When the split
is an exact 100%, the last unit absorbs the rounding remainder so that the
allocated amounts add up to the expense amount to the cent.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from database import transaction
from exceptions import AllocationPercentageInvalid, NotFoundError, PermissionDenied, ValidationFailed
from models import (
     Expense,
     ExpenseAllocation,
     ExpenseCategory,
     Lease,
     LeaseStatus,
     MaintenanceRequest,
     Payment,
     PaymentType,
     Property,
     Unit,
)
from services.payment_store import create_payment

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
CENTS = Decimal("0.01")
ALLOCATION_TOLERANCE = Decimal("0.5")

CATEGORY_PAYMENT_TYPES = {
     ExpenseCategory.MAINTENANCE: PaymentType.MAINTENANCE,
     ExpenseCategory.REPAIRS: PaymentType.MAINTENANCE,
}


@dataclass(frozen=True)
class AllocationShare:
     unit_id: int
     percentage: Decimal
     amount: Decimal


@dataclass(frozen=True)
class SkippedUnit:
     unit_id: int
     unit_name: str
     reason: str = "no active lease"


def _cents(value: Decimal) -> Decimal:
     return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def allocation_amount(expense_amount: Decimal, percentage: Decimal) -> Decimal:
     """expense.amount * percentage / 100, rounded to cents."""
     return _cents(Decimal(expense_amount) * Decimal(percentage) / HUNDRED)


def validate_allocation_total(percentages: Iterable[Decimal]) -> Decimal:
     total = sum((Decimal(p) for p in percentages), Decimal("0"))
     if abs(total - HUNDRED) > ALLOCATION_TOLERANCE:
          raise AllocationPercentageInvalid(total)
     return total


def equal_percentages(count: int) -> list[Decimal]:
     """Equal split to two decimals; the last share takes the remainder so the sum is exactly 100."""
     if count <= 0:
          return []
     share = _cents(HUNDRED / count)
     return [share] * (count - 1) + [HUNDRED - share * (count - 1)]


def build_allocations(
     amount: Decimal,
     allocations: Optional[Sequence[tuple[int, Decimal]]],
     unit_ids: Sequence[int],
) -> list[AllocationShare]:
     """
     Turn requested (unit_id, percentage) pairs, or an equal split over
     ``unit_ids`` when none are given, into allocation shares.

     Raises AllocationPercentageInvalid when supplied percentages are off 100.
     """
     amount = _cents(amount)
     if allocations:
          unit_order = [unit_id for unit_id, _ in allocations]
          percentages = [_cents(pct) for _, pct in allocations]
          total = validate_allocation_total(percentages)
     else:
          unit_order = list(unit_ids)
          percentages = equal_percentages(len(unit_order))
          total = HUNDRED if unit_order else Decimal("0")

     amounts = [allocation_amount(amount, pct) for pct in percentages]
     if amounts and total == HUNDRED:
          amounts[-1] = amount - sum(amounts[:-1], Decimal("0"))

     return [
          AllocationShare(unit_id=unit_id, percentage=pct, amount=share)
          for unit_id, pct, share in zip(unit_order, percentages, amounts)
     ]


def _owned_property(db: Session, property_id: int, user_id: int) -> Property:
     prop = db.query(Property).filter(Property.id == property_id).first()
     if prop is None:
          raise NotFoundError("Property not found")
     if prop.user_id != user_id:
          raise PermissionDenied("Unauthorized")
     return prop


def create_expense(db: Session, user_id: int, data) -> Expense:
     """
     Create an expense (and its allocations when shared) in one transaction.

     ``data`` is an ``schemas.expense.ExpenseCreate``. A linked maintenance
     request must belong to the landlord and supplies the property when none
     is given.
     """
     property_id = data.property_id
     if property_id is not None:
          _owned_property(db, property_id, user_id)

     if data.maintenance_request_id is not None:
          request = (
               db.query(MaintenanceRequest)
               .join(Unit, MaintenanceRequest.unit_id == Unit.id)
               .join(Property, Unit.property_id == Property.id)
               .filter(MaintenanceRequest.id == data.maintenance_request_id, Property.user_id == user_id)
               .first()
          )
          if request is None:
               raise NotFoundError("Maintenance request not found or access denied")
          if property_id is None:
               property_id = request.unit.property_id

     shares: list[AllocationShare] = []
     if data.is_shared:
          if property_id is None:
               raise ValidationFailed("A shared expense needs a property")
          property_unit_ids = [
               unit_id for (unit_id,) in db.query(Unit.id).filter(Unit.property_id == property_id).order_by(Unit.id)
          ]
          requested = [(a.unit_id, a.percentage) for a in (data.allocations or [])]
          foreign = {unit_id for unit_id, _ in requested} - set(property_unit_ids)
          if foreign:
               raise ValidationFailed(f"Units {sorted(foreign)} do not belong to this property")
          shares = build_allocations(data.amount, requested, property_unit_ids)

     with transaction(db):
          expense = Expense(
               user_id=user_id,
               property_id=property_id,
               maintenance_request_id=data.maintenance_request_id,
               amount=_cents(data.amount),
               category=data.category,
               description=data.description.strip(),
               date=data.date,
               vendor=(data.vendor or "").strip() or None,
               receipt_url=(data.receipt_url or "").strip() or None,
               notes=(data.notes or "").strip() or None,
               is_shared=bool(data.is_shared),
          )
          db.add(expense)
          db.flush()
          for share in shares:
               db.add(ExpenseAllocation(
                    expense_id=expense.id,
                    unit_id=share.unit_id,
                    percentage=share.percentage,
                    amount=share.amount,
               ))
          db.flush()

     logger.info("Expense %s created (%s allocations)", expense.id, len(shares))
     return expense


def request_allocation_payments(
     db: Session,
     expense_id: int,
     user_id: int,
     due_date: Optional[date] = None,
) -> tuple[list[Payment], list[SkippedUnit]]:
     """
     Create one PENDING payment per allocated unit that has an ACTIVE lease.
     Units without one are skipped and reported instead of getting an orphaned payment.
     """
     expense = (
          db.query(Expense)
          .options(joinedload(Expense.allocations).joinedload(ExpenseAllocation.unit))
          .filter(Expense.id == expense_id)
          .first()
     )
     if expense is None:
          raise NotFoundError("Expense not found")
     if expense.user_id != user_id:
          raise PermissionDenied("Unauthorized")
     if not expense.is_shared or not expense.allocations:
          raise ValidationFailed("Expense is not a shared expense or has no allocations")

     payment_type = CATEGORY_PAYMENT_TYPES.get(expense.category, PaymentType.OTHER)
     due = due_date or date.today()
     created: list[Payment] = []
     skipped: list[SkippedUnit] = []

     with transaction(db):
          for allocation in expense.allocations:
               active_lease = (
                    db.query(Lease)
                    .filter(Lease.unit_id == allocation.unit_id, Lease.status == LeaseStatus.ACTIVE)
                    .order_by(Lease.id)
                    .first()
               )
               if active_lease is None:
                    skipped.append(SkippedUnit(unit_id=allocation.unit_id, unit_name=allocation.unit.name))
                    continue
               created.append(create_payment(
                    db,
                    lease=active_lease,
                    user_id=user_id,
                    amount=allocation.amount,
                    due_date=due,
                    payment_type=payment_type,
                    notes=f"Building expense: {expense.description}",
               ))

     logger.info(
          "Expense %s: requested %s payment(s), skipped %s unit(s)",
          expense.id, len(created), len(skipped),
     )
     return created, skipped
