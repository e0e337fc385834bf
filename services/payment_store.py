"""
Payment Record Store - query and write access to Payment rows.

All landlord-facing reads are scoped through lease -> unit -> property -> user,
tenant-facing reads through lease -> tenant -> auth_user_id.

Money helpers live here too: the gateway speaks integer minor units
(kobo, pence, cents) while the database stores Decimal major units.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from exceptions import NotFoundError, PermissionDenied
from models import Lease, Payment, PaymentStatus, PaymentType, Property, Tenant, Unit

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
     """Convert a major-unit amount to the gateway's integer minor units."""
     return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
     return (Decimal(amount) / 100).quantize(CENTS)


def utcnow() -> datetime:
     return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
     """Columns hold naive UTC; normalise aware gateway timestamps to that."""
     if value is None or value.tzinfo is None:
          return value
     return value.astimezone(timezone.utc).replace(tzinfo=None)


def append_note(existing: Optional[str], line: str, at: Optional[datetime] = None) -> str:
     """
     Return ``existing`` with one timestamped audit line appended.

     Earlier lines are never rewritten, so the whole reconciliation history of
     a payment can be read back from this single field.
     """
     stamp = (at or utcnow()).strftime("%Y-%m-%dT%H:%M:%SZ")
     entry = f"[{stamp}] {line}"
     if not existing:
          return entry
     return f"{existing.rstrip()}\n{entry}"


def _with_relations(query):
     return query.options(
          joinedload(Payment.lease).joinedload(Lease.tenant),
          joinedload(Payment.lease).joinedload(Lease.unit).joinedload(Unit.property),
     )


def find_payment_by_reference(db: Session, reference: str) -> Optional[Payment]:
     if not reference:
          return None
     return _with_relations(db.query(Payment)).filter(Payment.reference == reference).first()


def find_payment_by_id(db: Session, payment_id: int) -> Optional[Payment]:
     return _with_relations(db.query(Payment)).filter(Payment.id == payment_id).first()


def lock_payment(db: Session, payment_id: int) -> Optional[Payment]:
     """
     Re-read a payment inside the current transaction with a row lock.

     ``populate_existing`` discards any stale copy held in the identity map so
     the status seen here is the committed one.
     """
     return (
          db.query(Payment)
          .filter(Payment.id == payment_id)
          .with_for_update()
          .populate_existing()
          .first()
     )


def update_payment(db: Session, payment: Payment, **fields) -> Payment:
     for name, value in fields.items():
          setattr(payment, name, value)
     db.flush()
     return payment


def mark_paid_if_unpaid(
     db: Session,
     payment_id: int,
     paid_date: datetime,
     payment_method: str,
     notes: str,
) -> bool:
     """
     Guarded write: set PAID only if the row is not already PAID.

     Returns True when this call performed the transition. Combined with the
     row lock in ``lock_payment`` this makes settlement at-most-once even when
     the database ignores ``FOR UPDATE``.
     """
     result = db.execute(
          update(Payment)
          .where(Payment.id == payment_id, Payment.status != PaymentStatus.PAID)
          .values(
               status=PaymentStatus.PAID,
               paid_date=paid_date,
               payment_method=payment_method,
               notes=notes,
          )
          .execution_options(synchronize_session="fetch")
     )
     return result.rowcount == 1


def ensure_payment_owner(payment: Payment, user_id: int) -> None:
     if payment.lease.unit.property.user_id != user_id:
          raise PermissionDenied("Unauthorized")


def get_owned_payment(db: Session, payment_id: int, user_id: int) -> Payment:
     payment = find_payment_by_id(db, payment_id)
     if payment is None:
          raise NotFoundError("Payment not found")
     ensure_payment_owner(payment, user_id)
     return payment


def create_payment(
     db: Session,
     lease: Lease,
     user_id: int,
     amount: Decimal,
     due_date: date,
     late_fee: Decimal = Decimal("0.00"),
     payment_type: PaymentType = PaymentType.RENT,
     status: PaymentStatus = PaymentStatus.PENDING,
     paid_date: Optional[datetime] = None,
     payment_method: Optional[str] = None,
     notes: Optional[str] = None,
) -> Payment:
     payment = Payment(
          lease_id=lease.id,
          user_id=user_id,
          amount=amount,
          late_fee=late_fee,
          due_date=due_date,
          status=status,
          payment_type=payment_type,
          paid_date=paid_date,
          payment_method=payment_method,
          notes=notes,
     )
     db.add(payment)
     db.flush()
     return payment


def list_payments_for_landlord(
     db: Session,
     user_id: int,
     status: Optional[PaymentStatus] = None,
     lease_id: Optional[int] = None,
) -> list[Payment]:
     query = (
          _with_relations(db.query(Payment))
          .join(Lease, Payment.lease_id == Lease.id)
          .join(Unit, Lease.unit_id == Unit.id)
          .join(Property, Unit.property_id == Property.id)
          .filter(Property.user_id == user_id)
     )
     if status is not None:
          query = query.filter(Payment.status == status)
     if lease_id is not None:
          query = query.filter(Payment.lease_id == lease_id)
     return query.order_by(Payment.due_date.desc()).all()


def get_payment_for_tenant_user(db: Session, payment_id: int, auth_user_id: int) -> Payment:
     payment = find_payment_by_id(db, payment_id)
     if payment is None:
          raise NotFoundError("Payment not found")
     tenant = db.query(Tenant).filter(Tenant.auth_user_id == auth_user_id).first()
     if tenant is None or payment.lease.tenant_id != tenant.id:
          raise PermissionDenied("Unauthorized - Not your payment")
     return payment


def mark_overdue_payments(db: Session, today: date) -> int:
     """Move PENDING payments past their due date to OVERDUE. Returns the count."""
     result = db.execute(
          update(Payment)
          .where(Payment.status == PaymentStatus.PENDING, Payment.due_date < today)
          .values(status=PaymentStatus.OVERDUE)
          .execution_options(synchronize_session="fetch")
     )
     count = result.rowcount or 0
     if count:
          logger.info("Marked %s payment(s) overdue", count)
     return count
