# services/settlement.py
"""
Settlement - the single routine that marks a payment PAID.

Both the Paystack webhook and the browser callback end up here, so the
at-most-once guarantee lives in one place:

1. Look up the payment by gateway reference (unknown reference: log, stop).
2. Inside one transaction, re-read the row with a lock; already PAID: no-op.
3. Compare the charged amount with the payment's amount due in minor units;
   on mismatch append an ALERT line to the audit trail and leave status alone.
4. Otherwise write PAID, paid date, payment method and a confirmation line
   with a guarded UPDATE (``status != PAID``).
5. After commit, send the tenant a confirmation email. Failures are logged only.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import settings
from database import transaction
from models import Payment
from services.payment_store import (
     append_note,
     find_payment_by_reference,
     lock_payment,
     mark_paid_if_unpaid,
     to_minor_units,
     utcnow,
)

logger = logging.getLogger(__name__)

ConfirmationSender = Callable[..., None]


class SettlementOutcome(str, enum.Enum):
     SETTLED = "SETTLED"
     ALREADY_PAID = "ALREADY_PAID"
     NOT_FOUND = "NOT_FOUND"
     AMOUNT_MISMATCH = "AMOUNT_MISMATCH"


@dataclass(frozen=True)
class ChargeConfirmation:
     """A charge the gateway reports as successful, already authenticated by the caller."""
     reference: str
     amount: int  # minor units
     paid_at: Optional[datetime] = None
     channel: Optional[str] = None
     source: str = "webhook"

     @property
     def payment_method(self) -> str:
          return f"Paystack ({self.channel})" if self.channel else "Paystack"


def settle_payment(
     db: Session,
     charge: ChargeConfirmation,
     send_confirmation: Optional[ConfirmationSender] = None,
) -> SettlementOutcome:
     payment = find_payment_by_reference(db, charge.reference)
     if payment is None:
          logger.warning("Settlement: no payment for reference %s (%s)", charge.reference, charge.source)
          return SettlementOutcome.NOT_FOUND

     if payment.is_paid:
          logger.info("Payment %s already PAID; ignoring duplicate %s", payment.id, charge.source)
          return SettlementOutcome.ALREADY_PAID

     with transaction(db):
          locked = lock_payment(db, payment.id)
          if locked is None or locked.is_paid:
               outcome = SettlementOutcome.ALREADY_PAID
          else:
               expected = to_minor_units(locked.amount)
               if charge.amount != expected:
                    locked.notes = append_note(
                         locked.notes,
                         f"ALERT: Paystack amount mismatch for {charge.reference} "
                         f"(expected {expected}, got {charge.amount})",
                    )
                    db.flush()
                    outcome = SettlementOutcome.AMOUNT_MISMATCH
               else:
                    settled = mark_paid_if_unpaid(
                         db,
                         locked.id,
                         paid_date=charge.paid_at or utcnow(),
                         payment_method=charge.payment_method,
                         notes=append_note(locked.notes, f"Paystack payment confirmed: {charge.reference}"),
                    )
                    outcome = SettlementOutcome.SETTLED if settled else SettlementOutcome.ALREADY_PAID

     if outcome == SettlementOutcome.AMOUNT_MISMATCH:
          logger.error(
               "Amount mismatch for payment %s (reference %s): got %s minor units",
               payment.id, charge.reference, charge.amount,
          )
     elif outcome == SettlementOutcome.SETTLED:
          logger.info("Payment %s marked as PAID via %s", payment.id, charge.source)
          notify_payment_confirmed(payment, send_confirmation)
     return outcome


def record_charge_attempt(db: Session, reference: str, line: str) -> bool:
     """Append an audit line for a failed or abandoned charge. Status is left as is."""
     payment = find_payment_by_reference(db, reference)
     if payment is None:
          logger.warning("Charge attempt for unknown reference %s: %s", reference, line)
          return False
     with transaction(db):
          locked = lock_payment(db, payment.id)
          locked.notes = append_note(locked.notes, line)
          db.flush()
     logger.info("Payment %s: %s", payment.id, line)
     return True


def currency_for(payment: Payment) -> str:
     landlord = payment.lease.unit.property.user
     return (landlord.currency if landlord and landlord.currency else settings.DEFAULT_CURRENCY)


def notify_payment_confirmed(payment: Payment, send_confirmation: Optional[ConfirmationSender]) -> bool:
     """
     Best-effort confirmation email. Returns True when the sender reported success.
     Never raises.
     """
     if send_confirmation is None:
          return False
     try:
          lease = payment.lease
          tenant = lease.tenant
          unit = lease.unit
          send_confirmation(
               tenant_email=tenant.email,
               tenant_name=tenant.full_name,
               amount=payment.amount,
               currency=currency_for(payment),
               paid_date=payment.paid_date,
               property_name=unit.property.name,
               unit_name=unit.name,
               reference=payment.reference,
          )
     except Exception:
          logger.exception("Failed to send payment confirmation for payment %s", payment.id)
          return False
     return True
