# services/callback_service.py
"""
Callback reconciler - runs when the tenant's browser returns from Paystack.

Covers the case where the webhook is late or never reaches us (localhost,
NAT). The outcome is a display state for the callback page; any settlement
goes through services.settlement so it cannot double-credit with the webhook.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from database import transaction
from exceptions import GatewayError
from models import Payment
from services.payment_store import append_note, find_payment_by_id, lock_payment, update_payment
from services.paystack import PaystackGateway, payment_reference
from services.settlement import (
     ChargeConfirmation,
     ConfirmationSender,
     SettlementOutcome,
     notify_payment_confirmed,
     settle_payment,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "Paystack"


class CallbackState(str, enum.Enum):
     PAID = "PAID"
     FAILED = "FAILED"
     PROCESSING = "PROCESSING"
     VERIFICATION_ERROR = "VERIFICATION_ERROR"
     NOT_FOUND = "NOT_FOUND"


@dataclass
class CallbackResult:
     state: CallbackState
     payment: Optional[Payment] = None
     message: Optional[str] = None
     transaction_status: Optional[str] = None
     newly_settled: bool = False


def pick_transaction_token(trxref: Optional[str], reference: Optional[str]) -> Optional[str]:
     """Paystack sends ``trxref`` and ``reference``; either may be missing."""
     for value in (trxref, reference):
          if value and value.strip():
               return value.strip()
     return None


def backfill_confirmation(db: Session, payment: Payment, send_confirmation: Optional[ConfirmationSender]) -> bool:
     """
     For a PAID payment that never got a payment method (so never a confirmation
     email), record the method and send the email. The guarded UPDATE makes
     sure only one request does this.
     """
     if payment.payment_method:
          return False
     with transaction(db):
          # Notes are rebuilt from the locked row so a concurrent audit line is kept.
          locked = lock_payment(db, payment.id)
          if locked is None or locked.payment_method:
               return False
          claimed = db.execute(
               update(Payment)
               .where(Payment.id == payment.id, Payment.payment_method.is_(None))
               .values(
                    payment_method=DEFAULT_PAYMENT_METHOD,
                    notes=append_note(locked.notes, "Payment method backfilled from callback"),
               )
               .execution_options(synchronize_session="fetch")
          )
     if claimed.rowcount != 1:
          return False
     notify_payment_confirmed(payment, send_confirmation)
     return True


def reconcile_callback(
     db: Session,
     payment_id: int,
     token: Optional[str],
     gateway: PaystackGateway,
     send_confirmation: Optional[ConfirmationSender] = None,
) -> CallbackResult:
     payment = find_payment_by_id(db, payment_id)
     if payment is None:
          return CallbackResult(CallbackState.NOT_FOUND)

     if payment.is_paid:
          backfill_confirmation(db, payment, send_confirmation)
          return CallbackResult(CallbackState.PAID, payment)

     if not token:
          return CallbackResult(CallbackState.PROCESSING, payment)

     # Release the read transaction before calling Paystack.
     db.commit()
     try:
          verification = gateway.verify(token)
     except GatewayError as exc:
          logger.exception("Payment verification error for payment %s (token %s)", payment.id, token)
          return CallbackResult(CallbackState.VERIFICATION_ERROR, payment, message=exc.message)

     expected_reference = payment.reference or payment_reference(payment)
     if verification.reference != expected_reference:
          logger.error(
               "Callback token %s verified as %s, which does not belong to payment %s (%s)",
               token, verification.reference, payment.id, expected_reference,
          )
          return CallbackResult(
               CallbackState.VERIFICATION_ERROR,
               payment,
               message="Transaction does not match this payment",
          )

     if not verification.succeeded:
          return CallbackResult(
               CallbackState.FAILED,
               payment,
               message=verification.message,
               transaction_status=verification.status,
          )

     if not payment.reference:
          # Paystack accepted the link but the reference write never landed.
          with transaction(db):
               update_payment(db, payment, reference=verification.reference)

     outcome = settle_payment(
          db,
          ChargeConfirmation(
               reference=verification.reference,
               amount=verification.amount,
               paid_at=verification.paid_at,
               channel=verification.channel,
               source="callback",
          ),
          send_confirmation,
     )
     if outcome in (SettlementOutcome.SETTLED, SettlementOutcome.ALREADY_PAID):
          return CallbackResult(
               CallbackState.PAID,
               payment,
               newly_settled=outcome == SettlementOutcome.SETTLED,
          )
     if outcome == SettlementOutcome.AMOUNT_MISMATCH:
          return CallbackResult(
               CallbackState.VERIFICATION_ERROR,
               payment,
               message="The amount charged does not match this payment. Our team will review it.",
          )
     return CallbackResult(CallbackState.VERIFICATION_ERROR, payment, message="Payment could not be matched")
