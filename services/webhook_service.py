# services/webhook_service.py
"""
Webhook reconciler for Paystack events.

The signature is an HMAC-SHA512 of the raw request body keyed with the
Paystack secret key, sent hex-encoded in ``x-paystack-signature``. It is
checked before the body is parsed. After that the handler always reports
success to Paystack: a non-200 only makes Paystack retry the same payload.
"""
import hashlib
import hmac
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from exceptions import SignatureInvalid
from schemas.paystack import (
     KNOWN_EVENTS,
     ChargeAbandonedEvent,
     ChargeFailedEvent,
     ChargeSuccessEvent,
     WebhookEnvelope,
     webhook_event_adapter,
)
from services.payment_store import as_naive_utc
from services.settlement import (
     ChargeConfirmation,
     ConfirmationSender,
     record_charge_attempt,
     settle_payment,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


def compute_signature(raw_body: bytes, secret: str) -> str:
     return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> None:
     """Raise SignatureInvalid unless ``signature`` matches the body (constant-time compare)."""
     if not signature:
          raise SignatureInvalid("Missing signature")
     expected = compute_signature(raw_body, secret)
     if not hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8")):
          raise SignatureInvalid("Invalid signature")


def parse_event(raw_body: bytes):
     """
     Validate the payload into one of the charge event models.

     Returns None for event types we do not handle. Raises ValidationError
     for malformed payloads of a known type.
     """
     envelope = WebhookEnvelope.model_validate_json(raw_body)
     if envelope.event not in KNOWN_EVENTS:
          return None
     return webhook_event_adapter.validate_json(raw_body)


def dispatch_event(db: Session, event, send_confirmation: Optional[ConfirmationSender] = None) -> None:
     data = event.data
     if isinstance(event, ChargeSuccessEvent):
          settle_payment(
               db,
               ChargeConfirmation(
                    reference=data.reference,
                    amount=data.amount,
                    paid_at=as_naive_utc(data.paid_at),
                    channel=data.channel,
                    source="webhook",
               ),
               send_confirmation,
          )
     elif isinstance(event, ChargeFailedEvent):
          reason = data.message or data.gateway_response or "Unknown error"
          record_charge_attempt(db, data.reference, f"Paystack payment failed: {reason}")
     elif isinstance(event, ChargeAbandonedEvent):
          record_charge_attempt(db, data.reference, "Paystack payment abandoned")


def handle_webhook(
     db: Session,
     raw_body: bytes,
     signature: Optional[str],
     secret: str,
     send_confirmation: Optional[ConfirmationSender] = None,
) -> dict:
     """
     Verify and apply one webhook delivery.

     Raises SignatureInvalid on a bad signature. Every other failure is logged
     and swallowed so the endpoint can acknowledge with 200.
     """
     verify_signature(raw_body, signature, secret)

     try:
          event = parse_event(raw_body)
     except (ValidationError, ValueError):
          logger.exception("Webhook: malformed payload")
          return {"received": True}

     if event is None:
          logger.info("Webhook: unhandled event %s", WebhookEnvelope.model_validate_json(raw_body).event)
          return {"received": True}

     logger.info("Paystack webhook event: %s %s", event.event, event.data.reference)
     try:
          dispatch_event(db, event, send_confirmation)
     except Exception:
          logger.exception("Webhook: error handling %s for %s", event.event, event.data.reference)
     return {"received": True}
