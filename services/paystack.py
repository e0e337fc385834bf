# services/paystack.py
"""
Paystack gateway adapter.

Two calls against the Paystack REST API, authenticated with the server-held
secret key (never sent to the browser):

- initialize: create a transaction, get back a reference and a hosted checkout URL
- verify: look up a transaction's final status by reference

Amounts are integers in the currency's smallest unit. Nothing here retries:
a failure surfaces as GatewayError and the landlord/tenant re-triggers.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import quote

import requests
from sqlalchemy.orm import Session

from config import settings
from database import transaction
from exceptions import GatewayError
from models import Payment
from services.payment_store import as_naive_utc, to_minor_units, update_payment

logger = logging.getLogger(__name__)

VERIFY_STATUSES = ("success", "failed", "abandoned")


@dataclass(frozen=True)
class InitializedTransaction:
     reference: str
     checkout_url: str
     access_code: Optional[str] = None


@dataclass(frozen=True)
class VerifiedTransaction:
     reference: str
     status: str  # success | failed | abandoned
     amount: int  # minor units
     paid_at: Optional[datetime]
     message: Optional[str] = None
     channel: Optional[str] = None
     currency: Optional[str] = None

     @property
     def succeeded(self) -> bool:
          return self.status == "success"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
     """Parse Paystack's ISO-8601 timestamps (``...Z`` suffix) into naive UTC datetimes."""
     if not value:
          return None
     return as_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


class PaystackGateway:
     """Thin wrapper around the Paystack transaction endpoints."""

     def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: float = 15.0):
          self.secret_key = secret_key
          self.base_url = base_url.rstrip("/")
          self.timeout = timeout

     def _headers(self) -> dict:
          if not self.secret_key:
               raise GatewayError("PAYSTACK_SECRET_KEY is not configured")
          return {
               "Authorization": f"Bearer {self.secret_key}",
               "Content-Type": "application/json",
          }

     def _request(self, method: str, path: str, **kwargs) -> dict:
          url = f"{self.base_url}{path}"
          try:
               response = requests.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
          except requests.RequestException as exc:
               raise GatewayError(f"Paystack request failed: {exc}", raw=str(exc)) from exc

          try:
               body = response.json()
          except ValueError:
               body = {"message": response.text}

          if response.status_code not in (200, 201) or not body.get("status", False):
               message = body.get("message") or f"Paystack returned HTTP {response.status_code}"
               raise GatewayError(message, raw=body)
          return body

     def initialize(
          self,
          email: str,
          amount: int,
          currency: str,
          reference: str,
          callback_url: str,
          metadata: Optional[dict[str, Any]] = None,
     ) -> InitializedTransaction:
          payload = {
               "email": email,
               "amount": amount,
               "currency": currency,
               "reference": reference,
               "callback_url": callback_url,
               "metadata": metadata or {},
          }
          body = self._request("POST", "/transaction/initialize", json=payload)
          data = body.get("data") or {}
          if not data.get("authorization_url") or not data.get("reference"):
               raise GatewayError("Paystack initialize response is missing data", raw=body)
          return InitializedTransaction(
               reference=data["reference"],
               checkout_url=data["authorization_url"],
               access_code=data.get("access_code"),
          )

     def verify(self, reference: str) -> VerifiedTransaction:
          body = self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")
          data = body.get("data") or {}
          status = data.get("status")
          if status not in VERIFY_STATUSES:
               raise GatewayError(f"Unexpected Paystack transaction status: {status!r}", raw=body)
          return VerifiedTransaction(
               reference=data.get("reference") or reference,
               status=status,
               amount=int(data.get("amount") or 0),
               paid_at=parse_timestamp(data.get("paid_at")),
               message=data.get("gateway_response") or data.get("message"),
               channel=data.get("channel"),
               currency=data.get("currency"),
          )


def get_gateway() -> PaystackGateway:
     """FastAPI dependency; overridden in tests."""
     return PaystackGateway(
          secret_key=settings.PAYSTACK_SECRET_KEY,
          base_url=settings.PAYSTACK_BASE_URL,
          timeout=settings.PAYSTACK_TIMEOUT_SECONDS,
     )


def payment_reference(payment: Payment) -> str:
     """Idempotency reference sent to Paystack: derived from the payment's own id."""
     return f"PAY-{payment.id}"


def callback_url_for(payment: Payment) -> str:
     return f"{settings.APP_BASE_URL.rstrip('/')}/pay/{payment.id}/callback"


def initialize_payment_link(
     db: Session,
     gateway: PaystackGateway,
     payment: Payment,
     email: str,
     currency: str,
) -> InitializedTransaction:
     """
     Attach a Paystack checkout link to ``payment``.

     Already-initialized payments (reference and checkout URL both set) get
     their existing link back without calling Paystack. The gateway call runs
     outside any transaction; on GatewayError the payment stays PENDING with no
     reference, which is safe to retry.
     """
     if payment.reference and payment.checkout_url:
          return InitializedTransaction(reference=payment.reference, checkout_url=payment.checkout_url)

     lease = payment.lease
     amount: Decimal = payment.amount
     metadata = {
          "paymentId": payment.id,
          "leaseId": lease.id,
          "tenantId": lease.tenant_id,
          "unitId": lease.unit_id,
          "propertyId": lease.unit.property_id,
     }
     # No transaction may stay open across the network round trip.
     db.commit()
     try:
          initialized = gateway.initialize(
               email=email,
               amount=to_minor_units(amount),
               currency=currency,
               reference=payment_reference(payment),
               callback_url=callback_url_for(payment),
               metadata=metadata,
          )
     except GatewayError:
          logger.exception("Paystack initialize failed for payment %s", payment.id)
          raise

     with transaction(db):
          update_payment(db, payment, reference=initialized.reference, checkout_url=initialized.checkout_url)
     logger.info("Payment %s initialized with reference %s", payment.id, initialized.reference)
     return initialized
