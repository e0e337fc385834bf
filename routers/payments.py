# routers/payments.py
"""
Payment API.

Landlord side: record payments by hand, list them, and create Paystack
payment links. Tenant side: start checkout for a payment they owe.
Paystack side: the signed webhook that confirms charges.

Marking a payment PAID from Paystack only ever happens through
services.settlement (webhook here, callback in routers.callback).
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config import settings
from database import get_session, transaction
from dependencies import get_confirmation_sender, require_tenant, verify_token
from exceptions import NotFoundError, PaymentAlreadyPaid, SignatureInvalid
from models import PaymentStatus
from schemas.payment import PaymentCreate, PaymentLinkRequest, PaymentLinkResponse, PaymentResponse
from services.occupancy_service import get_owned_lease
from services.payment_store import (
     create_payment,
     get_owned_payment,
     get_payment_for_tenant_user,
     list_payments_for_landlord,
)
from services.paystack import PaystackGateway, get_gateway, initialize_payment_link
from services.settlement import ConfirmationSender, currency_for
from services.webhook_service import SIGNATURE_HEADER, handle_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["payments"])


def payment_page_url(payment) -> str:
     return f"{settings.APP_BASE_URL.rstrip('/')}/pay/{payment.id}"


def _link_response(payment, initialized, already_initiated: bool) -> PaymentLinkResponse:
     return PaymentLinkResponse(
          payment_id=payment.id,
          reference=initialized.reference,
          authorization_url=initialized.checkout_url,
          payment_link=payment_page_url(payment),
          already_initiated=already_initiated,
     )


@router.get("/payments", response_model=List[PaymentResponse])
def list_payments(
     status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
     lease_id: Optional[int] = None,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     return list_payments_for_landlord(db, token["id"], status=status_filter, lease_id=lease_id)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     return get_owned_payment(db, payment_id, token["id"])


@router.post("/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     """Record a payment made outside Paystack (cash, bank transfer)."""
     lease = get_owned_lease(db, body.lease_id, token["id"])
     with transaction(db):
          payment = create_payment(
               db,
               lease=lease,
               user_id=token["id"],
               amount=body.amount,
               due_date=body.due_date,
               late_fee=body.late_fee,
               payment_type=body.payment_type,
               status=body.status,
               paid_date=body.paid_date,
               payment_method=body.payment_method,
               notes=body.notes,
          )
     return payment


@router.post("/paystack/initialize", response_model=PaymentLinkResponse, status_code=status.HTTP_201_CREATED)
def create_payment_link(
     body: PaymentLinkRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
     gateway: PaystackGateway = Depends(get_gateway),
):
     """
     Create a PENDING payment for a lease and a Paystack checkout link for it.

     The link the landlord shares is the app's own /pay/{id} page, which
     redirects the tenant to Paystack's hosted checkout.
     """
     lease = get_owned_lease(db, body.lease_id, token["id"])
     if lease.tenant is None or not lease.tenant.email:
          raise NotFoundError("Tenant email not found for this lease")

     with transaction(db):
          payment = create_payment(
               db,
               lease=lease,
               user_id=token["id"],
               amount=body.amount,
               due_date=body.due_date,
               payment_type=body.payment_type,
               notes=body.notes,
          )

     initialized = initialize_payment_link(db, gateway, payment, lease.tenant.email, currency_for(payment))
     return _link_response(payment, initialized, already_initiated=False)


@router.post("/tenant-portal/payments/{payment_id}/initiate", response_model=PaymentLinkResponse)
def tenant_initiate_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
     gateway: PaystackGateway = Depends(get_gateway),
):
     auth_user_id = require_tenant(token)
     payment = get_payment_for_tenant_user(db, payment_id, auth_user_id)
     if payment.is_paid:
          raise PaymentAlreadyPaid("Payment has already been completed")

     already_initiated = bool(payment.reference and payment.checkout_url)
     initialized = initialize_payment_link(db, gateway, payment, payment.lease.tenant.email, currency_for(payment))
     return _link_response(payment, initialized, already_initiated=already_initiated)


@router.post("/paystack/webhook")
async def paystack_webhook(
     request: Request,
     db: Session = Depends(get_session),
     send_confirmation: ConfirmationSender = Depends(get_confirmation_sender),
):
     """
     Paystack event receiver. Answers 401 on a bad signature and 200 for
     everything else, including events we could not apply.
     """
     if not settings.PAYSTACK_SECRET_KEY:
          logger.error("Webhook received but PAYSTACK_SECRET_KEY is not configured")
          return JSONResponse(status_code=500, content={"message": "Server configuration error"})

     raw_body = await request.body()
     try:
          result = handle_webhook(
               db,
               raw_body,
               request.headers.get(SIGNATURE_HEADER),
               settings.PAYSTACK_SECRET_KEY,
               send_confirmation,
          )
     except SignatureInvalid as exc:
          logger.warning("Webhook rejected: %s", exc.message)
          return JSONResponse(status_code=401, content={"message": exc.message})
     return result
