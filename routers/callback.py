# routers/callback.py
"""
Browser return from Paystack checkout, plus the shareable /pay/{id} page.

These are HTML pages rather than JSON: the tenant lands here directly from
Paystack's hosted checkout. Pages are Jinja2 templates under ``templates/``.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_confirmation_sender
from exceptions import GatewayError
from services.callback_service import CallbackState, pick_transaction_token, reconcile_callback
from services.payment_store import find_payment_by_id
from services.paystack import PaystackGateway, get_gateway, initialize_payment_link
from services.settlement import ConfirmationSender, currency_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pay", tags=["checkout"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

PAGE_TITLES = {
     CallbackState.PAID: "Payment successful",
     CallbackState.FAILED: "Payment failed",
     CallbackState.PROCESSING: "Payment processing",
     CallbackState.VERIFICATION_ERROR: "We could not verify your payment",
     CallbackState.NOT_FOUND: "Payment not found",
}


def _payment_context(payment) -> dict:
     if payment is None:
          return {}
     return {
          "amount": f"{currency_for(payment)} {payment.amount:,.2f}",
          "reference": payment.reference,
     }


def render_payment_page(
     request: Request,
     state: CallbackState,
     payment=None,
     message: Optional[str] = None,
     transaction_status: Optional[str] = None,
) -> HTMLResponse:
     context = {
          "title": PAGE_TITLES[state],
          "state": state.value,
          "message": message,
          "transaction_status": transaction_status,
          **_payment_context(payment),
     }
     status_code = 404 if state == CallbackState.NOT_FOUND else 200
     return templates.TemplateResponse(request, "pay_result.html", context, status_code=status_code)


def render_receipt(request: Request, payment) -> HTMLResponse:
     context = {
          "title": "Payment receipt",
          "paid_on": payment.paid_date.strftime("%d %b %Y") if payment.paid_date else None,
          "payment_method": payment.payment_method,
          **_payment_context(payment),
     }
     return templates.TemplateResponse(request, "pay_receipt.html", context)


@router.get("/{payment_id}/callback", response_class=HTMLResponse)
def payment_callback(
     request: Request,
     payment_id: int,
     trxref: Optional[str] = Query(None),
     reference: Optional[str] = Query(None),
     db: Session = Depends(get_session),
     gateway: PaystackGateway = Depends(get_gateway),
     send_confirmation: ConfirmationSender = Depends(get_confirmation_sender),
):
     token = pick_transaction_token(trxref, reference)
     result = reconcile_callback(db, payment_id, token, gateway, send_confirmation)
     if result.newly_settled:
          # Drop the Paystack query string so a refresh does not re-verify.
          return RedirectResponse(url=f"/pay/{payment_id}", status_code=303)
     return render_payment_page(request, result.state, result.payment, result.message, result.transaction_status)


@router.get("/{payment_id}", response_class=HTMLResponse)
def payment_page(
     request: Request,
     payment_id: int,
     db: Session = Depends(get_session),
     gateway: PaystackGateway = Depends(get_gateway),
):
     """
     Shareable payment link. Sends an unpaid payment to Paystack checkout and
     shows a receipt for a paid one.
     """
     payment = find_payment_by_id(db, payment_id)
     if payment is None:
          return render_payment_page(request, CallbackState.NOT_FOUND)
     if payment.is_paid:
          return render_receipt(request, payment)

     tenant = payment.lease.tenant
     try:
          initialized = initialize_payment_link(db, gateway, payment, tenant.email, currency_for(payment))
     except GatewayError as exc:
          return render_payment_page(request, CallbackState.VERIFICATION_ERROR, payment, message=exc.message)
     return RedirectResponse(url=initialized.checkout_url, status_code=303)
