# utils/email.py
"""
Transactional email through the Brevo SMTP API.

Only the payment confirmation lives here; callers treat delivery as best
effort and catch NotificationError.
"""
from datetime import datetime
from decimal import Decimal
from html import escape

import requests

from config import settings
from exceptions import NotificationError

BREVO_URL = "https://api.brevo.com/v3/smtp/email"


def format_amount(amount: Decimal, currency: str) -> str:
     return f"{currency} {Decimal(amount):,.2f}"


def send_payment_confirmation_email(
     tenant_email: str,
     tenant_name: str,
     amount: Decimal,
     currency: str,
     paid_date: datetime,
     property_name: str,
     unit_name: str,
     reference: str,
) -> None:
     if not settings.BREVO_API_KEY:
          raise NotificationError("BREVO_API_KEY is not set")

     paid_on = paid_date.strftime("%d %B %Y") if paid_date else ""
     try:
          response = requests.post(
               BREVO_URL,
               headers={
                    "api-key": settings.BREVO_API_KEY,
                    "Content-Type": "application/json",
               },
               json={
                    "sender": {"name": settings.EMAIL_SENDER_NAME, "email": settings.EMAIL_SENDER},
                    "to": [{"email": tenant_email, "name": tenant_name}],
                    "subject": f"Payment received - {property_name}",
                    "htmlContent": f"""
                         <h2>Payment received</h2>
                         <p>Hi {escape(tenant_name)},</p>
                         <p>We have received your payment of
                              <strong>{escape(format_amount(amount, currency))}</strong>
                              for {escape(property_name)} - {escape(unit_name)}.</p>
                         <p>Date: {escape(paid_on)}<br>Reference: {escape(reference)}</p>
                    """,
               },
               timeout=10,
          )
     except requests.RequestException as exc:
          raise NotificationError(f"Brevo request failed: {exc}") from exc

     if response.status_code not in (200, 201, 202):
          raise NotificationError(f"Brevo error: {response.text}")
