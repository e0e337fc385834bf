"""
Shared FastAPI dependencies.

Token issuance happens in the auth service; this side only verifies the
bearer JWT and reads ``id`` and ``role`` from it.
"""
from fastapi import HTTPException, Request
from jose import JWTError, jwt

from config import settings
from services.settlement import ConfirmationSender
from utils.email import send_payment_confirmation_email


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ", 1)[1]
     try:
          payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=403, detail="Invalid token")
     if not payload.get("id"):
          raise HTTPException(status_code=403, detail="Invalid token")
     return payload


def require_tenant(token: dict) -> int:
     if token.get("role") != "tenant":
          raise HTTPException(status_code=401, detail="Unauthorized - Tenants only")
     return token["id"]


def get_confirmation_sender() -> ConfirmationSender:
     return send_payment_confirmation_email
