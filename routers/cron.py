# routers/cron.py
"""
Scheduled maintenance endpoint, called by the platform scheduler with
``Authorization: Bearer <CRON_SECRET>``.
"""
import hmac
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_session
from schemas.lease import LeaseSweepResponse
from services.occupancy_service import expire_leases
from services.payment_store import mark_overdue_payments

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(request: Request) -> None:
     if not settings.CRON_SECRET:
          logger.error("Cron endpoint called but CRON_SECRET is not configured")
          raise HTTPException(status_code=500, detail="Server configuration error")
     auth = request.headers.get("Authorization") or ""
     expected = f"Bearer {settings.CRON_SECRET}"
     if not hmac.compare_digest(auth.encode("utf-8"), expected.encode("utf-8")):
          raise HTTPException(status_code=401, detail="Unauthorized")


@router.get("/update-leases", response_model=LeaseSweepResponse, dependencies=[Depends(verify_cron_secret)])
def update_leases(db: Session = Depends(get_session)):
     now = datetime.now()
     report = expire_leases(db, now)
     overdue = mark_overdue_payments(db, now.date())
     db.commit()

     message = f"Updated {report.updated_count} expired lease(s)"
     if report.failed:
          message += f", {len(report.failed)} failed"
     return LeaseSweepResponse(
          success=not report.failed,
          updated_count=report.updated_count,
          failed_count=len(report.failed),
          overdue_payments=overdue,
          message=message,
          timestamp=now,
     )
