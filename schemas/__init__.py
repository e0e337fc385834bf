from .lease import LeaseCreate, LeaseUpdate, LeaseResponse, LeaseSweepResponse
from .payment import (
     PaymentCreate,
     PaymentLinkRequest,
     PaymentLinkResponse,
     PaymentResponse,
)
from .expense import ExpenseCreate, ExpenseResponse, RequestPaymentResponse
from .report import ReportSummary

__all__ = [
     "LeaseCreate",
     "LeaseUpdate",
     "LeaseResponse",
     "LeaseSweepResponse",
     "PaymentCreate",
     "PaymentLinkRequest",
     "PaymentLinkResponse",
     "PaymentResponse",
     "ExpenseCreate",
     "ExpenseResponse",
     "RequestPaymentResponse",
     "ReportSummary",
]
