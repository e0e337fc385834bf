# models/payment.py
"""
Payment model - a single amount owed under a lease.

Created manually by the landlord, by a payment link, or from a shared expense
allocation. Moves to PAID exactly once, through services.settlement.
``notes`` is an append-only audit trail: each reconciliation event adds one
timestamped line.
"""
import enum
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
     """Enumeration for payment status."""
     PENDING = "PENDING"
     PAID = "PAID"
     OVERDUE = "OVERDUE"
     PARTIAL = "PARTIAL"
     CANCELLED = "CANCELLED"


class PaymentType(str, enum.Enum):
     RENT = "RENT"
     ELECTRICITY = "ELECTRICITY"
     WATER = "WATER"
     GAS = "GAS"
     INTERNET = "INTERNET"
     MAINTENANCE = "MAINTENANCE"
     SECURITY_DEPOSIT = "SECURITY_DEPOSIT"
     LATE_FEE = "LATE_FEE"
     OTHER = "OTHER"


class Payment(TimestampMixin, Base):
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     lease_id = Column(
          Integer,
          ForeignKey("leases.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

     # Payment details
     amount = Column(Numeric(12, 2), nullable=False)
     late_fee = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     due_date = Column(Date, nullable=False, index=True)
     paid_date = Column(DateTime, nullable=True)
     status = Column(
          Enum(PaymentStatus, name="payment_status", create_constraint=True),
          default=PaymentStatus.PENDING,
          nullable=False,
          index=True
     )
     payment_type = Column(
          Enum(PaymentType, name="payment_type", create_constraint=True),
          default=PaymentType.RENT,
          nullable=False
     )
     payment_method = Column(String(100), nullable=True)

     # Gateway
     reference = Column(String(255), unique=True, nullable=True, index=True)
     checkout_url = Column(String(1000), nullable=True)

     notes = Column(Text, nullable=True)

     # Relationships
     lease = relationship("Lease", back_populates="payments")

     @property
     def is_paid(self) -> bool:
          return self.status == PaymentStatus.PAID

     def __repr__(self):
          return f"<Payment(id={self.id}, amount={self.amount}, status='{self.status.value}', reference={self.reference!r})>"
