import enum
from sqlalchemy import Column, Integer, Numeric, Date, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class LeaseStatus(str, enum.Enum):
     """Lease lifecycle. EXPIRED and TERMINATED are terminal."""
     PENDING = "PENDING"
     ACTIVE = "ACTIVE"
     EXPIRED = "EXPIRED"
     TERMINATED = "TERMINATED"


TERMINAL_LEASE_STATUSES = frozenset({LeaseStatus.EXPIRED, LeaseStatus.TERMINATED})


class Lease(TimestampMixin, Base):
     """
     Lease model - binds a tenant to a unit for a date range at a monthly rent.
     Status changes that touch occupancy go through services.occupancy_service.
     """
     __tablename__ = "leases"

     id = Column(Integer, primary_key=True, autoincrement=True)
     unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

     status = Column(
          Enum(LeaseStatus, name="lease_status", create_constraint=True),
          default=LeaseStatus.ACTIVE,
          nullable=False,
          index=True
     )

     # Pricing
     monthly_rent = Column(Numeric(12, 2), nullable=False)
     deposit = Column(Numeric(12, 2), nullable=False, default=0)

     # Lease period
     start_date = Column(Date, nullable=False)
     end_date = Column(Date, nullable=False, index=True)

     terms = Column(Text, nullable=True)

     # Relationships
     unit = relationship("Unit", back_populates="leases")
     tenant = relationship("Tenant", back_populates="leases")
     payments = relationship("Payment", back_populates="lease", cascade="all, delete-orphan")

     @property
     def is_terminal(self) -> bool:
          return self.status in TERMINAL_LEASE_STATUSES

     def __repr__(self):
          return f"<Lease(id={self.id}, unit_id={self.unit_id}, tenant_id={self.tenant_id}, status='{self.status.value}')>"
