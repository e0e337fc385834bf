from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class MaintenanceRequest(TimestampMixin, Base):
     """
     MaintenanceRequest model - filed by a tenant against a unit.
     Expenses may be linked to a request; the request's property is then
     used for the expense when none is given.
     """
     __tablename__ = "maintenance_requests"

     id = Column(Integer, primary_key=True, autoincrement=True)
     unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=True)

     title = Column(String(255), nullable=False)
     description = Column(Text, nullable=True)
     status = Column(String(50), default="OPEN", nullable=False)  # OPEN, IN_PROGRESS, RESOLVED

     # Relationships
     unit = relationship("Unit")
     expenses = relationship("Expense", back_populates="maintenance_request")

     def __repr__(self):
          return f"<MaintenanceRequest(id={self.id}, unit_id={self.unit_id}, status='{self.status}')>"
