from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
     """
     Tenant model - a renter managed by a landlord.
     ``auth_user_id`` links the tenant to a portal login once the invite is accepted.
     """
     __tablename__ = "tenants"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     auth_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, unique=True)

     # Personal info
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     email = Column(String(255), nullable=False)
     phone = Column(String(50), nullable=True)

     # Relationships
     landlord = relationship("User", foreign_keys=[user_id])
     leases = relationship("Lease", back_populates="tenant")

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}".strip()

     def __repr__(self):
          return f"<Tenant(id={self.id}, name='{self.first_name} {self.last_name}')>"
