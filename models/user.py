from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class User(TimestampMixin, Base):
     """
     User model - landlords and tenant portal logins.
     Every property, expense and payment is owned transitively by one landlord.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     role = Column(String(50), nullable=False, default="landlord")  # landlord, tenant
     currency = Column(String(3), nullable=True)  # ISO code used for Paystack charges

     # Relationships
     properties = relationship("Property", back_populates="user")
     expenses = relationship("Expense", back_populates="user")

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
