# models/expense.py
"""
Expense and ExpenseAllocation models.

A shared expense is split across the units of a property. Each allocation
stores its percentage and the derived amount (expense.amount * percentage / 100).
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Date, Text, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class ExpenseCategory(str, enum.Enum):
     MAINTENANCE = "MAINTENANCE"
     REPAIRS = "REPAIRS"
     UTILITIES = "UTILITIES"
     INSURANCE = "INSURANCE"
     TAXES = "TAXES"
     MANAGEMENT_FEES = "MANAGEMENT_FEES"
     CLEANING = "CLEANING"
     LANDSCAPING = "LANDSCAPING"
     LEGAL = "LEGAL"
     ADVERTISING = "ADVERTISING"
     OTHER = "OTHER"


class Expense(TimestampMixin, Base):
     __tablename__ = "expenses"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     property_id = Column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
     maintenance_request_id = Column(Integer, ForeignKey("maintenance_requests.id"), nullable=True)

     amount = Column(Numeric(12, 2), nullable=False)
     category = Column(
          Enum(ExpenseCategory, name="expense_category", create_constraint=True),
          nullable=False,
          index=True
     )
     description = Column(String(500), nullable=False)
     date = Column(Date, nullable=False, index=True)
     vendor = Column(String(255), nullable=True)
     receipt_url = Column(String(1000), nullable=True)
     is_shared = Column(Boolean, default=False, nullable=False)
     notes = Column(Text, nullable=True)

     # Relationships
     user = relationship("User", back_populates="expenses")
     property = relationship("Property", back_populates="expenses")
     maintenance_request = relationship("MaintenanceRequest", back_populates="expenses")
     allocations = relationship(
          "ExpenseAllocation",
          back_populates="expense",
          cascade="all, delete-orphan",
          order_by="ExpenseAllocation.id",
     )

     def __repr__(self):
          return f"<Expense(id={self.id}, amount={self.amount}, category='{self.category.value}')>"


class ExpenseAllocation(Base):
     __tablename__ = "expense_allocations"

     id = Column(Integer, primary_key=True, autoincrement=True)
     expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
     unit_id = Column(Integer, ForeignKey("units.id"), nullable=False, index=True)
     percentage = Column(Numeric(5, 2), nullable=False)
     amount = Column(Numeric(12, 2), nullable=False)

     # Relationships
     expense = relationship("Expense", back_populates="allocations")
     unit = relationship("Unit")

     def __repr__(self):
          return f"<ExpenseAllocation(expense_id={self.expense_id}, unit_id={self.unit_id}, percentage={self.percentage})>"
