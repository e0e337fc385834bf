from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Property(TimestampMixin, Base):
     """
     Property model - a building or house owned by one landlord.
     """
     __tablename__ = "properties"

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     name = Column(String(255), nullable=False)

     # Address
     address = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)

     description = Column(Text, nullable=True)

     # Relationships
     user = relationship("User", back_populates="properties")
     units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")
     expenses = relationship("Expense", back_populates="property")

     def __repr__(self):
          return f"<Property(id={self.id}, name='{self.name}')>"
