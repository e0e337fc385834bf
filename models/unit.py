import enum
from sqlalchemy import Column, Integer, String, Numeric, Enum, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class UnitStatus(str, enum.Enum):
     """Occupancy of a unit. Derived from its leases; never edited directly."""
     VACANT = "VACANT"
     OCCUPIED = "OCCUPIED"
     UNDER_MAINTENANCE = "UNDER_MAINTENANCE"


class Unit(TimestampMixin, Base):
     """
     Unit model - a rentable unit within a property.
     OCCUPIED iff at least one of its leases is ACTIVE.
     """
     __tablename__ = "units"

     id = Column(Integer, primary_key=True, autoincrement=True)
     property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

     name = Column(String(100), nullable=False)
     bedrooms = Column(Integer, nullable=True)
     rent_amount = Column(Numeric(12, 2), nullable=True)
     status = Column(
          Enum(UnitStatus, name="unit_status", create_constraint=True),
          default=UnitStatus.VACANT,
          nullable=False,
          index=True
     )

     # Relationships
     property = relationship("Property", back_populates="units")
     leases = relationship("Lease", back_populates="unit", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<Unit(id={self.id}, name='{self.name}', status='{self.status.value}')>"
