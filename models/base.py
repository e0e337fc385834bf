from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Tables are named explicitly on each model.
     """


class TimestampMixin:
     """Adds created_at / updated_at columns maintained by the database."""

     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
