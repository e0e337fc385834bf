"""
Engine, sessions and the unit-of-work helper.

Every multi-row state change in the services (claiming a unit, settling a
payment, writing an expense with its allocations) runs inside
``transaction(db)``. Routes get their session from ``get_session``.

     from database import get_session, transaction

     @router.post("/leases")
     def create(db: Session = Depends(get_session)):
          ...

     with transaction(db):
          lock_payment(db, payment_id)
          ...
"""
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
     options = {"echo": settings.SQL_ECHO}
     if url.startswith("sqlite"):
          # In-process database: no server connections to pool.
          return options
     options.update(
          poolclass=QueuePool,
          pool_size=settings.DB_POOL_SIZE,
          max_overflow=settings.DB_MAX_OVERFLOW,
          pool_pre_ping=True,
          pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
     )
     return options


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(
     bind=engine,
     autoflush=False,
     expire_on_commit=False,
)


def get_session() -> Generator[Session, None, None]:
     """Request-scoped session; whatever a route leaves pending is committed at the end."""
     db = SessionLocal()
     try:
          yield db
          db.commit()
     except Exception:
          db.rollback()
          raise
     finally:
          db.close()


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
     """
     Run a block as one atomic unit of work on ``db``.

     Commits on success, rolls back and re-raises on any error. Reads that must
     be consistent with the write ("check status, then write") belong inside
     the block.
     """
     try:
          yield db
          db.commit()
     except Exception:
          db.rollback()
          raise


def check_connection() -> bool:
     """Round-trip ``SELECT 1``; False (logged) when the database is unreachable."""
     try:
          with engine.connect() as connection:
               connection.execute(text("SELECT 1"))
     except Exception:
          logger.exception("Database connection check failed")
          return False
     return True
