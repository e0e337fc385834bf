"""
Shared fixtures for the reconciliation test suite.

Every test gets a fresh in-memory SQLite database, a Paystack gateway double
and a recording confirmation sender, so nothing here talks to a real
database, Paystack or Brevo.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["CRON_SECRET"] = "cron-secret"
os.environ["APP_BASE_URL"] = "https://app.example.com"
os.environ["DEFAULT_CURRENCY"] = "NGN"

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import get_session
from dependencies import get_confirmation_sender
from exceptions import GatewayError
from main import app
from models import (
     Base,
     Lease,
     LeaseStatus,
     Payment,
     PaymentStatus,
     PaymentType,
     Property,
     Tenant,
     Unit,
     UnitStatus,
     User,
)
from services.paystack import InitializedTransaction, VerifiedTransaction, get_gateway


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
     engine = create_engine(
          "sqlite://",
          connect_args={"check_same_thread": False},
          poolclass=StaticPool,
     )
     Base.metadata.create_all(engine)
     yield engine
     Base.metadata.drop_all(engine)
     engine.dispose()


@pytest.fixture
def db_session(engine):
     session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
     yield session
     session.rollback()
     session.close()


@pytest.fixture
def file_engine(tmp_path):
     """File-backed SQLite: each session gets its own connection, unlike the shared in-memory engine."""
     engine = create_engine(
          f"sqlite:///{tmp_path / 'rentdesk.db'}",
          connect_args={"check_same_thread": False, "timeout": 30},
     )
     Base.metadata.create_all(engine)
     yield engine
     engine.dispose()


@pytest.fixture
def session_factory(file_engine):
     sessions = []

     def make():
          session = sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)()
          sessions.append(session)
          return session

     yield make
     for session in sessions:
          session.close()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class Factory:
     """Builds committed rows with sensible defaults."""

     def __init__(self, db):
          self.db = db
          self._seq = 0

     def _next(self) -> int:
          self._seq += 1
          return self._seq

     def _save(self, obj):
          self.db.add(obj)
          self.db.commit()
          return obj

     def landlord(self, **overrides):
          n = self._next()
          fields = dict(email=f"landlord{n}@example.com", first_name="Ada", last_name=f"Owner{n}", role="landlord")
          fields.update(overrides)
          return self._save(User(**fields))

     def property(self, landlord=None, **overrides):
          landlord = landlord or self.landlord()
          fields = dict(user_id=landlord.id, name=f"Palm Court {self._next()}", city="Lagos")
          fields.update(overrides)
          return self._save(Property(**fields))

     def unit(self, prop=None, **overrides):
          prop = prop or self.property()
          fields = dict(property_id=prop.id, name=f"Flat {self._next()}", status=UnitStatus.VACANT)
          fields.update(overrides)
          return self._save(Unit(**fields))

     def tenant(self, landlord=None, **overrides):
          n = self._next()
          if landlord is None:
               landlord = self.landlord()
          fields = dict(user_id=landlord.id, first_name="Tunde", last_name=f"Renter{n}", email=f"tenant{n}@example.com")
          fields.update(overrides)
          return self._save(Tenant(**fields))

     def lease(self, unit=None, tenant=None, status=LeaseStatus.ACTIVE, **overrides):
          """Insert a lease directly. An ACTIVE lease also marks the unit OCCUPIED."""
          unit = unit or self.unit()
          tenant = tenant or self.tenant(landlord=unit.property.user)
          today = date.today()
          fields = dict(
               unit_id=unit.id,
               tenant_id=tenant.id,
               status=status,
               monthly_rent=Decimal("250000.00"),
               deposit=Decimal("0.00"),
               start_date=today - timedelta(days=30),
               end_date=today + timedelta(days=335),
          )
          fields.update(overrides)
          lease = Lease(**fields)
          self.db.add(lease)
          if status == LeaseStatus.ACTIVE:
               unit.status = UnitStatus.OCCUPIED
          self.db.commit()
          return lease

     def payment(self, lease=None, **overrides):
          lease = lease or self.lease()
          fields = dict(
               lease_id=lease.id,
               user_id=lease.unit.property.user_id,
               amount=Decimal("5000.00"),
               late_fee=Decimal("0.00"),
               due_date=date.today(),
               status=PaymentStatus.PENDING,
               payment_type=PaymentType.RENT,
          )
          fields.update(overrides)
          return self._save(Payment(**fields))


@pytest.fixture
def factory(db_session):
     return Factory(db_session)


# ---------------------------------------------------------------------------
# Gateway and notification doubles
# ---------------------------------------------------------------------------

class FakeGateway:
     """Stands in for PaystackGateway; records calls and returns canned results."""

     def __init__(self):
          self.initialize_calls = []
          self.verify_calls = []
          self.initialize_error = None
          self.verify_error = None
          self.verifications = {}

     def initialize(self, email, amount, currency, reference, callback_url, metadata=None):
          self.initialize_calls.append(dict(
               email=email,
               amount=amount,
               currency=currency,
               reference=reference,
               callback_url=callback_url,
               metadata=metadata,
          ))
          if self.initialize_error:
               raise self.initialize_error
          return InitializedTransaction(
               reference=reference,
               checkout_url=f"https://checkout.paystack.com/{reference}",
               access_code=f"AC_{reference}",
          )

     def set_verification(self, reference, status="success", amount=500000, paid_at=None, channel="card", message=None):
          self.verifications[reference] = VerifiedTransaction(
               reference=reference,
               status=status,
               amount=amount,
               paid_at=paid_at or datetime(2024, 6, 1, 10, 0, 0),
               message=message,
               channel=channel,
               currency="NGN",
          )

     def verify(self, reference):
          self.verify_calls.append(reference)
          if self.verify_error:
               raise self.verify_error
          if reference not in self.verifications:
               raise GatewayError("Transaction reference not found")
          return self.verifications[reference]


class RecordingSender:
     """Confirmation sender that remembers every call."""

     def __init__(self, fail=False):
          self.calls = []
          self.fail = fail

     def __call__(self, **kwargs):
          self.calls.append(kwargs)
          if self.fail:
               raise RuntimeError("smtp down")


@pytest.fixture
def gateway():
     return FakeGateway()


@pytest.fixture
def sender():
     return RecordingSender()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def client(db_session, gateway, sender):
     def override_session():
          yield db_session

     app.dependency_overrides[get_session] = override_session
     app.dependency_overrides[get_gateway] = lambda: gateway
     app.dependency_overrides[get_confirmation_sender] = lambda: sender
     with TestClient(app) as test_client:
          yield test_client
     app.dependency_overrides.clear()


def make_token(user_id: int, role: str = "landlord") -> str:
     return jwt.encode({"id": user_id, "role": role}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def auth_headers():
     def build(user, role="landlord"):
          return {"Authorization": f"Bearer {make_token(user.id, role)}"}
     return build
