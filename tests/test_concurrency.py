"""Two sessions on separate connections competing for the same unit or payment."""
import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest

from exceptions import UnitNotVacant
from models import Lease, Payment, PaymentStatus, Unit, UnitStatus
from services.occupancy_service import _claim_unit, create_lease
from services.payment_store import mark_paid_if_unpaid, utcnow
from services.settlement import ChargeConfirmation, SettlementOutcome, settle_payment

from conftest import Factory, RecordingSender


def _lease_fields():
     today = date.today()
     return {
          "start_date": today,
          "end_date": today + timedelta(days=365),
          "monthly_rent": Decimal("250000.00"),
          "deposit": Decimal("0.00"),
     }


# ===================================================================
# Unit occupancy
# ===================================================================

class TestCompetingLeaseCreation:

     def test_second_session_loses_the_unit(self, session_factory):
          first, second = session_factory(), session_factory()
          factory = Factory(first)
          unit = factory.unit()
          winner = factory.tenant(landlord=unit.property.user)
          loser = factory.tenant(landlord=unit.property.user)
          stale = second.query(Unit).filter(Unit.id == unit.id).one()
          assert stale.status == UnitStatus.VACANT

          create_lease(first, unit.id, winner.id, _lease_fields())

          with pytest.raises(UnitNotVacant):
               _claim_unit(second, stale)
          second.rollback()
          with pytest.raises(UnitNotVacant):
               create_lease(second, unit.id, loser.id, _lease_fields())

          leases = second.query(Lease).filter(Lease.unit_id == unit.id).all()
          assert [lease.tenant_id for lease in leases] == [winner.id]


# ===================================================================
# Settlement
# ===================================================================

class TestCompetingSettlement:

     def test_guarded_write_succeeds_once_across_connections(self, session_factory):
          first, second = session_factory(), session_factory()
          payment = Factory(first).payment(reference="R1")
          second.query(Payment).filter(Payment.id == payment.id).one()

          assert mark_paid_if_unpaid(first, payment.id, utcnow(), "Paystack", "first") is True
          first.commit()
          assert mark_paid_if_unpaid(second, payment.id, utcnow(), "Paystack", "second") is False
          second.commit()

          stored = second.query(Payment).filter(Payment.id == payment.id).populate_existing().one()
          assert stored.notes == "first"

     def test_stale_pending_copy_does_not_settle_twice(self, session_factory):
          first, second = session_factory(), session_factory()
          payment = Factory(first).payment(reference="R1")
          second.query(Payment).filter(Payment.id == payment.id).one()
          sender = RecordingSender()
          charge = ChargeConfirmation(reference="R1", amount=500000)

          assert settle_payment(first, charge, sender) == SettlementOutcome.SETTLED
          assert settle_payment(second, charge, sender) == SettlementOutcome.ALREADY_PAID

          stored = second.query(Payment).filter(Payment.id == payment.id).populate_existing().one()
          assert stored.status == PaymentStatus.PAID
          assert stored.notes.count("Paystack payment confirmed") == 1
          assert len(sender.calls) == 1

     def test_webhook_and_callback_threads(self, session_factory):
          payment = Factory(session_factory()).payment(reference="R1")
          sessions = [session_factory(), session_factory()]
          sender = RecordingSender()
          start = threading.Barrier(len(sessions))
          outcomes = []
          errors = []

          def deliver(db, source):
               try:
                    start.wait(timeout=10)
                    charge = ChargeConfirmation(reference="R1", amount=500000, source=source)
                    outcomes.append(settle_payment(db, charge, sender))
               except Exception as exc:  # surfaced by the assertion below
                    errors.append(exc)

          threads = [
               threading.Thread(target=deliver, args=(db, source))
               for db, source in zip(sessions, ("webhook", "callback"))
          ]
          for thread in threads:
               thread.start()
          for thread in threads:
               thread.join(timeout=30)

          assert errors == []
          assert sorted(outcomes) == [SettlementOutcome.ALREADY_PAID, SettlementOutcome.SETTLED]
          check = session_factory()
          stored = check.query(Payment).filter(Payment.id == payment.id).one()
          assert stored.status == PaymentStatus.PAID
          assert stored.notes.count("Paystack payment confirmed") == 1
          assert len(sender.calls) == 1
