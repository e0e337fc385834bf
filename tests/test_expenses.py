"""Shared expenses: allocation rounding, validation and payment requests."""
from datetime import date
from decimal import Decimal

import pytest

from exceptions import AllocationPercentageInvalid, NotFoundError, PermissionDenied, ValidationFailed
from models import Expense, ExpenseAllocation, ExpenseCategory, LeaseStatus, MaintenanceRequest, PaymentStatus, PaymentType
from schemas.expense import ExpenseCreate
from services.expense_service import (
     build_allocations,
     create_expense,
     equal_percentages,
     request_allocation_payments,
     validate_allocation_total,
)


def _expense(**overrides):
     fields = {
          "amount": Decimal("100.00"),
          "category": ExpenseCategory.UTILITIES,
          "description": "Shared water bill",
          "date": date(2024, 3, 10),
          "is_shared": True,
     }
     fields.update(overrides)
     return ExpenseCreate(**fields)


@pytest.fixture
def building(factory):
     """A property with three units, the first two let."""
     landlord = factory.landlord()
     prop = factory.property(landlord=landlord)
     units = [factory.unit(prop=prop) for _ in range(3)]
     leases = [factory.lease(unit=unit) for unit in units[:2]]
     return landlord, prop, units, leases


# ===================================================================
# Allocation arithmetic
# ===================================================================

class TestAllocationArithmetic:

     def test_equal_split_of_three(self):
          shares = build_allocations(Decimal("100.00"), None, [1, 2, 3])

          assert [s.percentage for s in shares] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
          assert sum(s.percentage for s in shares) == Decimal("100.00")
          assert sum(s.amount for s in shares) == Decimal("100.00")

     @pytest.mark.parametrize("count", [1, 3, 6, 7])
     def test_equal_split_sums_exactly(self, count):
          shares = build_allocations(Decimal("1000.01"), None, list(range(count)))
          assert sum(s.percentage for s in shares) == Decimal("100")
          assert sum(s.amount for s in shares) == Decimal("1000.01")

     def test_explicit_percentages(self):
          shares = build_allocations(Decimal("200.00"), [(1, Decimal("25")), (2, Decimal("75"))], [])
          assert [(s.unit_id, s.amount) for s in shares] == [(1, Decimal("50.00")), (2, Decimal("150.00"))]

     def test_within_tolerance_keeps_plain_amounts(self):
          shares = build_allocations(Decimal("100.00"), [(1, Decimal("50")), (2, Decimal("49.7"))], [])
          assert [s.amount for s in shares] == [Decimal("50.00"), Decimal("49.70")]

     def test_percentages_off_by_more_than_tolerance(self):
          with pytest.raises(AllocationPercentageInvalid):
               build_allocations(Decimal("100.00"), [(1, Decimal("50")), (2, Decimal("40"))], [])

     def test_validate_total_boundary(self):
          assert validate_allocation_total([Decimal("99.5")]) == Decimal("99.5")
          with pytest.raises(AllocationPercentageInvalid):
               validate_allocation_total([Decimal("100.51")])

     def test_equal_percentages_empty(self):
          assert equal_percentages(0) == []


# ===================================================================
# create_expense
# ===================================================================

class TestCreateExpense:

     def test_shared_expense_defaults_to_equal_split(self, db_session, building):
          landlord, prop, units, _ = building

          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id))

          allocations = (
               db_session.query(ExpenseAllocation)
               .filter(ExpenseAllocation.expense_id == expense.id)
               .order_by(ExpenseAllocation.id)
               .all()
          )
          assert [a.unit_id for a in allocations] == [u.id for u in units]
          assert sum(a.amount for a in allocations) == Decimal("100.00")
          assert sum(a.percentage for a in allocations) == Decimal("100.00")

     def test_invalid_percentages_write_nothing(self, db_session, building):
          landlord, prop, units, _ = building
          data = _expense(
               property_id=prop.id,
               allocations=[{"unit_id": units[0].id, "percentage": "60"}, {"unit_id": units[1].id, "percentage": "20"}],
          )

          with pytest.raises(AllocationPercentageInvalid):
               create_expense(db_session, landlord.id, data)

          assert db_session.query(Expense).count() == 0
          assert db_session.query(ExpenseAllocation).count() == 0

     def test_shared_expense_needs_property(self, db_session, factory):
          with pytest.raises(ValidationFailed):
               create_expense(db_session, factory.landlord().id, _expense())

     def test_unit_from_another_property(self, db_session, building, factory):
          landlord, prop, units, _ = building
          foreign_unit = factory.unit()
          data = _expense(
               property_id=prop.id,
               allocations=[{"unit_id": units[0].id, "percentage": "50"}, {"unit_id": foreign_unit.id, "percentage": "50"}],
          )
          with pytest.raises(ValidationFailed):
               create_expense(db_session, landlord.id, data)

     def test_other_landlords_property(self, db_session, building, factory):
          _, prop, _, _ = building
          with pytest.raises(PermissionDenied):
               create_expense(db_session, factory.landlord().id, _expense(property_id=prop.id))

     def test_maintenance_request_supplies_property(self, db_session, building):
          landlord, prop, units, _ = building
          request = MaintenanceRequest(unit_id=units[0].id, title="Leaking pipe")
          db_session.add(request)
          db_session.commit()

          expense = create_expense(
               db_session,
               landlord.id,
               _expense(category=ExpenseCategory.REPAIRS, is_shared=False, maintenance_request_id=request.id),
          )

          assert expense.property_id == prop.id
          assert expense.maintenance_request_id == request.id

     def test_unknown_maintenance_request(self, db_session, building):
          landlord, _, _, _ = building
          with pytest.raises(NotFoundError):
               create_expense(db_session, landlord.id, _expense(is_shared=False, maintenance_request_id=999))


# ===================================================================
# request_allocation_payments
# ===================================================================

class TestRequestAllocationPayments:

     def test_creates_payments_for_let_units_and_skips_vacant(self, db_session, building):
          landlord, prop, units, leases = building
          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id))

          created, skipped = request_allocation_payments(db_session, expense.id, landlord.id, due_date=date(2024, 4, 1))

          assert sorted(p.lease_id for p in created) == sorted(lease.id for lease in leases)
          assert all(p.status == PaymentStatus.PENDING for p in created)
          assert all(p.payment_type == PaymentType.OTHER for p in created)
          assert all(p.due_date == date(2024, 4, 1) for p in created)
          assert [p.amount for p in created] == [Decimal("33.33"), Decimal("33.33")]
          assert [(s.unit_id, s.reason) for s in skipped] == [(units[2].id, "no active lease")]

     def test_terminated_lease_counts_as_vacant(self, db_session, building):
          landlord, prop, units, leases = building
          leases[0].status = LeaseStatus.TERMINATED
          db_session.commit()
          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id))

          created, skipped = request_allocation_payments(db_session, expense.id, landlord.id)

          assert [p.lease_id for p in created] == [leases[1].id]
          assert {s.unit_id for s in skipped} == {units[0].id, units[2].id}

     def test_maintenance_category_maps_payment_type(self, db_session, building):
          landlord, prop, _, _ = building
          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id, category=ExpenseCategory.MAINTENANCE))

          created, _ = request_allocation_payments(db_session, expense.id, landlord.id)

          assert {p.payment_type for p in created} == {PaymentType.MAINTENANCE}

     def test_unshared_expense_is_rejected(self, db_session, building):
          landlord, prop, _, _ = building
          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id, is_shared=False))
          with pytest.raises(ValidationFailed):
               request_allocation_payments(db_session, expense.id, landlord.id)

     def test_other_landlord(self, db_session, building, factory):
          landlord, prop, _, _ = building
          expense = create_expense(db_session, landlord.id, _expense(property_id=prop.id))
          with pytest.raises(PermissionDenied):
               request_allocation_payments(db_session, expense.id, factory.landlord().id)


class TestExpenseEndpoints:

     def test_create_and_request(self, client, building, auth_headers):
          landlord, prop, units, _ = building
          headers = auth_headers(landlord)

          created = client.post(
               "/api/expenses",
               json={
                    "amount": "100.00",
                    "category": "UTILITIES",
                    "description": "Shared water bill",
                    "date": "2024-03-10",
                    "property_id": prop.id,
                    "is_shared": True,
               },
               headers=headers,
          )
          assert created.status_code == 201
          expense_id = created.json()["id"]
          assert len(created.json()["allocations"]) == 3

          response = client.post(f"/api/expenses/{expense_id}/request-payment", headers=headers)

          assert response.status_code == 200
          data = response.json()
          assert len(data["created"]) == 2
          assert data["skipped"][0]["unit_id"] == units[2].id
          assert "skipped 1 unit" in data["message"]

     def test_bad_allocation_is_400(self, client, building, auth_headers):
          landlord, prop, units, _ = building
          response = client.post(
               "/api/expenses",
               json={
                    "amount": "100.00",
                    "category": "UTILITIES",
                    "description": "Shared water bill",
                    "date": "2024-03-10",
                    "property_id": prop.id,
                    "is_shared": True,
                    "allocations": [{"unit_id": units[0].id, "percentage": "10"}],
               },
               headers=auth_headers(landlord),
          )
          assert response.status_code == 400
          assert "100%" in response.json()["message"]
