"""
Occupancy Service - keeps Unit.status consistent with the statuses of its leases.

Rules:
1. Creating a lease requires the unit to be VACANT; the check and the write
   happen in one transaction via a conditional UPDATE, so two concurrent
   creations on the same unit cannot both succeed.
2. Moving an ACTIVE lease to EXPIRED or TERMINATED (or deleting an ACTIVE
   lease) re-derives the unit: VACANT if no other ACTIVE lease remains.
3. Reactivating a PENDING lease is allowed while no other ACTIVE lease holds
   the unit and the unit is not UNDER_MAINTENANCE. A unit left OCCUPIED by an
   ACTIVE -> PENDING move is reclaimed by that lease.
4. The expiry sweep handles each lease in its own transaction; one failure is
   logged and reported, never fatal to the sweep.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session, joinedload

from database import transaction
from exceptions import InvalidLeaseTransition, NotFoundError, PermissionDenied, UnitNotVacant
from models import Lease, LeaseStatus, Tenant, Unit, UnitStatus, TERMINAL_LEASE_STATUSES

logger = logging.getLogger(__name__)

EDITABLE_LEASE_FIELDS = ("start_date", "end_date", "monthly_rent", "deposit", "terms")


@dataclass
class SweepReport:
     """Outcome of one expiry sweep."""
     expired: list[int] = field(default_factory=list)
     failed: list[tuple[int, str]] = field(default_factory=list)

     @property
     def updated_count(self) -> int:
          return len(self.expired)


def find_lease_by_id(db: Session, lease_id: int) -> Optional[Lease]:
     return (
          db.query(Lease)
          .options(joinedload(Lease.unit).joinedload(Unit.property), joinedload(Lease.tenant))
          .filter(Lease.id == lease_id)
          .first()
     )


def ensure_unit_owner(unit: Unit, user_id: int) -> None:
     if unit.property.user_id != user_id:
          raise PermissionDenied("Unauthorized")


def ensure_lease_owner(lease: Lease, user_id: int) -> None:
     ensure_unit_owner(lease.unit, user_id)


def get_owned_lease(db: Session, lease_id: int, user_id: int) -> Lease:
     lease = find_lease_by_id(db, lease_id)
     if lease is None:
          raise NotFoundError("Lease not found")
     ensure_lease_owner(lease, user_id)
     return lease


def _count_other_active_leases(db: Session, unit_id: int, exclude_lease_id: Optional[int]) -> int:
     query = db.query(func.count(Lease.id)).filter(
          Lease.unit_id == unit_id,
          Lease.status == LeaseStatus.ACTIVE,
     )
     if exclude_lease_id is not None:
          query = query.filter(Lease.id != exclude_lease_id)
     return query.scalar() or 0


def _derive_unit_status(db: Session, unit_id: int, exclude_lease_id: Optional[int] = None) -> UnitStatus:
     """Set the unit VACANT when no other ACTIVE lease remains. Must run inside a transaction."""
     remaining = _count_other_active_leases(db, unit_id, exclude_lease_id)
     if remaining == 0:
          db.execute(
               update(Unit)
               .where(Unit.id == unit_id)
               .values(status=UnitStatus.VACANT)
               .execution_options(synchronize_session="fetch")
          )
          return UnitStatus.VACANT
     return UnitStatus.OCCUPIED


def _apply_fields(lease: Lease, fields: dict) -> None:
     for name in EDITABLE_LEASE_FIELDS:
          if name in fields:
               setattr(lease, name, fields[name])


def _claim_unit(db: Session, unit: Unit) -> None:
     """Conditional VACANT -> OCCUPIED write; zero rows updated means someone else holds the unit."""
     claimed = db.execute(
          update(Unit)
          .where(Unit.id == unit.id, Unit.status == UnitStatus.VACANT)
          .values(status=UnitStatus.OCCUPIED)
          .execution_options(synchronize_session="fetch")
     )
     if claimed.rowcount != 1:
          db.refresh(unit)
          raise UnitNotVacant(unit.id, unit.status.value if unit.status else None)


def _activate_on_unit(db: Session, unit: Unit, lease_id: int) -> None:
     """
     Conditional write for PENDING -> ACTIVE: the unit becomes OCCUPIED only if
     no other ACTIVE lease holds it. The stored unit status is not trusted here.
     """
     other_active = (
          select(Lease.id)
          .where(Lease.unit_id == unit.id, Lease.status == LeaseStatus.ACTIVE, Lease.id != lease_id)
     )
     claimed = db.execute(
          update(Unit)
          .where(
               Unit.id == unit.id,
               Unit.status != UnitStatus.UNDER_MAINTENANCE,
               ~exists(other_active),
          )
          .values(status=UnitStatus.OCCUPIED)
          .execution_options(synchronize_session="fetch")
     )
     if claimed.rowcount != 1:
          db.refresh(unit)
          raise UnitNotVacant(unit.id, unit.status.value if unit.status else None)


def create_lease(db: Session, unit_id: int, tenant_id: int, fields: dict) -> Lease:
     """
     Create an ACTIVE lease and mark the unit OCCUPIED in one transaction.

     Raises:
          NotFoundError: unit or tenant missing
          UnitNotVacant: the unit is not VACANT at the moment of the write
     """
     with transaction(db):
          unit = (
               db.query(Unit)
               .filter(Unit.id == unit_id)
               .with_for_update()
               .populate_existing()
               .first()
          )
          if unit is None:
               raise NotFoundError("Unit not found")
          if db.query(Tenant).filter(Tenant.id == tenant_id).first() is None:
               raise NotFoundError("Tenant not found")

          _claim_unit(db, unit)

          lease = Lease(unit_id=unit_id, tenant_id=tenant_id, status=LeaseStatus.ACTIVE)
          _apply_fields(lease, fields)
          db.add(lease)
          db.flush()

     logger.info("Lease %s created on unit %s", lease.id, unit_id)
     return lease


def update_lease_and_derive_unit_status(
     db: Session,
     lease: Lease,
     new_status: LeaseStatus,
     fields: dict,
) -> Lease:
     """
     Composite write: update the lease row and, when an ACTIVE lease becomes
     terminal, re-derive the unit's occupancy. Caller owns the transaction.
     """
     leaving_active = lease.status == LeaseStatus.ACTIVE and new_status in TERMINAL_LEASE_STATUSES
     _apply_fields(lease, fields)
     lease.status = new_status
     db.flush()
     if leaving_active:
          unit_status = _derive_unit_status(db, lease.unit_id, exclude_lease_id=lease.id)
          logger.info(
               "Lease %s -> %s; unit %s now %s",
               lease.id, new_status.value, lease.unit_id, unit_status.value,
          )
     return lease


def transition_lease(db: Session, lease_id: int, new_status: LeaseStatus, fields: dict) -> Lease:
     """
     Change a lease's status and editable fields.

     A terminal lease cannot be reopened. A PENDING lease becoming ACTIVE
     occupies its unit unless another ACTIVE lease already holds it.
     """
     with transaction(db):
          lease = (
               db.query(Lease)
               .filter(Lease.id == lease_id)
               .with_for_update()
               .populate_existing()
               .first()
          )
          if lease is None:
               raise NotFoundError("Lease not found")
          if lease.is_terminal and new_status not in TERMINAL_LEASE_STATUSES:
               raise InvalidLeaseTransition(
                    f"Lease {lease_id} is {lease.status.value} and cannot become {new_status.value}"
               )
          if lease.status == LeaseStatus.PENDING and new_status == LeaseStatus.ACTIVE:
               unit = (
                    db.query(Unit)
                    .filter(Unit.id == lease.unit_id)
                    .with_for_update()
                    .populate_existing()
                    .first()
               )
               _activate_on_unit(db, unit, lease.id)
          update_lease_and_derive_unit_status(db, lease, new_status, fields)
     return lease


def delete_lease(db: Session, lease_id: int) -> None:
     """Delete a lease (its payments cascade) and re-derive the unit if it was ACTIVE."""
     with transaction(db):
          lease = db.query(Lease).filter(Lease.id == lease_id).with_for_update().first()
          if lease is None:
               raise NotFoundError("Lease not found")
          was_active = lease.status == LeaseStatus.ACTIVE
          unit_id = lease.unit_id
          db.delete(lease)
          db.flush()
          if was_active:
               _derive_unit_status(db, unit_id)
     logger.info("Lease %s deleted", lease_id)


def expire_leases(db: Session, now: Optional[datetime] = None) -> SweepReport:
     """
     Expire every ACTIVE lease whose end date has passed.

     Each lease is transitioned in its own transaction; errors (deadlocks,
     constraint failures) are logged with the lease id and collected in the
     report while the sweep continues.
     """
     today: date = (now or datetime.now()).date()
     candidates = [
          lease_id
          for (lease_id,) in db.query(Lease.id)
          .filter(Lease.status == LeaseStatus.ACTIVE, Lease.end_date < today)
          .order_by(Lease.id)
          .all()
     ]
     db.commit()

     report = SweepReport()
     for lease_id in candidates:
          try:
               with transaction(db):
                    lease = (
                         db.query(Lease)
                         .filter(Lease.id == lease_id)
                         .with_for_update()
                         .populate_existing()
                         .first()
                    )
                    # Re-checked under lock: someone may have terminated it since the scan.
                    if lease is None or lease.status != LeaseStatus.ACTIVE:
                         continue
                    update_lease_and_derive_unit_status(db, lease, LeaseStatus.EXPIRED, {})
               report.expired.append(lease_id)
          except Exception as exc:
               logger.exception("Failed to expire lease %s", lease_id)
               report.failed.append((lease_id, str(exc)))

     logger.info("Lease sweep: %s expired, %s failed", len(report.expired), len(report.failed))
     return report
