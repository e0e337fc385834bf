# routers/leases.py
"""
Lease API routes.

Lease creation, status changes and deletion all go through
services.occupancy_service so that unit occupancy is updated in the same
transaction as the lease.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from exceptions import NotFoundError, PermissionDenied
from models import Tenant, Unit
from schemas.lease import LeaseCreate, LeaseUpdate, LeaseResponse
from services.occupancy_service import (
     create_lease,
     delete_lease,
     ensure_unit_owner,
     get_owned_lease,
     transition_lease,
)

router = APIRouter(prefix="/api/leases", tags=["leases"])


def _to_response(lease) -> LeaseResponse:
     response = LeaseResponse.model_validate(lease)
     response.unit_status = lease.unit.status if lease.unit is not None else None
     return response


@router.post(
     "",
     response_model=LeaseResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Assign a tenant to a vacant unit",
)
def create_lease_route(
     body: LeaseCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     """
     Create an ACTIVE lease and mark the unit OCCUPIED.

     Fails with 409 when the unit is not VACANT, including when another lease
     was created on it concurrently.
     """
     unit = db.query(Unit).filter(Unit.id == body.unit_id).first()
     if unit is None:
          raise NotFoundError("Unit not found")
     ensure_unit_owner(unit, token["id"])
     tenant = db.query(Tenant).filter(Tenant.id == body.tenant_id).first()
     if tenant is not None and tenant.user_id != token["id"]:
          raise PermissionDenied("Tenant belongs to another landlord")

     lease = create_lease(db, body.unit_id, body.tenant_id, body.editable_fields())
     db.refresh(lease)
     return _to_response(lease)


@router.patch("/{lease_id}", response_model=LeaseResponse, summary="Update a lease")
def update_lease_route(
     lease_id: int,
     body: LeaseUpdate,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     get_owned_lease(db, lease_id, token["id"])
     lease = transition_lease(db, lease_id, body.status, body.editable_fields())
     db.refresh(lease)
     return _to_response(lease)


@router.delete("/{lease_id}", summary="Delete a lease")
def delete_lease_route(
     lease_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     get_owned_lease(db, lease_id, token["id"])
     delete_lease(db, lease_id)
     return {"message": "Lease deleted successfully"}
