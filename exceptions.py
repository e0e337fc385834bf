"""
Domain errors raised by the service layer.

Every error carries an HTTP status code so that ``main.setup_exception_handlers``
can turn it into a ``{"message": ...}`` response without the routers having to
translate each case by hand.
"""
from fastapi import status


class RentalError(Exception):
     """Base class for business and infrastructure errors surfaced to callers."""

     status_code = status.HTTP_400_BAD_REQUEST

     def __init__(self, message: str, status_code: int | None = None):
          super().__init__(message)
          self.message = message
          if status_code is not None:
               self.status_code = status_code


class NotFoundError(RentalError):
     status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(RentalError):
     status_code = status.HTTP_403_FORBIDDEN


class ValidationFailed(RentalError):
     status_code = status.HTTP_400_BAD_REQUEST


class UnitNotVacant(RentalError):
     """Lease creation attempted on a unit that is occupied or under maintenance."""

     status_code = status.HTTP_409_CONFLICT

     def __init__(self, unit_id: int, current_status: str | None = None):
          detail = f" (currently {current_status})" if current_status else ""
          super().__init__(f"Unit {unit_id} is not vacant{detail}")
          self.unit_id = unit_id
          self.current_status = current_status


class InvalidLeaseTransition(RentalError):
     status_code = status.HTTP_400_BAD_REQUEST


class AllocationPercentageInvalid(RentalError):
     """Shared expense allocations do not total 100% within tolerance."""

     status_code = status.HTTP_400_BAD_REQUEST

     def __init__(self, total):
          super().__init__(f"Allocation percentages must total 100% (got {total})")
          self.total = total


class PaymentAlreadyPaid(RentalError):
     status_code = status.HTTP_400_BAD_REQUEST


class SignatureInvalid(RentalError):
     status_code = status.HTTP_401_UNAUTHORIZED


class GatewayError(RentalError):
     """Paystack call failed (network error or non-2xx). Retryable by the user."""

     status_code = status.HTTP_502_BAD_GATEWAY

     def __init__(self, message: str, raw: object = None):
          super().__init__(message)
          self.raw = raw


class NotificationError(RentalError):
     """Confirmation email could not be delivered. Always caught and logged."""

     status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
