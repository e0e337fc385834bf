from .base import Base
from .user import User
from .property import Property
from .unit import Unit, UnitStatus
from .tenant import Tenant
from .lease import Lease, LeaseStatus, TERMINAL_LEASE_STATUSES
from .payment import Payment, PaymentStatus, PaymentType
from .maintenance_request import MaintenanceRequest
from .expense import Expense, ExpenseAllocation, ExpenseCategory

__all__ = [
     "Base",
     "User",
     "Property",
     "Unit",
     "UnitStatus",
     "Tenant",
     "Lease",
     "LeaseStatus",
     "TERMINAL_LEASE_STATUSES",
     "Payment",
     "PaymentStatus",
     "PaymentType",
     "MaintenanceRequest",
     "Expense",
     "ExpenseAllocation",
     "ExpenseCategory",
]
