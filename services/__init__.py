from .settlement import ChargeConfirmation, SettlementOutcome, settle_payment
from .paystack import PaystackGateway, get_gateway, initialize_payment_link
from .webhook_service import handle_webhook
from .callback_service import CallbackState, reconcile_callback
from .occupancy_service import create_lease, expire_leases, transition_lease, update_lease_and_derive_unit_status
from .expense_service import build_allocations, create_expense, request_allocation_payments

__all__ = [
     "ChargeConfirmation",
     "SettlementOutcome",
     "settle_payment",
     "PaystackGateway",
     "get_gateway",
     "initialize_payment_link",
     "handle_webhook",
     "CallbackState",
     "reconcile_callback",
     "create_lease",
     "expire_leases",
     "transition_lease",
     "update_lease_and_derive_unit_status",
     "build_allocations",
     "create_expense",
     "request_allocation_payments",
]
