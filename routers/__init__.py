from .leases import router as leases_router
from .payments import router as payments_router
from .callback import router as callback_router
from .expenses import router as expenses_router
from .reports import router as reports_router
from .cron import router as cron_router

__all__ = [
     "leases_router",
     "payments_router",
     "callback_router",
     "expenses_router",
     "reports_router",
     "cron_router",
]
