"""API routers for FinDash.

Each router handles a specific domain of the API.
"""

from findash.api.routers.audit import router as audit_router
from findash.api.routers.auth import router as auth_router
from findash.api.routers.dashboard import router as dashboard_router
from findash.api.routers.forecast import router as forecast_router
from findash.api.routers.ledger import payables_router, receivables_router
from findash.api.routers.system import router as system_router

__all__ = [
    "audit_router",
    "auth_router",
    "dashboard_router",
    "forecast_router",
    "payables_router",
    "receivables_router",
    "system_router",
]
