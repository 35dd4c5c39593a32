"""
FinDash - Financial operations dashboard.

Usage:
    from findash import Database, Settings, DashboardService

    # Initialize
    db = Database()
    await db.connect()
    await Settings().init_defaults()

    # Compute the dashboard for one user
    service = DashboardService(db=db)
    metrics = await service.get_metrics("user-1")
    risks = await service.get_risks("user-1")
"""

from findash.auth import Identity, TokenManager
from findash.database import Database
from findash.errors import (
    FinDashError,
    InvalidAmount,
    InvalidDate,
    LedgerStoreError,
    NotFound,
    Unauthorized,
    ValidationError,
)
from findash.models import DataQualityReport, ForecastPeriod, LedgerKind, LedgerRecord, RiskItem
from findash.risks import RiskPolicy, RiskReport
from findash.services import DashboardService
from findash.settings import Settings
from findash.version import VERSION

__all__ = [
    "DashboardService",
    "DataQualityReport",
    "Database",
    "FinDashError",
    "ForecastPeriod",
    "Identity",
    "InvalidAmount",
    "InvalidDate",
    "LedgerKind",
    "LedgerRecord",
    "LedgerStoreError",
    "NotFound",
    "RiskItem",
    "RiskPolicy",
    "RiskReport",
    "Settings",
    "TokenManager",
    "Unauthorized",
    "ValidationError",
    "VERSION",
]
