"""
Settings - Single source of truth for the risk and metrics policy.

Usage:
    settings = Settings()
    days = await settings.get('critical_days_overdue')
    await settings.set('critical_days_overdue', 45)
    all_settings = await settings.all()

All thresholds are stored in the database and can be changed without a
deploy. Process-level configuration (paths, host, port) lives in
``findash.config`` instead.
"""

from typing import Any

from findash.database import Database
from findash.utils.decorators import singleton

# Default settings - applied on first run, then editable in the settings table
DEFAULTS = {
    # Risk classification
    "critical_days_overdue": 30,  # More than 30 days overdue is critical
    "critical_amount_threshold": None,  # Overdue balance at or above is critical (None = disabled)
    # Cash flow
    "cash_shortfall_threshold": 0.0,  # Ending cash below this is a shortfall
    "cash_critical_threshold": -5000.0,  # Shortfall below this is critical
    "default_projection_months": 6,
    # Health ratios
    "liquidity_denominator_floor": 1.0,  # Payables total is floored at this in the liquidity ratio
    # Insights
    "insight_window_days": 7,  # Look-ahead for upcoming due dates
    "cash_trend_threshold": 5000.0,  # Period-over-period change that triggers a cash insight
    # Presentation
    "currency_symbol": "$",
}


@singleton
class Settings:
    """Single source of truth for runtime policy settings."""

    _db: "Database"

    def __init__(self):
        self._db = Database()

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value."""
        value = await self._db.get_setting(key)
        if value is None:
            return default if default is not None else DEFAULTS.get(key)
        return value

    async def set(self, key: str, value: Any) -> None:
        """Set a setting value."""
        await self._db.set_setting(key, value)

    async def all(self) -> dict:
        """Get all settings with defaults applied."""
        stored = await self._db.get_all_settings()
        result = DEFAULTS.copy()
        result.update(stored)
        return result

    async def init_defaults(self) -> None:
        """Initialize default settings if not already set."""
        for key, value in DEFAULTS.items():
            existing = await self._db.get_setting(key)
            if existing is None:
                await self._db.set_setting(key, value)
