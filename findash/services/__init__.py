"""Services layer for FinDash."""

from findash.services.dashboard import DashboardService

__all__ = ["DashboardService"]
