"""Dashboard API routes: metrics, risks and insights."""

from typing import Any

from fastapi import APIRouter, Depends
from typing_extensions import Annotated

from findash.api.dependencies import CommonDependencies, CurrentUser, get_common_deps
from findash.api.responses import ok
from findash.services import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics")
async def get_metrics(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Ledger totals, cash flow summary and overall health ratios."""
    service = DashboardService(db=deps.db, settings=deps.settings)
    return ok(await service.get_metrics(user.user_id))


@router.get("/risks")
async def get_risks(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Risk items grouped into critical, warning and info."""
    service = DashboardService(db=deps.db, settings=deps.settings)
    return ok(await service.get_risks(user.user_id))


@router.get("/insights")
async def get_insights(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Prioritised recommendations, most urgent first."""
    service = DashboardService(db=deps.db, settings=deps.settings)
    return ok(await service.get_insights(user.user_id))
