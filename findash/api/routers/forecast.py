"""Cash flow forecast API routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from typing_extensions import Annotated

from findash.api.dependencies import CommonDependencies, CurrentUser, get_common_deps
from findash.api.responses import ok
from findash.services import DashboardService

router = APIRouter(prefix="/cash-flow-forecast", tags=["cash-flow"])

MAX_PROJECTION_MONTHS = 120


@router.get("/projections")
async def get_projections(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    months: Annotated[Optional[int], Query(ge=1, le=MAX_PROJECTION_MONTHS)] = None,
) -> dict[str, Any]:
    """
    Forecast periods with shortfall flags, trends and a summary.

    Args:
        months: Number of periods to project (defaults to the default_projection_months setting)
    """
    service = DashboardService(db=deps.db, settings=deps.settings)
    return ok(await service.get_projections(user.user_id, months))
