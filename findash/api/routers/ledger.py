"""Accounts payable and receivable API routes."""

from typing import Any

from fastapi import APIRouter, Depends
from typing_extensions import Annotated

from findash.api.dependencies import CommonDependencies, CurrentUser, get_common_deps
from findash.api.responses import ok
from findash.models import LedgerKind
from findash.services import DashboardService

payables_router = APIRouter(prefix="/accounts-payable", tags=["payables"])
receivables_router = APIRouter(prefix="/accounts-receivable", tags=["receivables"])


async def _overdue(kind: LedgerKind, user: CurrentUser, deps: CommonDependencies) -> dict[str, Any]:
    service = DashboardService(db=deps.db, settings=deps.settings)
    result = await service.get_overdue(kind, user.user_id)
    return ok(result["records"], data_quality=result["data_quality"])


@payables_router.get("/overdue")
async def get_overdue_payables(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Payables with a positive balance past their due date, oldest first."""
    return await _overdue(LedgerKind.PAYABLE, user, deps)


@receivables_router.get("/overdue")
async def get_overdue_receivables(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Receivables with a positive balance past their due date, oldest first."""
    return await _overdue(LedgerKind.RECEIVABLE, user, deps)
