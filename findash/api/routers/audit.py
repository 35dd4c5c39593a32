"""Audit log API routes."""

import logging
from typing import Any, Optional

import aiosqlite
from fastapi import APIRouter, Depends, Query
from typing_extensions import Annotated

from findash.api.dependencies import CommonDependencies, CurrentUser, get_common_deps
from findash.api.responses import ok
from findash.errors import LedgerStoreError, ValidationError
from findash.utils import parse_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit-logs", tags=["audit"])

AUDIT_ACTIONS = ("create", "update", "delete")


@router.get("")
async def get_audit_logs(
    user: CurrentUser,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    table_name: Optional[str] = None,
    action: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    """
    The caller's audit trail, newest first.

    Args:
        table_name: Only entries for this table
        action: Only 'create', 'update' or 'delete' entries
        start_date: Entries on or after this date (YYYY-MM-DD)
        end_date: Entries on or before this date (YYYY-MM-DD)
        limit: Maximum number of entries
        offset: Entries to skip
    """
    if action and action not in AUDIT_ACTIONS:
        raise ValidationError(f"action must be one of {', '.join(AUDIT_ACTIONS)}", field="action")

    start = parse_date(start_date, field="start_date")
    end = parse_date(end_date, field="end_date")
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")

    try:
        logs = await deps.db.get_audit_logs(
            user.user_id,
            table_name=table_name,
            action=action,
            start_date=start.isoformat() if start else None,
            end_date=end.isoformat() if end else None,
            limit=limit,
            offset=offset,
        )
    except aiosqlite.Error as e:
        logger.exception("Audit log query failed")
        raise LedgerStoreError() from e

    return ok(logs, total=len(logs))
