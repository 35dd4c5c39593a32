"""
Base Database - Ledger queries.

Every query is scoped by the owning user id. Rows are returned as plain
dicts; conversion to typed records happens in the service layer.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from findash.errors import ValidationError
from findash.models import MAX_PAYMENTS, PAYMENT_FIELDS, RECEIPT_FIELDS, LedgerKind

LEDGER_COLUMNS = {
    "invoice_number",
    "invoice_date",
    "due_date",
    "total_amount",
    "balance_due",
    "status",
    *(f"payment{i}" for i in range(1, MAX_PAYMENTS + 1)),
}
FORECAST_COLUMNS = {
    "category",
    "period_start",
    "period_end",
    "beginning_balance",
    "net_cash_change",
    "ending_cash_position",
    *RECEIPT_FIELDS,
    *PAYMENT_FIELDS,
}


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS``."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


class BaseDatabase:
    """Base class with the ledger and forecast queries."""

    _connection: Optional[aiosqlite.Connection] = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get database connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    # -------------------------------------------------------------------------
    # Payables / Receivables
    # -------------------------------------------------------------------------

    async def get_ledger_rows(self, kind: LedgerKind, user_id: str) -> list[dict]:
        """All payables or receivables for a user, due date ascending then balance descending."""
        cursor = await self.conn.execute(
            f"SELECT * FROM {kind.table} WHERE user_id = ? ORDER BY due_date ASC, balance_due DESC",  # noqa: S608
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_overdue_candidates(self, kind: LedgerKind, user_id: str, as_of: str) -> list[dict]:
        """
        Rows that are overdue by stored status or by due date.

        The caller makes the final call (balance > 0 and due date < as_of);
        stored statuses are not trusted on their own.

        Args:
            kind: Payables or receivables
            user_id: Owning user
            as_of: Reference date (YYYY-MM-DD)
        """
        cursor = await self.conn.execute(
            f"""SELECT * FROM {kind.table}
                WHERE user_id = ? AND (status = 'overdue' OR due_date < ?)
                ORDER BY due_date ASC, balance_due DESC""",  # noqa: S608
            (user_id, as_of),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def insert_ledger_row(self, kind: LedgerKind, user_id: str, counterparty: str, **data) -> str:
        """
        Insert a payable or receivable.

        Args:
            kind: Payables or receivables
            user_id: Owning user
            counterparty: Supplier name (payables) or customer name (receivables)
            **data: Any of LEDGER_COLUMNS

        Returns:
            The new record id
        """
        unknown = set(data) - LEDGER_COLUMNS - {"id"}
        if unknown:
            raise ValidationError(f"Unknown {kind.table} columns: {sorted(unknown)}")

        record_id = data.pop("id", None) or str(uuid.uuid4())
        now = utc_timestamp()
        data.update(
            {
                "id": record_id,
                "user_id": user_id,
                kind.counterparty_column: counterparty,
                "created_at": now,
                "updated_at": now,
            }
        )
        cols = ", ".join(data.keys())
        placeholders = ", ".join("?" * len(data))
        await self.conn.execute(
            f"INSERT INTO {kind.table} ({cols}) VALUES ({placeholders})",  # noqa: S608
            tuple(data.values()),
        )
        await self.conn.commit()
        return record_id

    # -------------------------------------------------------------------------
    # Cash Flow Forecast
    # -------------------------------------------------------------------------

    async def get_forecast_rows(self, user_id: str, limit: int | None = None) -> list[dict]:
        """Forecast periods for a user in chronological order (period_start ascending)."""
        query = "SELECT * FROM cash_flow_forecast WHERE user_id = ? ORDER BY period_start ASC"
        params: list[str | int] = [user_id]
        if limit:
            query += " LIMIT ?"
            params.append(limit)
        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def insert_forecast_row(self, user_id: str, **data) -> str:
        """Insert a forecast period. Returns the new record id."""
        unknown = set(data) - FORECAST_COLUMNS - {"id"}
        if unknown:
            raise ValidationError(f"Unknown cash_flow_forecast columns: {sorted(unknown)}")

        record_id = data.pop("id", None) or str(uuid.uuid4())
        now = utc_timestamp()
        data.update({"id": record_id, "user_id": user_id, "created_at": now, "updated_at": now})
        cols = ", ".join(data.keys())
        placeholders = ", ".join("?" * len(data))
        await self.conn.execute(
            f"INSERT INTO cash_flow_forecast ({cols}) VALUES ({placeholders})",  # noqa: S608
            tuple(data.values()),
        )
        await self.conn.commit()
        return record_id
