"""
Database - The ledger store: one aiosqlite connection per database file.

Holds payables, receivables, forecast periods, the audit trail, API tokens
and the runtime policy settings. Every ledger query is scoped by user id.

Usage:
    db = Database()
    await db.connect()
    rows = await db.get_ledger_rows(LedgerKind.PAYABLE, user_id)
    await db.log_audit(user_id, "accounts_payable", record_id, "create", new_values=row)
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from findash.database.base import BaseDatabase, utc_timestamp

logger = logging.getLogger(__name__)


class Database(BaseDatabase):
    """SQLite-backed ledger store, shared per file path."""

    _instances: dict[str, "Database"] = {}  # path -> instance
    _default_path: str = None

    def __new__(cls, path: str = None):
        """
        Return the shared store for a path, creating it on first use.

        Args:
            path: Database file path. If None, uses FINDASH_DATABASE_PATH or <data_dir>/findash.db.
        """
        if path is None:
            if cls._default_path is None:
                from findash.config import get_config

                cls._default_path = str(get_config().resolved_database_path())
            path = cls._default_path

        path = str(path)
        if path not in cls._instances:
            instance = super().__new__(cls)
            instance._path = Path(path)
            instance._connection = None
            cls._instances[path] = instance

        return cls._instances[path]

    def __init__(self, path: str = None):
        # Path is already set in __new__, nothing to do here
        pass

    async def connect(self) -> "Database":
        """Open the connection (WAL journal, 30s busy timeout) and create missing tables."""
        if self._connection is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=30000")
            await self._init_schema()
            logger.info(f"Database connected: {self._path}")
        return self

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def remove_from_cache(self):
        """Forget this store so the next ``Database(path)`` opens a fresh one (temporary databases)."""
        path_str = str(self._path)
        if path_str in self._instances:
            del self._instances[path_str]

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Read one policy setting, decoding its JSON value."""
        cursor = await self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError):
            return row["value"]

    async def set_setting(self, key: str, value: Any) -> None:
        """Store one policy setting as JSON (strings are stored as-is)."""
        json_value = json.dumps(value) if not isinstance(value, str) else value
        await self.conn.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, json_value))
        await self.conn.commit()

    async def get_all_settings(self) -> dict:
        """All stored policy settings, JSON-decoded."""
        cursor = await self.conn.execute("SELECT key, value FROM settings")
        rows = await cursor.fetchall()
        result = {}
        for row in rows:
            try:
                result[row["key"]] = json.loads(row["value"])
            except (json.JSONDecodeError, TypeError):
                result[row["key"]] = row["value"]
        return result

    # -------------------------------------------------------------------------
    # Audit Log
    # -------------------------------------------------------------------------

    async def log_audit(
        self,
        user_id: str,
        table_name: str,
        record_id: Optional[str],
        action: str,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> None:
        """
        Record a data change. Failures are logged and swallowed so that
        auditing never breaks the operation being audited.

        Args:
            user_id: User performing the action
            table_name: Table being modified
            record_id: Record being modified
            action: 'create', 'update' or 'delete'
            old_values: Previous values (update/delete)
            new_values: New values (create/update)
        """
        try:
            await self.conn.execute(
                """INSERT INTO audit_logs (user_id, table_name, record_id, action, old_values, new_values, timestamp)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    user_id,
                    table_name,
                    record_id,
                    action,
                    json.dumps(old_values) if old_values else None,
                    json.dumps(new_values) if new_values else None,
                    utc_timestamp(),
                ),
            )
            await self.conn.commit()
        except aiosqlite.Error:
            logger.exception(f"Failed to write audit log for {table_name}/{record_id} ({action})")

    async def get_audit_logs(
        self,
        user_id: str,
        table_name: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict]:
        """
        Get a user's audit log entries with optional filters, newest first.

        Args:
            user_id: Owning user (always applied)
            table_name: Filter by table
            action: Filter by action
            start_date: Entries on or after this date (YYYY-MM-DD)
            end_date: Entries on or before this date (YYYY-MM-DD)
            limit: Maximum number of entries
            offset: Number of entries to skip (for pagination)

        Returns:
            List of entry dicts with old/new values parsed from JSON
        """
        query = "SELECT * FROM audit_logs WHERE user_id = ?"
        params: list[Any] = [user_id]

        if table_name:
            query += " AND table_name = ?"
            params.append(table_name)

        if action:
            query += " AND action = ?"
            params.append(action)

        if start_date:
            query += " AND timestamp >= ?"
            params.append(start_date)

        if end_date:
            query += " AND timestamp <= ?"
            params.append(end_date + "T23:59:59")  # Include full end date

        query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()

        result = []
        for row in rows:
            entry = dict(row)
            for key in ("old_values", "new_values"):
                if entry.get(key):
                    try:
                        entry[key] = json.loads(entry[key])
                    except (json.JSONDecodeError, TypeError):
                        pass
            result.append(entry)
        return result

    # -------------------------------------------------------------------------
    # API Tokens
    # -------------------------------------------------------------------------

    async def insert_api_token(
        self,
        token_id: str,
        user_id: str,
        token_hash: str,
        name: str,
        expires_at: Optional[str] = None,
    ) -> None:
        """Store a hashed API token."""
        await self.conn.execute(
            """INSERT INTO api_tokens (id, user_id, token_hash, name, created_at, expires_at, is_active)
               VALUES (?, ?, ?, ?, ?, ?, 1)""",
            (token_id, user_id, token_hash, name, utc_timestamp(), expires_at),
        )
        await self.conn.commit()

    async def get_api_token_by_hash(self, token_hash: str) -> Optional[dict]:
        """Look up a token by its hash."""
        cursor = await self.conn.execute("SELECT * FROM api_tokens WHERE token_hash = ?", (token_hash,))
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def touch_api_token(self, token_id: str) -> None:
        """Update last_used_at for a token."""
        await self.conn.execute("UPDATE api_tokens SET last_used_at = ? WHERE id = ?", (utc_timestamp(), token_id))
        await self.conn.commit()

    async def deactivate_api_token(self, token_id: str, user_id: str) -> bool:
        """Revoke a token. Returns False if the user has no such token."""
        cursor = await self.conn.execute(
            "UPDATE api_tokens SET is_active = 0 WHERE id = ? AND user_id = ?",
            (token_id, user_id),
        )
        await self.conn.commit()
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    async def _init_schema(self) -> None:
        """Initialize database schema."""
        await self.conn.executescript(SCHEMA)
        await self.conn.commit()


SCHEMA = """
-- Settings (key-value store, JSON values)
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Invoices owed by the user
CREATE TABLE IF NOT EXISTS accounts_payable (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    supplier_name TEXT NOT NULL,
    invoice_number TEXT NOT NULL,
    invoice_date TEXT,
    due_date TEXT,
    total_amount REAL NOT NULL DEFAULT 0,
    balance_due REAL NOT NULL DEFAULT 0,
    payment1 REAL DEFAULT 0,
    payment2 REAL DEFAULT 0,
    payment3 REAL DEFAULT 0,
    payment4 REAL DEFAULT 0,
    payment5 REAL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'pending',  -- 'pending', 'paid', 'overdue' (advisory)
    created_at TEXT,
    updated_at TEXT
);

-- Invoices owed to the user
CREATE TABLE IF NOT EXISTS accounts_receivable (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    customer_name TEXT NOT NULL,
    invoice_number TEXT NOT NULL,
    invoice_date TEXT,
    due_date TEXT,
    total_amount REAL NOT NULL DEFAULT 0,
    balance_due REAL NOT NULL DEFAULT 0,
    payment1 REAL DEFAULT 0,
    payment2 REAL DEFAULT 0,
    payment3 REAL DEFAULT 0,
    payment4 REAL DEFAULT 0,
    payment5 REAL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TEXT,
    updated_at TEXT
);

-- Cash flow forecast periods
CREATE TABLE IF NOT EXISTS cash_flow_forecast (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category TEXT,
    period_start TEXT NOT NULL,
    period_end TEXT,
    beginning_balance REAL DEFAULT 0,
    cash_sales REAL DEFAULT 0,
    customer_account_collections REAL DEFAULT 0,
    loan_cash_injection REAL DEFAULT 0,
    interest_income REAL DEFAULT 0,
    tax_refund REAL DEFAULT 0,
    other_cash_receipts REAL DEFAULT 0,
    direct_product_svc_costs REAL DEFAULT 0,
    payroll_taxes REAL DEFAULT 0,
    vendor_payments REAL DEFAULT 0,
    supplies REAL DEFAULT 0,
    rent REAL DEFAULT 0,
    loan_payments REAL DEFAULT 0,
    purchase_of_fixed_assets REAL DEFAULT 0,
    additional_operating_expenses REAL DEFAULT 0,
    additional_overhead_expenses REAL DEFAULT 0,
    net_cash_change REAL DEFAULT 0,
    ending_cash_position REAL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

-- Audit trail
CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    table_name TEXT NOT NULL,
    record_id TEXT,
    action TEXT NOT NULL,
    old_values TEXT,  -- JSON
    new_values TEXT,  -- JSON
    timestamp TEXT NOT NULL  -- UTC, YYYY-MM-DDTHH:MM:SS
);

-- Bearer tokens (SHA-256 hash only, never plaintext)
CREATE TABLE IF NOT EXISTS api_tokens (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    token_hash TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    expires_at TEXT,
    last_used_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_payable_user_due ON accounts_payable(user_id, due_date);
CREATE INDEX IF NOT EXISTS idx_receivable_user_due ON accounts_receivable(user_id, due_date);
CREATE INDEX IF NOT EXISTS idx_forecast_user_start ON cash_flow_forecast(user_id, period_start);
CREATE INDEX IF NOT EXISTS idx_audit_user_timestamp ON audit_logs(user_id, timestamp);
CREATE INDEX IF NOT EXISTS idx_api_tokens_user ON api_tokens(user_id);
"""
