"""Typed records for ledger rows, forecast periods and derived risk output.

Store rows arrive as loosely-typed dicts. ``from_row`` converts them into
these records, substituting safe defaults for unparseable values and noting
each substitution in a ``DataQualityReport``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from findash.errors import InvalidAmount, InvalidDate
from findash.utils.parsing import parse_amount, parse_date

logger = logging.getLogger(__name__)

# Forecast line items (column names in cash_flow_forecast)
RECEIPT_FIELDS = (
    "cash_sales",
    "customer_account_collections",
    "loan_cash_injection",
    "interest_income",
    "tax_refund",
    "other_cash_receipts",
)
PAYMENT_FIELDS = (
    "direct_product_svc_costs",
    "payroll_taxes",
    "vendor_payments",
    "supplies",
    "rent",
    "loan_payments",
    "purchase_of_fixed_assets",
    "additional_operating_expenses",
    "additional_overhead_expenses",
)
MAX_PAYMENTS = 5

# Tolerance for amount comparisons (one cent)
AMOUNT_TOLERANCE = 0.01
ENDING_POSITION_TOLERANCE = AMOUNT_TOLERANCE


class LedgerKind(str, Enum):
    PAYABLE = "payable"
    RECEIVABLE = "receivable"

    @property
    def table(self) -> str:
        return "accounts_payable" if self is LedgerKind.PAYABLE else "accounts_receivable"

    @property
    def counterparty_column(self) -> str:
        return "supplier_name" if self is LedgerKind.PAYABLE else "customer_name"


class Status(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {Priority.CRITICAL: 0, Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class DataIntegrityWarning:
    """A non-fatal data problem found while aggregating a row."""

    table: str
    record_id: Optional[str]
    field: str
    code: str  # unparseable_amount, unparseable_date, status_mismatch, ending_position_mismatch,
    # negative_balance, payments_exceed_total
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "record_id": self.record_id,
            "field": self.field,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class DataQualityReport:
    """Per-request collection of data-integrity warnings."""

    warnings: list[DataIntegrityWarning] = field(default_factory=list)

    def add(self, warning: DataIntegrityWarning) -> None:
        logger.warning(
            "Data integrity: %s.%s (record %s): %s",
            warning.table,
            warning.field,
            warning.record_id,
            warning.message,
        )
        self.warnings.append(warning)

    def to_list(self) -> list[dict[str, Any]]:
        return [w.to_dict() for w in self.warnings]

    def __len__(self) -> int:
        return len(self.warnings)


class _RowReader:
    """Reads fields off one store row, recording unparseable values."""

    def __init__(self, row: dict, table: str, report: DataQualityReport | None):
        self.row = row
        self.table = table
        self.report = report if report is not None else DataQualityReport()
        self.record_id = str(row["id"]) if row.get("id") is not None else None

    def amount(self, name: str) -> float | None:
        try:
            return parse_amount(self.row.get(name), name)
        except InvalidAmount as e:
            self.report.add(DataIntegrityWarning(self.table, self.record_id, name, "unparseable_amount", e.message))
            return None

    def date(self, name: str) -> date | None:
        try:
            return parse_date(self.row.get(name), name)
        except InvalidDate as e:
            self.report.add(DataIntegrityWarning(self.table, self.record_id, name, "unparseable_date", e.message))
            return None


@dataclass
class LedgerRecord:
    """A payable or receivable invoice tracked to a remaining balance."""

    id: Optional[str]
    user_id: Optional[str]
    kind: LedgerKind
    counterparty: str
    invoice_number: str
    invoice_date: Optional[date]
    due_date: Optional[date]  # None = missing or unparseable, never overdue
    total_amount: float
    balance_due: float
    status: Optional[str]
    payments: tuple[float, ...] = ()
    row: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: dict, kind: LedgerKind, report: DataQualityReport | None = None) -> "LedgerRecord":
        reader = _RowReader(row, kind.table, report)
        payments = []
        for i in range(1, MAX_PAYMENTS + 1):
            value = reader.amount(f"payment{i}")
            if value:
                payments.append(value)

        total_amount = reader.amount("total_amount") or 0.0
        balance_due = reader.amount("balance_due") or 0.0

        if balance_due < 0:
            reader.report.add(
                DataIntegrityWarning(
                    kind.table,
                    reader.record_id,
                    "balance_due",
                    "negative_balance",
                    f"balance due {balance_due:.2f} is negative, counted as 0",
                )
            )
            balance_due = 0.0

        paid = sum(payments)
        if paid - total_amount > AMOUNT_TOLERANCE:
            reader.report.add(
                DataIntegrityWarning(
                    kind.table,
                    reader.record_id,
                    "payments",
                    "payments_exceed_total",
                    f"payments {paid:.2f} exceed total amount {total_amount:.2f}",
                )
            )

        return cls(
            id=reader.record_id,
            user_id=row.get("user_id"),
            kind=kind,
            counterparty=row.get(kind.counterparty_column) or "",
            invoice_number=row.get("invoice_number") or "",
            invoice_date=reader.date("invoice_date"),
            due_date=reader.date("due_date"),
            total_amount=total_amount,
            balance_due=balance_due,
            status=row.get("status"),
            payments=tuple(payments),
            row=dict(row),
        )


@dataclass
class ForecastPeriod:
    """One cash-flow forecast period."""

    id: Optional[str]
    user_id: Optional[str]
    category: Optional[str]
    period_start: Optional[date]
    period_end: Optional[date]
    beginning_balance: float
    net_cash_change: float
    ending_cash_position: float
    receipts: dict[str, float] = field(default_factory=dict)
    payments: dict[str, float] = field(default_factory=dict)
    row: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: dict, report: DataQualityReport | None = None) -> "ForecastPeriod":
        reader = _RowReader(row, "cash_flow_forecast", report)
        beginning = reader.amount("beginning_balance")
        net = reader.amount("net_cash_change")
        ending = reader.amount("ending_cash_position")

        if beginning is not None and net is not None and ending is not None:
            if abs(beginning + net - ending) > ENDING_POSITION_TOLERANCE:
                reader.report.add(
                    DataIntegrityWarning(
                        "cash_flow_forecast",
                        reader.record_id,
                        "ending_cash_position",
                        "ending_position_mismatch",
                        f"ending position {ending:.2f} != beginning {beginning:.2f} + net change {net:.2f}",
                    )
                )

        return cls(
            id=reader.record_id,
            user_id=row.get("user_id"),
            category=row.get("category"),
            period_start=reader.date("period_start"),
            period_end=reader.date("period_end"),
            beginning_balance=beginning or 0.0,
            net_cash_change=net or 0.0,
            ending_cash_position=ending or 0.0,
            receipts={name: reader.amount(name) or 0.0 for name in RECEIPT_FIELDS},
            payments={name: reader.amount(name) or 0.0 for name in PAYMENT_FIELDS},
            row=dict(row),
        )


@dataclass
class RiskItem:
    """A severity-tagged financial concern, computed per request."""

    severity: Severity
    type: str  # 'payable', 'receivable', 'cash_flow'
    title: str
    description: str
    priority: Priority
    amount: Optional[float] = None
    days_overdue: Optional[int] = None
    action: Optional[str] = None
    record_id: Optional[str] = None
    due_date: Optional[str] = None
    period: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "amount": self.amount,
            "days_overdue": self.days_overdue,
            "action": self.action,
            "id": self.record_id,
            "due_date": self.due_date,
            "period": self.period,
        }


@dataclass
class Insight:
    """An actionable recommendation for the dashboard."""

    type: str  # 'action', 'opportunity', 'warning', 'positive'
    priority: Priority
    category: str  # 'payables', 'receivables', 'cash_flow'
    title: str
    description: str
    action: str
    count: Optional[int] = None
    amount: Optional[float] = None
    trend: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type,
            "priority": self.priority.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "action": self.action,
        }
        if self.count is not None:
            result["count"] = self.count
        if self.amount is not None:
            result["amount"] = self.amount
        if self.trend is not None:
            result["trend"] = self.trend
        return result
