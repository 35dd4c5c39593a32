"""
Metrics - Derived financial metrics over ledger and forecast records.

Pure functions, no I/O. Everything time-dependent takes an explicit
``as_of`` date (defaulting to today) so repeated calls over the same rows
give the same result.

Usage:
    records = [LedgerRecord.from_row(row, LedgerKind.PAYABLE, report) for row in rows]
    summary = ledger_summary(records, as_of=date.today())
    health = overall_health(payables_total=summary["total_balance"], receivables_total=...)
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from findash.errors import InvalidAmount, InvalidDate
from findash.models import (
    DataIntegrityWarning,
    DataQualityReport,
    ForecastPeriod,
    LedgerRecord,
    Status,
    Trend,
)
from findash.utils.parsing import parse_amount, parse_date

logger = logging.getLogger(__name__)

# Denominator floor for the liquidity ratio
DEFAULT_LIQUIDITY_FLOOR = 1.0
# Ending cash position below this is a shortfall
DEFAULT_SHORTFALL_THRESHOLD = 0.0

AGING_BUCKETS = (
    (0, "Current"),
    (30, "1-30 days"),
    (60, "31-60 days"),
    (90, "61-90 days"),
)


def _today() -> date:
    return date.today()


def _money(value: float) -> float:
    return round(value, 2)


# -----------------------------------------------------------------------------
# Per-record calculations
# -----------------------------------------------------------------------------


def days_overdue(due_date: Any, as_of: date | datetime | None = None) -> int:
    """
    Whole calendar days between the due date and ``as_of``.

    Args:
        due_date: Due date as ``date``, ``datetime`` or ISO string
        as_of: Reference date (defaults to today)

    Returns:
        Days overdue, 0 when not yet due

    Raises:
        InvalidDate: If the due date is missing or cannot be parsed
    """
    due = parse_date(due_date, "due_date")
    if due is None:
        raise InvalidDate("due_date is required", field="due_date")
    if as_of is None:
        reference = _today()
    elif isinstance(as_of, datetime):
        reference = as_of.date()
    else:
        reference = as_of
    return max(0, (reference - due).days)


def is_overdue(record: LedgerRecord, as_of: date | None = None) -> bool:
    """Balance due > 0 and due date earlier than ``as_of``."""
    if record.due_date is None or record.balance_due <= 0:
        return False
    return record.due_date < (as_of or _today())


def aging_bucket(days: int) -> str:
    """Display band for a days-overdue count."""
    for upper, label in AGING_BUCKETS:
        if days <= upper:
            return label
    return "90+ days"


def calculate_balance_due(total_amount: Any, payments: Iterable[Any] = ()) -> float:
    """
    Remaining balance after payments, never negative, rounded to cents.

    Blank payments are skipped.

    Raises:
        InvalidAmount: If the total or a payment is not a valid amount
    """
    total = parse_amount(total_amount, "total_amount") or 0.0
    paid = 0.0
    for i, payment in enumerate(payments, start=1):
        paid += parse_amount(payment, f"payment{i}") or 0.0
    return max(0.0, _money(total - paid))


def determine_status(due_date: Any, balance_due: Any, as_of: date | None = None) -> Status:
    """Status implied by the balance and due date."""
    balance = parse_amount(balance_due, "balance_due") or 0.0
    if balance == 0:
        return Status.PAID
    if days_overdue(due_date, as_of) > 0:
        return Status.OVERDUE
    return Status.PENDING


def check_statuses(
    records: Iterable[LedgerRecord],
    report: DataQualityReport,
    as_of: date | None = None,
) -> None:
    """Record a warning for every stored status contradicted by the balance and due date."""
    for record in records:
        if record.due_date is None or not record.status:
            continue
        derived = determine_status(record.due_date, record.balance_due, as_of)
        # Pending records fall past due without a write; only contradictions count
        if record.status == Status.PENDING.value and derived is Status.OVERDUE:
            continue
        if record.status != derived.value:
            report.add(
                DataIntegrityWarning(
                    record.kind.table,
                    record.id,
                    "status",
                    "status_mismatch",
                    f"stored status '{record.status}' but balance and due date imply '{derived.value}'",
                )
            )


def overdue_records(
    records: Iterable[LedgerRecord],
    as_of: date | None = None,
) -> list[tuple[LedgerRecord, int]]:
    """
    Overdue records with their days-overdue count.

    Sorted by due date ascending, then balance due descending.
    """
    as_of = as_of or _today()
    overdue = [(r, days_overdue(r.due_date, as_of)) for r in records if is_overdue(r, as_of)]
    overdue.sort(key=lambda pair: (pair[0].due_date, -pair[0].balance_due))
    return overdue


# -----------------------------------------------------------------------------
# Predicates and comparisons
# -----------------------------------------------------------------------------


def has_shortfall(ending_cash_position: Any, threshold: float = DEFAULT_SHORTFALL_THRESHOLD) -> bool:
    """
    True when the ending cash position is below the threshold.

    Raises:
        InvalidAmount: If the position is not a valid amount
    """
    position = parse_amount(ending_cash_position, "ending_cash_position")
    if position is None:
        raise InvalidAmount("ending_cash_position is required", field="ending_cash_position")
    return position < threshold


def trend(current: Optional[float], previous: Optional[float]) -> Trend:
    """Direction of change from previous to current."""
    if current is None or previous is None or current == previous:
        return Trend.NEUTRAL
    return Trend.UP if current > previous else Trend.DOWN


def sort_periods(periods: Iterable[ForecastPeriod]) -> list[ForecastPeriod]:
    """Periods in chronological order; periods without a start date go last."""
    return sorted(periods, key=lambda p: (p.period_start is None, p.period_start or date.min))


# -----------------------------------------------------------------------------
# Forecast aggregation
# -----------------------------------------------------------------------------


def total_receipts(period: ForecastPeriod) -> float:
    return _money(sum(period.receipts.values()))


def total_payments(period: ForecastPeriod) -> float:
    return _money(sum(period.payments.values()))


def build_projections(
    periods: Iterable[ForecastPeriod],
    threshold: float = DEFAULT_SHORTFALL_THRESHOLD,
) -> list[dict[str, Any]]:
    """
    Chronological projections with shortfall flag and period-over-period trend.

    Each projection is the stored row plus ``has_shortfall``, ``period_label``,
    ``trend``, ``total_receipts`` and ``total_payments``.
    """
    projections = []
    previous: ForecastPeriod | None = None
    for index, period in enumerate(sort_periods(periods)):
        projection = dict(period.row)
        projection.update(
            {
                "ending_cash_position": period.ending_cash_position,
                "has_shortfall": period.ending_cash_position < threshold,
                "period_label": f"Month {index + 1}",
                "trend": trend(
                    period.ending_cash_position,
                    previous.ending_cash_position if previous else None,
                ).value,
                "total_receipts": total_receipts(period),
                "total_payments": total_payments(period),
            }
        )
        projections.append(projection)
        previous = period
    return projections


def forecast_summary(
    periods: Sequence[ForecastPeriod],
    threshold: float = DEFAULT_SHORTFALL_THRESHOLD,
) -> dict[str, Any]:
    """
    Summary statistics over forecast periods.

    Returns:
        total_periods, periods_with_shortfall, average_ending_balance,
        lowest_balance, highest_balance (all 0 when there are no periods)
    """
    endings = [p.ending_cash_position for p in periods]
    if not endings:
        return {
            "total_periods": 0,
            "periods_with_shortfall": 0,
            "average_ending_balance": 0,
            "lowest_balance": 0,
            "highest_balance": 0,
        }
    return {
        "total_periods": len(endings),
        "periods_with_shortfall": sum(1 for e in endings if e < threshold),
        "average_ending_balance": sum(endings) / len(endings),
        "lowest_balance": min(endings),
        "highest_balance": max(endings),
    }


def cash_flow_summary(periods: Sequence[ForecastPeriod]) -> dict[str, float]:
    """Average, min and max ending position plus total net change (0 when empty)."""
    if not periods:
        return {
            "avg_cash_position": 0,
            "min_cash_position": 0,
            "max_cash_position": 0,
            "total_net_change": 0,
        }
    endings = [p.ending_cash_position for p in periods]
    return {
        "avg_cash_position": sum(endings) / len(endings),
        "min_cash_position": min(endings),
        "max_cash_position": max(endings),
        "total_net_change": _money(sum(p.net_cash_change for p in periods)),
    }


# -----------------------------------------------------------------------------
# Ledger aggregation
# -----------------------------------------------------------------------------


def overdue_percentage(overdue_count: int, total_count: int) -> float:
    """Share of overdue records in percent; 0 when there are no records."""
    if total_count <= 0:
        return 0
    return min(100.0, max(0.0, overdue_count / total_count * 100))


def ledger_summary(records: Sequence[LedgerRecord], as_of: date | None = None) -> dict[str, Any]:
    """
    Totals for one ledger.

    Returns:
        total_count, total_balance, overdue_balance, overdue_count, overdue_percentage
    """
    as_of = as_of or _today()
    overdue = [r for r in records if is_overdue(r, as_of)]
    return {
        "total_count": len(records),
        "total_balance": _money(sum(r.balance_due for r in records)),
        "overdue_balance": _money(sum(r.balance_due for r in overdue)),
        "overdue_count": len(overdue),
        "overdue_percentage": overdue_percentage(len(overdue), len(records)),
    }


def overall_health(
    payables_total: float,
    receivables_total: float,
    floor: float = DEFAULT_LIQUIDITY_FLOOR,
) -> dict[str, float]:
    """
    Cross-ledger health.

    ``liquidity_ratio`` divides receivables by payables floored at ``floor``,
    so it is always defined. A floor that is not positive is replaced by
    ``DEFAULT_LIQUIDITY_FLOOR``.
    """
    if not floor > 0:
        logger.warning(f"Liquidity floor must be > 0, got {floor!r}, using {DEFAULT_LIQUIDITY_FLOOR}")
        floor = DEFAULT_LIQUIDITY_FLOOR
    return {
        "liquidity_ratio": receivables_total / max(payables_total, floor),
        "net_position": _money(receivables_total - payables_total),
    }


# -----------------------------------------------------------------------------
# Presentation
# -----------------------------------------------------------------------------


def format_currency(amount: Any, symbol: str = "$") -> str:
    """Render an amount with two fraction digits, e.g. ``-$1,234.50``."""
    value = parse_amount(amount, "amount") or 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percentage(value: Any, decimals: int = 1) -> str:
    """Render a percentage, e.g. ``12.5%``."""
    number = parse_amount(value, "percentage") or 0.0
    return f"{number:.{decimals}f}%"
