"""
Risks - Severity classification of overdue records and cash shortfalls.

Turns ledger records and forecast periods into ``RiskItem`` and ``Insight``
values for the dashboard. Thresholds come from a ``RiskPolicy`` built from
runtime settings, never from constants in this module.

Usage:
    policy = RiskPolicy.from_mapping(await settings.all())
    report = build_risk_report(payables, receivables, periods, policy, as_of=date.today())
    report.to_dict()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from findash.metrics import (
    DEFAULT_LIQUIDITY_FLOOR,
    days_overdue,
    format_currency,
    is_overdue,
    overdue_records,
    sort_periods,
)
from findash.models import (
    PRIORITY_ORDER,
    ForecastPeriod,
    Insight,
    LedgerKind,
    LedgerRecord,
    Priority,
    RiskItem,
    Severity,
    Status,
)

logger = logging.getLogger(__name__)

NO_RISKS_MESSAGE = "No risks detected. All payables, receivables and cash projections are within policy."


@dataclass(frozen=True)
class RiskPolicy:
    """Runtime policy: severity thresholds, insight windows and ratio floors."""

    critical_days_overdue: int = 30  # More than this many days overdue is critical
    critical_amount_threshold: Optional[float] = None  # Balance at or above is critical (None = disabled)
    cash_shortfall_threshold: float = 0.0  # Ending position below this is a shortfall
    cash_critical_threshold: float = -5000.0  # Shortfall below this is critical
    insight_window_days: int = 7  # Look-ahead for upcoming due dates
    cash_trend_threshold: float = 5000.0  # Period-over-period change worth an insight
    currency_symbol: str = "$"
    liquidity_floor: float = DEFAULT_LIQUIDITY_FLOOR  # Lower bound for the liquidity ratio denominator
    projection_months: int = 6  # Forecast periods shown when the client asks for no specific count

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RiskPolicy":
        """Build a policy from a settings mapping, ignoring unrelated keys.

        Malformed values fall back to the default and are logged, so a bad
        settings row never fails a request.
        """
        defaults = cls()

        def read(key: str, cast: Callable[[Any], Any], default: Any) -> Any:
            value = values.get(key, default)
            if value is None:
                return default
            try:
                return cast(value)
            except (TypeError, ValueError, OverflowError):
                logger.warning(f"Invalid setting {key}={value!r}, using default {default!r}")
                return default

        liquidity_floor = read("liquidity_denominator_floor", float, defaults.liquidity_floor)
        if not liquidity_floor > 0:
            logger.warning(f"liquidity_denominator_floor must be > 0, got {liquidity_floor!r}, using default")
            liquidity_floor = DEFAULT_LIQUIDITY_FLOOR

        projection_months = read("default_projection_months", int, defaults.projection_months)
        if projection_months < 1:
            logger.warning(f"default_projection_months must be >= 1, got {projection_months!r}, using default")
            projection_months = defaults.projection_months

        return cls(
            critical_days_overdue=read("critical_days_overdue", int, defaults.critical_days_overdue),
            critical_amount_threshold=read("critical_amount_threshold", float, None),
            cash_shortfall_threshold=read("cash_shortfall_threshold", float, defaults.cash_shortfall_threshold),
            cash_critical_threshold=read("cash_critical_threshold", float, defaults.cash_critical_threshold),
            insight_window_days=read("insight_window_days", int, defaults.insight_window_days),
            cash_trend_threshold=read("cash_trend_threshold", float, defaults.cash_trend_threshold),
            currency_symbol=read("currency_symbol", str, defaults.currency_symbol),
            liquidity_floor=liquidity_floor,
            projection_months=projection_months,
        )

    def overdue_severity(self, days: int, balance_due: float) -> Severity:
        if days > self.critical_days_overdue:
            return Severity.CRITICAL
        if self.critical_amount_threshold is not None and balance_due >= self.critical_amount_threshold:
            return Severity.CRITICAL
        return Severity.WARNING

    def shortfall_severity(self, ending_cash_position: float) -> Severity:
        if ending_cash_position < self.cash_critical_threshold:
            return Severity.CRITICAL
        return Severity.WARNING


@dataclass
class RiskReport:
    """Risk items grouped by severity, with roll-up counts."""

    critical: list[RiskItem] = field(default_factory=list)
    warning: list[RiskItem] = field(default_factory=list)
    info: list[RiskItem] = field(default_factory=list)
    overdue_payables: int = 0
    overdue_receivables: int = 0
    cash_flow_risks: int = 0

    def add(self, item: RiskItem) -> None:
        getattr(self, item.severity.value).append(item)

    @property
    def total_risks(self) -> int:
        return len(self.critical) + len(self.warning) + len(self.info)

    @property
    def message(self) -> Optional[str]:
        """Affirmation shown in place of empty sections."""
        return NO_RISKS_MESSAGE if self.total_risks == 0 else None

    def totals(self) -> dict[str, int]:
        return {
            "total_risks": self.total_risks,
            "critical_count": len(self.critical),
            "warning_count": len(self.warning),
            "info_count": len(self.info),
            "total_overdue_payables": self.overdue_payables,
            "total_overdue_receivables": self.overdue_receivables,
            "total_cash_flow_risks": self.cash_flow_risks,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "totals": self.totals(),
            "risks": {
                "critical": [item.to_dict() for item in self.critical],
                "warning": [item.to_dict() for item in self.warning],
                "info": [item.to_dict() for item in self.info],
            },
            "message": self.message,
        }


def classify_overdue(
    records: Iterable[LedgerRecord],
    kind: LedgerKind,
    policy: RiskPolicy,
    as_of: date | None = None,
) -> list[RiskItem]:
    """One risk item per overdue record, oldest due date first."""
    items = []
    for record, days in overdue_records(records, as_of):
        severity = policy.overdue_severity(days, record.balance_due)
        if kind is LedgerKind.PAYABLE:
            title = f"Overdue Payment to {record.counterparty}"
            action = "Contact supplier to arrange payment"
        else:
            title = f"Delayed Collection from {record.counterparty}"
            action = "Follow up with customer"
        items.append(
            RiskItem(
                severity=severity,
                type=kind.value,
                title=title,
                description=f"Invoice {record.invoice_number} is {days} days overdue",
                priority=Priority.CRITICAL if severity is Severity.CRITICAL else Priority.HIGH,
                amount=record.balance_due,
                days_overdue=days,
                action=action,
                record_id=record.id,
                due_date=record.due_date.isoformat() if record.due_date else None,
            )
        )
    return items


def classify_shortfalls(periods: Iterable[ForecastPeriod], policy: RiskPolicy) -> list[RiskItem]:
    """One risk item per forecast period in shortfall, in chronological order."""
    items = []
    for period in sort_periods(periods):
        if period.ending_cash_position >= policy.cash_shortfall_threshold:
            continue
        severity = policy.shortfall_severity(period.ending_cash_position)
        start = period.period_start.isoformat() if period.period_start else "?"
        end = period.period_end.isoformat() if period.period_end else "?"
        items.append(
            RiskItem(
                severity=severity,
                type="cash_flow",
                title="Cash Shortfall Projected",
                description=f"Period {start} to {end}",
                priority=Priority.CRITICAL if severity is Severity.CRITICAL else Priority.HIGH,
                amount=period.ending_cash_position,
                action="Review expenses and accelerate collections",
                record_id=period.id,
                period=f"{start} - {end}",
            )
        )
    return items


def build_risk_report(
    payables: Sequence[LedgerRecord],
    receivables: Sequence[LedgerRecord],
    periods: Sequence[ForecastPeriod],
    policy: RiskPolicy,
    as_of: date | None = None,
) -> RiskReport:
    """Classify everything into one report."""
    report = RiskReport()

    payable_items = classify_overdue(payables, LedgerKind.PAYABLE, policy, as_of)
    receivable_items = classify_overdue(receivables, LedgerKind.RECEIVABLE, policy, as_of)
    cash_items = classify_shortfalls(periods, policy)

    for item in (*payable_items, *receivable_items, *cash_items):
        report.add(item)

    report.overdue_payables = len(payable_items)
    report.overdue_receivables = len(receivable_items)
    report.cash_flow_risks = len(cash_items)
    return report


# -----------------------------------------------------------------------------
# Insights
# -----------------------------------------------------------------------------


def _due_within(records: Iterable[LedgerRecord], start: date, end: date) -> list[LedgerRecord]:
    return [
        r
        for r in records
        if r.status == Status.PENDING.value and r.balance_due > 0 and r.due_date is not None and start <= r.due_date <= end
    ]


def build_insights(
    payables: Sequence[LedgerRecord],
    receivables: Sequence[LedgerRecord],
    periods: Sequence[ForecastPeriod],
    policy: RiskPolicy,
    as_of: date | None = None,
) -> list[Insight]:
    """
    Actionable insights, most urgent first.

    - pending payables due within the insight window
    - pending receivables due within the insight window
    - payables overdue beyond the critical day threshold
    - a large move in ending cash between the two latest forecast periods
    """
    as_of = as_of or date.today()
    window_end = as_of + timedelta(days=policy.insight_window_days)
    symbol = policy.currency_symbol
    insights: list[Insight] = []

    upcoming_payables = _due_within(payables, as_of, window_end)
    if upcoming_payables:
        total = round(sum(r.balance_due for r in upcoming_payables), 2)
        insights.append(
            Insight(
                type="action",
                priority=Priority.HIGH,
                category="payables",
                title="Upcoming Payments Due",
                description=(
                    f"{len(upcoming_payables)} payments totaling {format_currency(total, symbol)} "
                    f"due in the next {policy.insight_window_days} days"
                ),
                action="Review and prioritize payments",
                count=len(upcoming_payables),
                amount=total,
            )
        )

    upcoming_receivables = _due_within(receivables, as_of, window_end)
    if upcoming_receivables:
        total = round(sum(r.balance_due for r in upcoming_receivables), 2)
        insights.append(
            Insight(
                type="opportunity",
                priority=Priority.MEDIUM,
                category="receivables",
                title="Expected Collections",
                description=(
                    f"{len(upcoming_receivables)} payments totaling {format_currency(total, symbol)} "
                    f"expected in the next {policy.insight_window_days} days"
                ),
                action="Follow up with customers",
                count=len(upcoming_receivables),
                amount=total,
            )
        )

    severely_overdue = [
        r
        for r in payables
        if is_overdue(r, as_of) and days_overdue(r.due_date, as_of) > policy.critical_days_overdue
    ]
    if severely_overdue:
        insights.append(
            Insight(
                type="warning",
                priority=Priority.CRITICAL,
                category="payables",
                title="Severely Overdue Payables",
                description=(
                    f"{len(severely_overdue)} payments are more than {policy.critical_days_overdue} days overdue"
                ),
                action="Contact suppliers urgently",
                count=len(severely_overdue),
                amount=round(sum(r.balance_due for r in severely_overdue), 2),
            )
        )

    ordered = [p for p in sort_periods(periods) if p.period_start is not None]
    if len(ordered) >= 2:
        change = ordered[-1].ending_cash_position - ordered[-2].ending_cash_position
        if change < -policy.cash_trend_threshold:
            insights.append(
                Insight(
                    type="warning",
                    priority=Priority.HIGH,
                    category="cash_flow",
                    title="Declining Cash Position",
                    description=f"Cash position decreased by {format_currency(abs(change), symbol)} in recent period",
                    action="Review expenses and collections",
                    trend="declining",
                )
            )
        elif change > policy.cash_trend_threshold:
            insights.append(
                Insight(
                    type="positive",
                    priority=Priority.LOW,
                    category="cash_flow",
                    title="Improving Cash Position",
                    description=f"Cash position increased by {format_currency(change, symbol)} in recent period",
                    action="Consider strategic investments",
                    trend="improving",
                )
            )

    insights.sort(key=lambda i: PRIORITY_ORDER[i.priority])
    return insights
