"""Tests for derived financial metrics.

These tests verify the intended behavior of the calculator:
1. Days overdue and the overdue predicate
2. Balance and status derivation
3. Forecast projections and summaries
4. Ledger totals and overall health
"""

from datetime import date, datetime, timedelta

import pytest
from factories import ledger_record

from findash.errors import InvalidAmount, InvalidDate
from findash.metrics import (
    aging_bucket,
    build_projections,
    calculate_balance_due,
    cash_flow_summary,
    check_statuses,
    days_overdue,
    determine_status,
    forecast_summary,
    format_currency,
    format_percentage,
    has_shortfall,
    is_overdue,
    ledger_summary,
    overall_health,
    overdue_percentage,
    overdue_records,
    trend,
)
from findash.models import DataQualityReport, ForecastPeriod, LedgerKind, Status, Trend

AS_OF = date(2024, 6, 30)


def _period(start: str, ending, record_id: str = "p", **extra) -> ForecastPeriod:
    row = {"id": record_id, "period_start": start, "ending_cash_position": ending, **extra}
    return ForecastPeriod.from_row(row)


class TestDaysOverdue:
    """Tests for days_overdue."""

    def test_ten_days_ago(self):
        due = date.today() - timedelta(days=10)
        assert days_overdue(due) == 10

    def test_iso_string(self):
        assert days_overdue("2024-06-20", AS_OF) == 10

    def test_future_due_date_is_zero(self):
        assert days_overdue("2024-07-15", AS_OF) == 0

    def test_due_today_is_zero(self):
        assert days_overdue(AS_OF, AS_OF) == 0

    def test_datetime_reference(self):
        assert days_overdue("2024-06-29", datetime(2024, 6, 30, 23, 59)) == 1

    def test_timestamp_due_date_uses_date_part(self):
        assert days_overdue("2024-06-20T18:30:00", AS_OF) == 10

    def test_missing_due_date_raises(self):
        with pytest.raises(InvalidDate):
            days_overdue(None, AS_OF)

    def test_unparseable_due_date_raises(self):
        with pytest.raises(InvalidDate):
            days_overdue("next tuesday", AS_OF)

    def test_idempotent(self):
        assert days_overdue("2024-05-01", AS_OF) == days_overdue("2024-05-01", AS_OF)


class TestIsOverdue:
    """Tests for the overdue predicate."""

    def test_past_due_with_balance(self):
        assert is_overdue(ledger_record(100, "2024-06-01"), AS_OF)

    def test_zero_balance_is_not_overdue(self):
        assert not is_overdue(ledger_record(0, "2024-06-01"), AS_OF)

    def test_due_today_is_not_overdue(self):
        assert not is_overdue(ledger_record(100, "2024-06-30"), AS_OF)

    def test_missing_due_date_is_not_overdue(self):
        assert not is_overdue(ledger_record(100, None), AS_OF)

    def test_stored_status_is_ignored(self):
        record = ledger_record(100, "2024-07-10", status="overdue")
        assert not is_overdue(record, AS_OF)


class TestOverdueRecords:
    """Tests for overdue_records ordering."""

    def test_sorted_by_due_date_then_balance_desc(self):
        records = [
            ledger_record(50, "2024-06-10", record_id="a"),
            ledger_record(500, "2024-06-01", record_id="b"),
            ledger_record(900, "2024-06-10", record_id="c"),
            ledger_record(100, "2024-07-10", record_id="future"),
        ]
        result = overdue_records(records, AS_OF)
        assert [r.id for r, _ in result] == ["b", "c", "a"]
        assert [d for _, d in result] == [29, 20, 20]


class TestAgingBucket:
    @pytest.mark.parametrize(
        "days,label",
        [(0, "Current"), (1, "1-30 days"), (30, "1-30 days"), (31, "31-60 days"), (90, "61-90 days"), (91, "90+ days")],
    )
    def test_bands(self, days, label):
        assert aging_bucket(days) == label


class TestBalanceAndStatus:
    """Tests for balance and status derivation."""

    def test_balance_after_payments(self):
        assert calculate_balance_due(1000, [200, "300.50", None, ""]) == 499.5

    def test_balance_never_negative(self):
        assert calculate_balance_due(100, [150]) == 0.0

    def test_bad_payment_raises(self):
        with pytest.raises(InvalidAmount):
            calculate_balance_due(100, ["ten"])

    def test_status_paid(self):
        assert determine_status("2024-06-01", 0, AS_OF) is Status.PAID

    def test_status_overdue(self):
        assert determine_status("2024-06-01", 10, AS_OF) is Status.OVERDUE

    def test_status_pending(self):
        assert determine_status("2024-07-01", 10, AS_OF) is Status.PENDING

    def test_status_mismatch_is_reported(self):
        report = DataQualityReport()
        records = [
            ledger_record(100, "2024-07-10", status="overdue", record_id="wrong"),
            ledger_record(100, "2024-07-10", status="pending", record_id="right"),
        ]
        check_statuses(records, report, AS_OF)
        assert len(report) == 1
        warning = report.warnings[0]
        assert warning.record_id == "wrong"
        assert warning.code == "status_mismatch"
        assert warning.table == "accounts_payable"

    def test_stale_pending_is_not_reported(self):
        report = DataQualityReport()
        check_statuses([ledger_record(100, "2024-06-01", status="pending")], report, AS_OF)
        assert len(report) == 0

    def test_paid_with_balance_is_reported(self):
        report = DataQualityReport()
        check_statuses([ledger_record(100, "2024-07-10", status="paid")], report, AS_OF)
        assert [w.code for w in report.warnings] == ["status_mismatch"]


class TestShortfallAndTrend:
    def test_negative_position_is_shortfall(self):
        assert has_shortfall(-0.01)

    def test_zero_is_not_shortfall(self):
        assert not has_shortfall(0)

    def test_custom_threshold(self):
        assert has_shortfall(500, threshold=1000)

    def test_missing_position_raises(self):
        with pytest.raises(InvalidAmount):
            has_shortfall(None)

    def test_trend(self):
        assert trend(200, 100) is Trend.UP
        assert trend(50, 100) is Trend.DOWN
        assert trend(100, 100) is Trend.NEUTRAL
        assert trend(100, None) is Trend.NEUTRAL


class TestForecast:
    """Tests for forecast projections and summary."""

    @pytest.fixture
    def periods(self):
        # Deliberately out of order
        return [
            _period("2024-03-01", 300, "mar"),
            _period("2024-01-01", 1000, "jan"),
            _period("2024-02-01", -200, "feb"),
        ]

    def test_summary(self, periods):
        summary = forecast_summary(periods)
        assert summary["total_periods"] == 3
        assert summary["periods_with_shortfall"] == 1
        assert summary["lowest_balance"] == -200
        assert summary["highest_balance"] == 1000
        assert summary["average_ending_balance"] == pytest.approx(366.67, abs=0.01)

    def test_empty_summary_is_zero(self):
        summary = forecast_summary([])
        assert summary == {
            "total_periods": 0,
            "periods_with_shortfall": 0,
            "average_ending_balance": 0,
            "lowest_balance": 0,
            "highest_balance": 0,
        }

    def test_projections_are_chronological(self, periods):
        projections = build_projections(periods)
        assert [p["id"] for p in projections] == ["jan", "feb", "mar"]
        assert [p["period_label"] for p in projections] == ["Month 1", "Month 2", "Month 3"]
        assert [p["has_shortfall"] for p in projections] == [False, True, False]
        assert [p["trend"] for p in projections] == ["neutral", "down", "up"]

    def test_projection_totals(self):
        period = _period("2024-01-01", 0, cash_sales=1000, interest_income=25.5, rent=400, supplies="100")
        projection = build_projections([period])[0]
        assert projection["total_receipts"] == 1025.5
        assert projection["total_payments"] == 500.0

    def test_cash_flow_summary(self, periods):
        summary = cash_flow_summary(periods)
        assert summary["min_cash_position"] == -200
        assert summary["max_cash_position"] == 1000
        assert summary["avg_cash_position"] == pytest.approx(366.67, abs=0.01)

    def test_cash_flow_summary_empty(self):
        assert cash_flow_summary([])["total_net_change"] == 0


class TestLedgerTotals:
    """Tests for ledger summary and overall health."""

    def test_overdue_percentage_bounds(self):
        assert overdue_percentage(0, 0) == 0
        assert overdue_percentage(0, 4) == 0
        assert overdue_percentage(1, 4) == 25.0
        assert overdue_percentage(4, 4) == 100.0

    def test_ledger_summary(self):
        records = [
            ledger_record(100, "2024-06-01", record_id="a"),
            ledger_record(250.25, "2024-07-15", record_id="b"),
            ledger_record(0, "2024-05-01", record_id="c", status="paid"),
        ]
        summary = ledger_summary(records, AS_OF)
        assert summary["total_count"] == 3
        assert summary["total_balance"] == 350.25
        assert summary["overdue_balance"] == 100
        assert summary["overdue_count"] == 1
        assert summary["overdue_percentage"] == pytest.approx(33.33, abs=0.01)

    def test_empty_ledgers_health(self):
        health = overall_health(0, 0)
        assert health["liquidity_ratio"] == 0
        assert health["net_position"] == 0

    def test_liquidity_uses_payables(self):
        health = overall_health(payables_total=2000, receivables_total=5000)
        assert health["liquidity_ratio"] == 2.5
        assert health["net_position"] == 3000

    def test_liquidity_floor(self):
        assert overall_health(0, 500)["liquidity_ratio"] == 500
        assert overall_health(0, 500, floor=100)["liquidity_ratio"] == 5

    @pytest.mark.parametrize("floor", [0, 0.0, -10])
    def test_non_positive_floor_uses_default(self, floor):
        assert overall_health(0.0, 0.0, floor=floor)["liquidity_ratio"] == 0
        assert overall_health(0.0, 250.0, floor=floor)["liquidity_ratio"] == 250

    def test_receivable_kind_is_kept(self):
        record = ledger_record(10, "2024-06-01", kind=LedgerKind.RECEIVABLE)
        assert record.kind is LedgerKind.RECEIVABLE
        assert record.counterparty == "Acme Supplies"


class TestFormatting:
    def test_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(-1234.5) == "-$1,234.50"
        assert format_currency(None) == "$0.00"
        assert format_currency(10, "€") == "€10.00"

    def test_percentage(self):
        assert format_percentage(12.345) == "12.3%"
        assert format_percentage(50, decimals=0) == "50%"
