"""Dashboard service: fetches a user's ledger rows and runs the metrics and risk logic."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Awaitable, TypeVar

import aiosqlite

from findash.database import Database
from findash.errors import LedgerStoreError
from findash.metrics import (
    aging_bucket,
    build_projections,
    cash_flow_summary,
    check_statuses,
    forecast_summary,
    ledger_summary,
    overall_health,
    overdue_records,
)
from findash.models import DataQualityReport, ForecastPeriod, LedgerKind, LedgerRecord
from findash.risks import RiskPolicy, build_insights, build_risk_report
from findash.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardService:
    """Service for the dashboard's read/aggregate views.

    Rows are fetched scoped to one user, converted to typed records and handed
    to the pure calculator and classifier. Independent reads run concurrently;
    nothing is computed until all of them have resolved.
    """

    def __init__(
        self,
        db: Database | None = None,
        settings: Settings | None = None,
        as_of: date | None = None,
    ):
        """Initialize service with optional dependencies.

        Args:
            db: Database instance (uses singleton if None)
            settings: Settings instance (uses singleton if None)
            as_of: Reference date for overdue calculations (today if None)
        """
        self._db = db or Database()
        self._settings = settings or Settings()
        self._as_of = as_of

    @property
    def as_of(self) -> date:
        return self._as_of or date.today()

    async def _fetch(self, awaitable: Awaitable[T]) -> T:
        """Await a store call, turning store failures into LedgerStoreError."""
        try:
            return await awaitable
        except aiosqlite.Error as e:
            logger.exception("Ledger store query failed")
            raise LedgerStoreError() from e

    async def _policy(self) -> RiskPolicy:
        return RiskPolicy.from_mapping(await self._fetch(self._settings.all()))

    def _ledger(self, rows: list[dict], kind: LedgerKind, report: DataQualityReport) -> list[LedgerRecord]:
        records = [LedgerRecord.from_row(row, kind, report) for row in rows]
        check_statuses(records, report, self.as_of)
        return records

    @staticmethod
    def _periods(rows: list[dict], report: DataQualityReport) -> list[ForecastPeriod]:
        return [ForecastPeriod.from_row(row, report) for row in rows]

    async def _load_all(
        self, user_id: str, report: DataQualityReport
    ) -> tuple[list[LedgerRecord], list[LedgerRecord], list[ForecastPeriod]]:
        payable_rows, receivable_rows, forecast_rows = await asyncio.gather(
            self._fetch(self._db.get_ledger_rows(LedgerKind.PAYABLE, user_id)),
            self._fetch(self._db.get_ledger_rows(LedgerKind.RECEIVABLE, user_id)),
            self._fetch(self._db.get_forecast_rows(user_id)),
        )
        return (
            self._ledger(payable_rows, LedgerKind.PAYABLE, report),
            self._ledger(receivable_rows, LedgerKind.RECEIVABLE, report),
            self._periods(forecast_rows, report),
        )

    async def get_overdue(self, kind: LedgerKind, user_id: str) -> dict:
        """Overdue payables or receivables with days overdue.

        Returns:
            dict with records (row + days_overdue + aging_bucket) and data_quality
        """
        report = DataQualityReport()
        rows = await self._fetch(self._db.get_overdue_candidates(kind, user_id, self.as_of.isoformat()))
        records = self._ledger(rows, kind, report)

        result = []
        for record, days in overdue_records(records, self.as_of):
            item = dict(record.row)
            item["days_overdue"] = days
            item["aging_bucket"] = aging_bucket(days)
            result.append(item)

        return {"records": result, "data_quality": report.to_list()}

    async def get_projections(self, user_id: str, months: int | None = None) -> dict:
        """Cash flow projections for the next ``months`` periods.

        Returns:
            dict with projections, summary and data_quality
        """
        policy = await self._policy()
        months = months or policy.projection_months

        report = DataQualityReport()
        rows = await self._fetch(self._db.get_forecast_rows(user_id, limit=months))
        periods = self._periods(rows, report)

        return {
            "projections": build_projections(periods, policy.cash_shortfall_threshold),
            "summary": forecast_summary(periods, policy.cash_shortfall_threshold),
            "data_quality": report.to_list(),
        }

    async def get_metrics(self, user_id: str) -> dict:
        """Key metrics per ledger, cash flow and overall health."""
        policy = await self._policy()
        report = DataQualityReport()
        payables, receivables, periods = await self._load_all(user_id, report)

        payables_summary = ledger_summary(payables, self.as_of)
        receivables_summary = ledger_summary(receivables, self.as_of)

        return {
            "accounts_payable": payables_summary,
            "accounts_receivable": receivables_summary,
            "cash_flow": cash_flow_summary(periods),
            "overall_health": overall_health(
                payables_total=payables_summary["total_balance"],
                receivables_total=receivables_summary["total_balance"],
                floor=policy.liquidity_floor,
            ),
            "data_quality": report.to_list(),
        }

    async def get_risks(self, user_id: str) -> dict:
        """Risk items grouped by severity, with totals and the no-risk message."""
        policy = await self._policy()
        report = DataQualityReport()
        payables, receivables, periods = await self._load_all(user_id, report)

        risk_report = build_risk_report(payables, receivables, periods, policy, self.as_of)
        result = risk_report.to_dict()
        result["data_quality"] = report.to_list()
        return result

    async def get_insights(self, user_id: str) -> dict:
        """Actionable insights, most urgent first."""
        policy = await self._policy()
        report = DataQualityReport()
        payables, receivables, periods = await self._load_all(user_id, report)

        insights = build_insights(payables, receivables, periods, policy, self.as_of)
        return {
            "insights": [i.to_dict() for i in insights],
            "total_insights": len(insights),
            "critical_count": sum(1 for i in insights if i.priority.value == "critical"),
            "high_count": sum(1 for i in insights if i.priority.value == "high"),
            "data_quality": report.to_list(),
        }
