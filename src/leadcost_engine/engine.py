"""CostEngine: the service instance owning config, storage and the metrics cache."""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Any, AsyncGenerator, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.activity.models import ActivityRecordModel, ActivityType
from leadcost_engine.activity.service import ActivityRecorder, parse_activity_type
from leadcost_engine.common.config import LeadCostSettings, get_settings
from leadcost_engine.common.database import DatabaseManager
from leadcost_engine.common.exceptions import InvalidDateRange, InvalidUsage, PersistenceError
from leadcost_engine.common.models import as_utc, utc_now
from leadcost_engine.costs.aggregator import MonthlyAggregator, month_of
from leadcost_engine.costs.alerts import CostAlertMonitor
from leadcost_engine.costs.cache import MetricsCache
from leadcost_engine.costs.currency import CurrencyConverter, Number
from leadcost_engine.costs.metrics import MetricsSnapshot, build_snapshot
from leadcost_engine.costs.models import CostAlertModel, MonthlySummaryModel
from leadcost_engine.costs.scoring import EfficiencyScorer
from leadcost_engine.costs.trends import TrendsReporter, validate_months
from leadcost_engine.usage.models import UsagePurpose, UsageRecordModel
from leadcost_engine.usage.report import build_usage_report, parse_date_range
from leadcost_engine.usage.service import UsageRecorder, parse_purpose

logger = logging.getLogger(__name__)


class CostEngine:
    """
    Cost aggregation and reporting.

    Writes (usage, activity) recompute the affected month inside the same
    transaction while holding that month's writer lock, then invalidate the
    metrics cache when the current month changed. Reads go through the cache.
    """

    def __init__(
        self,
        settings: LeadCostSettings | None = None,
        db: DatabaseManager | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.db = db or DatabaseManager(self.settings)
        self._clock = clock

        self.converter = CurrencyConverter(self.settings.usd_to_eur_rate)
        self.usage = UsageRecorder()
        self.activities = ActivityRecorder()
        self.aggregator = MonthlyAggregator(self.settings, self.converter, self.activities)
        self.scorer = EfficiencyScorer(
            self.settings.target_cost_per_email,
            self.settings.target_cost_per_meeting,
        )
        self.trends = TrendsReporter(self.aggregator, clock=clock)
        self.alerts = CostAlertMonitor(self.settings)
        self.cache = MetricsCache(
            self._load_snapshot,
            ttl_seconds=self.settings.cache_ttl_seconds,
            clock=clock,
        )

    # ── Lifecycle ──

    async def start(self) -> None:
        if not self.db.initialized:
            await self.db.init()
        await self.db.create_all()

    async def close(self) -> None:
        await self.db.close()

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.db.get_session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Persistence failure during %s: %s", operation, exc)
            raise PersistenceError(operation, str(exc)) from exc

    def _after_write(self, year: int, month: int) -> None:
        if (year, month) == month_of(self._clock()):
            self.cache.invalidate()

    # ── Writes ──

    async def record_activity(
        self,
        activity_type: ActivityType | str,
        campaign_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        occurred_at: datetime | None = None,
    ) -> ActivityRecordModel:
        """Record an email sent or meeting booked and refresh its month."""
        kind = parse_activity_type(activity_type)
        moment = as_utc(occurred_at) if occurred_at else self._clock()
        year, month = month_of(moment)

        async with self.aggregator.locked(year, month):
            async with self._transaction("activity.record") as session:
                record = await self.activities.record(
                    session, kind, campaign_id, metadata, occurred_at=moment,
                )
                summary = await self.aggregator.recompute(session, year, month)
                await self.alerts.check(session, summary)

        self._after_write(year, month)
        return record

    async def record_usage(
        self,
        generation_id: str,
        model: str,
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        cost_usd: Number = 0,
        campaign_id: str | None = None,
        email_id: str | None = None,
        purpose: UsagePurpose | str | None = None,
        metadata: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> UsageRecordModel:
        """Store (or correct) one metered call and refresh its month."""
        if not generation_id:
            raise InvalidUsage("generation_id is required")
        if purpose is not None:
            parse_purpose(purpose)

        # A correction belongs to the month the generation was first billed in
        async with self._transaction("usage.lookup") as session:
            existing = await self.usage.get_by_generation_id(session, generation_id)
        if existing is not None:
            moment = as_utc(existing.created_at)
        else:
            moment = as_utc(created_at) if created_at else self._clock()
        year, month = month_of(moment)

        async with self.aggregator.locked(year, month):
            async with self._transaction("usage.record") as session:
                record, _created = await self.usage.record(
                    session,
                    generation_id=generation_id,
                    model=model,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    cost_usd=cost_usd,
                    campaign_id=campaign_id,
                    email_id=email_id,
                    purpose=purpose,
                    metadata=metadata,
                    created_at=moment,
                )
                summary = await self.aggregator.recompute(session, year, month)
                await self.alerts.check(session, summary)

        self._after_write(year, month)
        return record

    async def recompute_month(self, year: int, month: int) -> MonthlySummaryModel:
        """Rebuild a month's row from raw records."""
        async with self.aggregator.locked(year, month):
            async with self._transaction("summary.recompute") as session:
                summary = await self.aggregator.recompute(session, year, month)
        self._after_write(year, month)
        return summary

    # ── Reads ──

    async def _load_snapshot(self) -> MetricsSnapshot:
        year, month = month_of(self._clock())
        async with self.aggregator.locked(year, month):
            async with self._transaction("metrics.recompute") as session:
                summary = await self.aggregator.recompute(session, year, month)
                await self.alerts.check(session, summary)
        return build_snapshot(
            summary,
            self.scorer,
            self.settings.cost_alert_threshold,
            computed_at=self._clock(),
        )

    async def get_dashboard_metrics(self, force_refresh: bool = False) -> MetricsSnapshot:
        return await self.cache.get(force_refresh=force_refresh)

    async def get_cost_trends(self, months: int = 6) -> list[MonthlySummaryModel]:
        months = validate_months(months)
        async with self._transaction("trends.read") as session:
            return await self.trends.get_trends(session, months)

    async def get_usage_report(
        self,
        start: datetime | date | str,
        end: datetime | date | str,
    ) -> dict[str, Any]:
        """Usage breakdown for [start, end]; a date-only end covers that whole day."""
        start_at, end_at = parse_date_range(start, end)
        async with self._transaction("usage.report") as session:
            records = await self.usage.list_between(session, start_at, end_at)
            activity = await self.activities.count_by_campaign(session, start_at, end_at)
        report = build_usage_report(records, start_at, end_at, self.converter)
        report["campaign_activity"] = activity
        return report

    async def get_usage_report_for_days(self, days: int = 30) -> dict[str, Any]:
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidDateRange(f"days must be a positive integer, got {days!r}")
        end = self._clock()
        return await self.get_usage_report(end - timedelta(days=days), end)

    async def list_alerts(self, unacknowledged_only: bool = False) -> list[CostAlertModel]:
        async with self._transaction("alerts.read") as session:
            return await self.alerts.list_alerts(session, unacknowledged_only)

    async def acknowledge_alert(self, alert_id: str) -> CostAlertModel | None:
        async with self._transaction("alerts.acknowledge") as session:
            return await self.alerts.acknowledge(session, alert_id)
