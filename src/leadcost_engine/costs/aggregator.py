"""Monthly aggregation: materialize per-month totals from raw records."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.activity.models import ActivityType
from leadcost_engine.activity.service import ActivityRecorder
from leadcost_engine.common.config import LeadCostSettings
from leadcost_engine.costs.currency import CurrencyConverter
from leadcost_engine.costs.models import MonthlySummaryModel
from leadcost_engine.usage.models import UsageRecordModel

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    """Shift a (year, month) pair by delta calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Return [first instant, first instant of next month) in UTC."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    next_year, next_month = add_months(year, month, 1)
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(next_year, next_month, 1, tzinfo=timezone.utc)
    return start, end


def month_of(moment: datetime) -> tuple[int, int]:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.year, moment.month


def compute_unit_cost(total_cost: Decimal, count: int) -> Decimal:
    """total / count, or exactly 0 when there is nothing to divide by."""
    if count <= 0:
        return ZERO
    return total_cost / count


class MonthlyAggregator:
    """Reads, seeds and recomputes the monthly_costs rows."""

    def __init__(
        self,
        settings: LeadCostSettings,
        converter: CurrencyConverter | None = None,
        activities: ActivityRecorder | None = None,
    ):
        self.settings = settings
        self.activities = activities or ActivityRecorder()
        self.converter = converter or CurrencyConverter(settings.usd_to_eur_rate)
        self._locks: dict[tuple[int, int], asyncio.Lock] = {}

    def lock_for(self, year: int, month: int) -> asyncio.Lock:
        key = (year, month)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def locked(self, year: int, month: int) -> AsyncGenerator[None, None]:
        """Hold the single-writer lock for one month."""
        async with self.lock_for(year, month):
            yield

    def new_summary(self, year: int, month: int) -> MonthlySummaryModel:
        """Build an unsaved summary seeded with fixed costs and no usage."""
        fixed = self.settings.fixed_monthly_cost
        return MonthlySummaryModel(
            year=year,
            month=month,
            instantly_cost=self.settings.instantly_monthly_cost,
            google_workspace_cost=self.settings.google_workspace_monthly_cost,
            openrouter_cost=ZERO,
            openrouter_cost_usd=ZERO,
            total_cost=fixed,
            emails_sent=0,
            meetings_booked=0,
            cost_per_email=ZERO,
            cost_per_meeting=ZERO,
            exchange_rate=self.converter.rate,
        )

    async def get_summary(
        self, session: AsyncSession, year: int, month: int,
    ) -> MonthlySummaryModel | None:
        result = await session.execute(
            select(MonthlySummaryModel).where(
                MonthlySummaryModel.year == year,
                MonthlySummaryModel.month == month,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_summary(
        self, session: AsyncSession, year: int, month: int,
    ) -> MonthlySummaryModel:
        summary = await self.get_summary(session, year, month)
        if summary is not None:
            return summary

        summary = self.new_summary(year, month)
        session.add(summary)
        await session.flush()
        logger.info("Created monthly summary for %s", summary.period)
        return summary

    async def recompute(
        self, session: AsyncSession, year: int, month: int,
    ) -> MonthlySummaryModel:
        """
        Recompute a month's row from raw usage and activity records.

        Callers serialize writers for the month with ``locked(year, month)``
        and keep the lock until the session commits, so the sums below see a
        consistent set of records.
        """
        start, end = month_bounds(year, month)
        summary = await self.get_or_create_summary(session, year, month)

        usage_result = await session.execute(
            select(UsageRecordModel.cost_usd).where(
                UsageRecordModel.created_at >= start,
                UsageRecordModel.created_at < end,
            )
        )
        usage_usd = sum((row[0] or ZERO for row in usage_result.all()), ZERO)

        counts = await self.activities.count_between(session, start, end)

        openrouter_cost = self.converter.usd_to_eur(usage_usd)
        total_cost = summary.instantly_cost + summary.google_workspace_cost + openrouter_cost
        emails_sent = counts[ActivityType.EMAIL_SENT]
        meetings_booked = counts[ActivityType.MEETING_BOOKED]

        summary.openrouter_cost_usd = usage_usd
        summary.openrouter_cost = openrouter_cost
        summary.total_cost = total_cost
        summary.emails_sent = emails_sent
        summary.meetings_booked = meetings_booked
        summary.cost_per_email = compute_unit_cost(total_cost, emails_sent)
        summary.cost_per_meeting = compute_unit_cost(total_cost, meetings_booked)
        summary.exchange_rate = self.converter.rate
        await session.flush()

        logger.debug(
            "Recomputed %s: total=%s emails=%d meetings=%d",
            summary.period, total_cost, emails_sent, meetings_booked,
        )
        return summary
