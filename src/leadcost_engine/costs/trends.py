"""Monthly cost trends over a trailing window."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.common.exceptions import InvalidRange
from leadcost_engine.common.models import utc_now
from leadcost_engine.costs.aggregator import MonthlyAggregator, add_months, month_of
from leadcost_engine.costs.currency import round_money
from leadcost_engine.costs.models import MonthlySummaryModel

MIN_MONTHS = 1
MAX_MONTHS = 24


def validate_months(months: Any) -> int:
    """Accept an int in [1, 24]; anything else is InvalidRange."""
    if isinstance(months, bool) or not isinstance(months, int):
        raise InvalidRange(f"Months parameter must be an integer, got {months!r}")
    if not MIN_MONTHS <= months <= MAX_MONTHS:
        raise InvalidRange()
    return months


def trailing_months(year: int, month: int, count: int) -> list[tuple[int, int]]:
    """The `count` calendar months ending with (year, month), oldest first."""
    return [add_months(year, month, -offset) for offset in range(count - 1, -1, -1)]


class TrendsReporter:
    """Produces one MonthlySummary per month, backfilling gaps with zero usage."""

    def __init__(
        self,
        aggregator: MonthlyAggregator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.aggregator = aggregator
        self._clock = clock

    async def get_trends(
        self, session: AsyncSession, months: int = 6,
    ) -> list[MonthlySummaryModel]:
        months = validate_months(months)
        year, month = month_of(self._clock())
        periods = trailing_months(year, month, months)

        result = await session.execute(
            select(MonthlySummaryModel).where(
                or_(*(
                    and_(MonthlySummaryModel.year == y, MonthlySummaryModel.month == m)
                    for y, m in periods
                ))
            )
        )
        stored = {(row.year, row.month): row for row in result.scalars().all()}

        # Gaps use today's fixed costs, not whatever was configured back then
        return [
            stored.get(period) or self.aggregator.new_summary(*period)
            for period in periods
        ]


def summarize_trends(summaries: list[MonthlySummaryModel]) -> dict[str, Any]:
    """Window-level averages and totals for the trends chart."""
    if not summaries:
        return {
            "average_monthly_cost": Decimal("0.00"),
            "total_emails_sent": 0,
            "total_meetings_booked": 0,
        }
    total = sum((s.total_cost for s in summaries), Decimal("0"))
    return {
        "average_monthly_cost": round_money(total / len(summaries)),
        "total_emails_sent": sum(s.emails_sent for s in summaries),
        "total_meetings_booked": sum(s.meetings_booked for s in summaries),
    }
