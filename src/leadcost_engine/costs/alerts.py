"""Monthly spend threshold alerts."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.common.config import LeadCostSettings
from leadcost_engine.costs.models import CostAlertModel, MonthlySummaryModel

logger = logging.getLogger(__name__)

MONTHLY_THRESHOLD = "monthly_threshold"


class CostAlertMonitor:
    """Raises at most one threshold alert per month."""

    def __init__(self, settings: LeadCostSettings):
        self.settings = settings

    @property
    def threshold(self) -> Decimal:
        return self.settings.cost_alert_threshold

    async def check(
        self, session: AsyncSession, summary: MonthlySummaryModel,
    ) -> Optional[CostAlertModel]:
        """Create an alert when the month's total crosses the threshold."""
        if summary.total_cost <= self.threshold:
            return None

        existing = await session.execute(
            select(CostAlertModel).where(
                CostAlertModel.alert_type == MONTHLY_THRESHOLD,
                CostAlertModel.year == summary.year,
                CostAlertModel.month == summary.month,
            )
        )
        if existing.scalar_one_or_none() is not None:
            return None

        alert = CostAlertModel(
            alert_type=MONTHLY_THRESHOLD,
            year=summary.year,
            month=summary.month,
            threshold_amount=self.threshold,
            current_amount=summary.total_cost,
            is_triggered=True,
            triggered_at=datetime.now(timezone.utc),
        )
        session.add(alert)
        await session.flush()
        logger.warning(
            "Cost alert: monthly spend (€%s) for %s exceeded threshold (€%s)",
            summary.total_cost, summary.period, self.threshold,
        )
        return alert

    async def list_alerts(
        self,
        session: AsyncSession,
        unacknowledged_only: bool = False,
        limit: int = 50,
    ) -> list[CostAlertModel]:
        query = select(CostAlertModel)
        if unacknowledged_only:
            query = query.where(CostAlertModel.acknowledged_at.is_(None))
        query = query.order_by(CostAlertModel.created_at.desc()).limit(limit)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def acknowledge(
        self, session: AsyncSession, alert_id: str,
    ) -> Optional[CostAlertModel]:
        result = await session.execute(
            select(CostAlertModel).where(CostAlertModel.id == alert_id)
        )
        alert = result.scalar_one_or_none()
        if alert is None:
            return None
        if alert.acknowledged_at is None:
            alert.acknowledged_at = datetime.now(timezone.utc)
            await session.flush()
        return alert
