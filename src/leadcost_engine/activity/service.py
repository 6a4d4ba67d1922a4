"""Activity recorder: append-only log of outreach outcomes."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.activity.models import ActivityRecordModel, ActivityType
from leadcost_engine.common.exceptions import InvalidActivityType
from leadcost_engine.common.models import as_utc, utc_now

logger = logging.getLogger(__name__)


def parse_activity_type(activity_type: ActivityType | str | None) -> ActivityType:
    """Resolve an activity type at the boundary; anything else is rejected."""
    if activity_type is None:
        raise InvalidActivityType()
    try:
        return ActivityType(activity_type)
    except ValueError:
        raise InvalidActivityType(
            f'Invalid activity type {activity_type!r}. Must be "email_sent" or "meeting_booked"'
        ) from None


class ActivityRecorder:
    """Persists one record per email sent or meeting booked."""

    async def record(
        self,
        session: AsyncSession,
        activity_type: ActivityType | str,
        campaign_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        occurred_at: datetime | None = None,
    ) -> ActivityRecordModel:
        kind = parse_activity_type(activity_type)
        record = ActivityRecordModel(
            activity_type=kind.value,
            campaign_id=campaign_id,
            metadata_=metadata or {},
            occurred_at=as_utc(occurred_at) if occurred_at else utc_now(),
        )
        session.add(record)
        await session.flush()
        logger.info("Recorded activity %s for campaign %s", kind.value, campaign_id)
        return record

    async def count_between(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
        campaign_id: str | None = None,
    ) -> dict[ActivityType, int]:
        """Count events per type with occurred_at in [start, end)."""
        query = (
            select(
                ActivityRecordModel.activity_type,
                func.count(ActivityRecordModel.id).label("count"),
            )
            .where(
                ActivityRecordModel.occurred_at >= as_utc(start),
                ActivityRecordModel.occurred_at < as_utc(end),
            )
        )
        if campaign_id is not None:
            query = query.where(ActivityRecordModel.campaign_id == campaign_id)
        result = await session.execute(query.group_by(ActivityRecordModel.activity_type))

        counts = {kind: 0 for kind in ActivityType}
        for row in result:
            counts[ActivityType(row.activity_type)] = row.count
        return counts

    async def count_by_campaign(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
    ) -> dict[str, dict[str, int]]:
        """Per-campaign event counts for [start, end]; feeds the usage report."""
        result = await session.execute(
            select(
                ActivityRecordModel.campaign_id,
                ActivityRecordModel.activity_type,
                func.count(ActivityRecordModel.id).label("count"),
            )
            .where(
                ActivityRecordModel.occurred_at >= as_utc(start),
                ActivityRecordModel.occurred_at <= as_utc(end),
            )
            .group_by(ActivityRecordModel.campaign_id, ActivityRecordModel.activity_type)
        )
        counts: dict[str, dict[str, int]] = {}
        for row in result:
            campaign = row.campaign_id or "unassigned"
            bucket = counts.setdefault(campaign, {kind.value: 0 for kind in ActivityType})
            bucket[row.activity_type] = row.count
        return counts
