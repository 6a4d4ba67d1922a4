"""Usage recorder: idempotent storage of metered AI calls."""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcost_engine.common.exceptions import InvalidUsage
from leadcost_engine.common.models import as_utc
from leadcost_engine.costs.currency import Number, to_decimal
from leadcost_engine.usage.models import UsagePurpose, UsageRecordModel

logger = logging.getLogger(__name__)

COST_PRECISION = Decimal("0.000001")


def parse_purpose(purpose: UsagePurpose | str | None) -> UsagePurpose:
    """Resolve a purpose value, rejecting anything outside the closed set."""
    if purpose is None:
        return UsagePurpose.OTHER
    try:
        return UsagePurpose(purpose)
    except ValueError:
        valid = [p.value for p in UsagePurpose]
        raise InvalidUsage(f"purpose must be one of: {valid}, got {purpose!r}") from None


class UsageRecorder:
    """Persists one record per metered AI call, upserting on generation id."""

    def __init__(self):
        # Serializes upserts within the process; the unique index covers the rest
        self._lock = asyncio.Lock()

    async def record(
        self,
        session: AsyncSession,
        generation_id: str,
        model: str,
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        cost_usd: Number = 0,
        campaign_id: str | None = None,
        email_id: str | None = None,
        purpose: UsagePurpose | str | None = None,
        metadata: dict[str, Any] | None = None,
        total_tokens: int | None = None,
        created_at: datetime | None = None,
    ) -> tuple[UsageRecordModel, bool]:
        """Insert or correct a usage record. Returns (record, created)."""
        if not generation_id:
            raise InvalidUsage("generation_id is required")
        if not model:
            raise InvalidUsage("model is required")
        if prompt_tokens < 0 or completion_tokens < 0:
            raise InvalidUsage("token counts must be >= 0")
        if total_tokens is None:
            total_tokens = prompt_tokens + completion_tokens
        if total_tokens < 0:
            raise InvalidUsage("token counts must be >= 0")

        try:
            cost = to_decimal(cost_usd if cost_usd is not None else 0)
        except (ArithmeticError, TypeError, ValueError):
            raise InvalidUsage(f"cost_usd is not a number: {cost_usd!r}") from None
        if not cost.is_finite() or cost < 0:
            raise InvalidUsage("cost_usd must be a finite amount >= 0")
        cost = cost.quantize(COST_PRECISION)

        resolved_purpose = parse_purpose(purpose) if purpose is not None else None

        async with self._lock:
            existing = await self.get_by_generation_id(session, generation_id)

            if existing is None:
                record = UsageRecordModel(
                    generation_id=generation_id,
                    campaign_id=campaign_id,
                    email_id=email_id,
                    model=model,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    total_tokens=total_tokens,
                    cost_usd=cost,
                    purpose=(resolved_purpose or UsagePurpose.OTHER).value,
                    metadata_=metadata or {},
                )
                if created_at is not None:
                    record.created_at = as_utc(created_at)
                session.add(record)
                await session.flush()
                logger.info(
                    "Recorded usage %s (%s, %d tokens, $%s)",
                    generation_id, model, total_tokens, cost,
                )
                return record, True

            # Provider reported a corrected figure for the same generation
            existing.model = model
            existing.prompt_tokens = prompt_tokens
            existing.completion_tokens = completion_tokens
            existing.total_tokens = total_tokens
            existing.cost_usd = cost
            if campaign_id is not None:
                existing.campaign_id = campaign_id
            if email_id is not None:
                existing.email_id = email_id
            if resolved_purpose is not None:
                existing.purpose = resolved_purpose.value
            if metadata:
                existing.metadata_ = {**(existing.metadata_ or {}), **metadata}
            await session.flush()
            logger.info("Corrected usage %s to $%s", generation_id, cost)
            return existing, False

    async def get_by_generation_id(
        self, session: AsyncSession, generation_id: str,
    ) -> UsageRecordModel | None:
        result = await session.execute(
            select(UsageRecordModel).where(UsageRecordModel.generation_id == generation_id)
        )
        return result.scalar_one_or_none()

    async def list_between(
        self,
        session: AsyncSession,
        start: datetime,
        end: datetime,
        end_inclusive: bool = True,
    ) -> list[UsageRecordModel]:
        """Records with created_at in [start, end] (or [start, end) when exclusive)."""
        upper = (
            UsageRecordModel.created_at <= as_utc(end)
            if end_inclusive
            else UsageRecordModel.created_at < as_utc(end)
        )
        result = await session.execute(
            select(UsageRecordModel)
            .where(UsageRecordModel.created_at >= as_utc(start), upper)
            .order_by(UsageRecordModel.created_at.asc())
        )
        return list(result.scalars().all())
