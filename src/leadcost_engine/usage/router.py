"""Usage API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from leadcost_engine.deps import get_engine
from leadcost_engine.engine import CostEngine
from leadcost_engine.usage.schemas import (
    UsageRecordRequest,
    UsageRecordResponse,
    UsageReportResponse,
)

router = APIRouter()

DEFAULT_REPORT_DAYS = 30


@router.post("/costs/usage", response_model=UsageRecordResponse)
async def record_usage(body: UsageRecordRequest, engine: CostEngine = Depends(get_engine)):
    record = await engine.record_usage(
        generation_id=body.generation_id,
        model=body.model,
        prompt_tokens=body.prompt_tokens,
        completion_tokens=body.completion_tokens,
        cost_usd=body.cost_usd,
        campaign_id=body.campaign_id,
        email_id=body.email_id,
        purpose=body.purpose,
        metadata=body.metadata,
    )
    return UsageRecordResponse.model_validate(record)


@router.get("/costs/usage-report", response_model=UsageReportResponse)
async def usage_report(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    days: Optional[int] = Query(None),
    engine: CostEngine = Depends(get_engine),
):
    if days is not None:
        return await engine.get_usage_report_for_days(days)
    if start_date is not None or end_date is not None:
        # A missing bound is reported like an unparsable one
        return await engine.get_usage_report(start_date or "", end_date or "")
    return await engine.get_usage_report_for_days(DEFAULT_REPORT_DAYS)
