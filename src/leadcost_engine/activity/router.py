"""Activity API router."""

from fastapi import APIRouter, Depends

from leadcost_engine.activity.schemas import ActivityRequest, ActivityResponse
from leadcost_engine.deps import get_engine
from leadcost_engine.engine import CostEngine

router = APIRouter()


@router.post("/costs/activity", response_model=ActivityResponse)
async def record_activity(body: ActivityRequest, engine: CostEngine = Depends(get_engine)):
    record = await engine.record_activity(
        body.type,
        campaign_id=body.campaign_id,
        metadata=body.metadata,
        occurred_at=body.occurred_at,
    )
    return ActivityResponse(
        id=record.id,
        type=record.activity_type,
        campaign_id=record.campaign_id,
        occurred_at=record.occurred_at,
    )
