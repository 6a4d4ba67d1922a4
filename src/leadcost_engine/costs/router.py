"""Cost metrics, trends and alerts API router."""

from fastapi import APIRouter, Depends, HTTPException, Query

from leadcost_engine.costs.schemas import (
    CostAlertResponse,
    DashboardMetricsResponse,
    MonthlySummaryResponse,
    TrendsResponse,
    TrendsSummary,
)
from leadcost_engine.costs.trends import summarize_trends
from leadcost_engine.deps import get_engine
from leadcost_engine.engine import CostEngine

router = APIRouter()


@router.get("/costs/dashboard-metrics", response_model=DashboardMetricsResponse)
async def dashboard_metrics(
    refresh: bool = Query(False, description="Bypass the metrics cache"),
    engine: CostEngine = Depends(get_engine),
):
    snapshot = await engine.get_dashboard_metrics(force_refresh=refresh)
    return DashboardMetricsResponse.from_snapshot(snapshot)


@router.get("/costs/trends", response_model=TrendsResponse)
async def cost_trends(
    months: int = Query(6, description="Trailing window, 1-24 months"),
    engine: CostEngine = Depends(get_engine),
):
    summaries = await engine.get_cost_trends(months)
    return TrendsResponse(
        trends=[MonthlySummaryResponse.model_validate(s) for s in summaries],
        summary=TrendsSummary(**summarize_trends(summaries)),
    )


@router.get("/costs/alerts", response_model=list[CostAlertResponse])
async def list_alerts(
    unacknowledged: bool = Query(False),
    engine: CostEngine = Depends(get_engine),
):
    alerts = await engine.list_alerts(unacknowledged_only=unacknowledged)
    return [CostAlertResponse.model_validate(a) for a in alerts]


@router.post("/costs/alerts/{alert_id}/acknowledge", response_model=CostAlertResponse)
async def acknowledge_alert(alert_id: str, engine: CostEngine = Depends(get_engine)):
    alert = await engine.acknowledge_alert(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return CostAlertResponse.model_validate(alert)
