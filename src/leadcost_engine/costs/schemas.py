"""Pydantic schemas for dashboard metrics, trends and alerts."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from leadcost_engine.costs.currency import format_cost, format_number
from leadcost_engine.costs.metrics import MetricsSnapshot


class FixedCosts(BaseModel):
    instantly: float
    google_workspace: float
    total: float


class VariableCosts(BaseModel):
    openrouter: float
    total: float


class CostBreakdown(BaseModel):
    fixed: FixedCosts
    variable: VariableCosts
    total: float


class FormattedMetrics(BaseModel):
    total_cost: str
    cost_per_email: str
    cost_per_meeting: str
    remaining_budget: str
    emails_sent: str
    meetings_booked: str


class DashboardMetricsResponse(BaseModel):
    period: str
    total_cost: float
    openrouter_cost_usd: float
    emails_sent: int
    meetings_booked: int
    cost_per_email: float
    cost_per_meeting: float
    efficiency_score: int
    remaining_budget: float
    over_budget: bool
    exchange_rate: float
    breakdown: CostBreakdown
    formatted: FormattedMetrics
    computed_at: datetime
    stale: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "DashboardMetricsResponse":
        return cls(
            period=snapshot.period,
            total_cost=snapshot.total_cost,
            openrouter_cost_usd=snapshot.openrouter_cost_usd,
            emails_sent=snapshot.emails_sent,
            meetings_booked=snapshot.meetings_booked,
            cost_per_email=snapshot.cost_per_email,
            cost_per_meeting=snapshot.cost_per_meeting,
            efficiency_score=snapshot.efficiency_score,
            remaining_budget=snapshot.remaining_budget,
            over_budget=snapshot.over_budget,
            exchange_rate=snapshot.exchange_rate,
            breakdown=CostBreakdown.model_validate(snapshot.cost_breakdown()),
            formatted=FormattedMetrics(
                total_cost=format_cost(snapshot.total_cost),
                cost_per_email=format_cost(snapshot.cost_per_email),
                cost_per_meeting=format_cost(snapshot.cost_per_meeting),
                remaining_budget=format_cost(snapshot.remaining_budget),
                emails_sent=format_number(snapshot.emails_sent),
                meetings_booked=format_number(snapshot.meetings_booked),
            ),
            computed_at=snapshot.computed_at,
            stale=snapshot.stale,
        )


class MonthlySummaryResponse(BaseModel):
    year: int
    month: int
    period: str
    instantly_cost: float
    google_workspace_cost: float
    openrouter_cost: float
    openrouter_cost_usd: float
    total_cost: float
    emails_sent: int
    meetings_booked: int
    cost_per_email: float
    cost_per_meeting: float
    exchange_rate: float

    model_config = {"from_attributes": True}


class TrendsSummary(BaseModel):
    average_monthly_cost: float
    total_emails_sent: int
    total_meetings_booked: int


class TrendsResponse(BaseModel):
    trends: list[MonthlySummaryResponse]
    summary: TrendsSummary


class CostAlertResponse(BaseModel):
    id: str
    alert_type: str
    year: int
    month: int
    threshold_amount: float
    current_amount: float
    is_triggered: bool
    triggered_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
