"""Point-in-time dashboard snapshot derived from a monthly summary."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from leadcost_engine.costs.currency import round_money
from leadcost_engine.costs.models import MonthlySummaryModel
from leadcost_engine.costs.scoring import EfficiencyScorer


@dataclass(frozen=True)
class MetricsSnapshot:
    """A month's cost summary plus derived scores, stamped with computed_at."""

    year: int
    month: int
    instantly_cost: Decimal
    google_workspace_cost: Decimal
    openrouter_cost: Decimal
    openrouter_cost_usd: Decimal
    total_cost: Decimal
    emails_sent: int
    meetings_booked: int
    cost_per_email: Decimal
    cost_per_meeting: Decimal
    exchange_rate: Decimal
    efficiency_score: int
    remaining_budget: Decimal
    over_budget: bool
    computed_at: datetime
    stale: bool = False

    @property
    def period(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def fixed_cost(self) -> Decimal:
        return self.instantly_cost + self.google_workspace_cost

    def age_seconds(self, now: datetime) -> float:
        return (now - self.computed_at).total_seconds()

    def cost_breakdown(self) -> dict[str, Any]:
        return {
            "fixed": {
                "instantly": self.instantly_cost,
                "google_workspace": self.google_workspace_cost,
                "total": self.fixed_cost,
            },
            "variable": {
                "openrouter": self.openrouter_cost,
                "total": self.openrouter_cost,
            },
            "total": self.total_cost,
        }


def build_snapshot(
    summary: MonthlySummaryModel,
    scorer: EfficiencyScorer,
    budget: Decimal,
    computed_at: datetime,
) -> MetricsSnapshot:
    """Wrap a recomputed summary with its score and remaining budget."""
    total = summary.total_cost
    return MetricsSnapshot(
        year=summary.year,
        month=summary.month,
        instantly_cost=summary.instantly_cost,
        google_workspace_cost=summary.google_workspace_cost,
        openrouter_cost=summary.openrouter_cost,
        openrouter_cost_usd=summary.openrouter_cost_usd,
        total_cost=total,
        emails_sent=summary.emails_sent,
        meetings_booked=summary.meetings_booked,
        cost_per_email=summary.cost_per_email,
        cost_per_meeting=summary.cost_per_meeting,
        exchange_rate=summary.exchange_rate,
        efficiency_score=scorer.score(summary),
        remaining_budget=round_money(max(Decimal("0"), budget - total)),
        over_budget=total > budget,
        computed_at=computed_at,
    )
