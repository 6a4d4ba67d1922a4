"""Cost efficiency scoring against per-email and per-meeting targets."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from leadcost_engine.costs.currency import Number, to_decimal

HUNDRED = Decimal("100")


class UnitCosts(Protocol):
    emails_sent: int
    meetings_booked: int
    cost_per_email: Decimal
    cost_per_meeting: Decimal


def metric_score(actual: Number, target: Number) -> Decimal:
    """
    Score one unit cost against its target.

    At or below target → 100; each full target's worth of overage costs
    100 points; clamped to [0, 100].
    """
    actual = to_decimal(actual)
    target = to_decimal(target)
    if actual <= target:
        return HUNDRED
    penalty = (actual - target) / target * HUNDRED
    return max(Decimal("0"), HUNDRED - penalty)


class EfficiencyScorer:
    """Maps a snapshot's unit costs to a bounded 0-100 score."""

    def __init__(self, target_cost_per_email: Number, target_cost_per_meeting: Number):
        self.target_cost_per_email = to_decimal(target_cost_per_email)
        self.target_cost_per_meeting = to_decimal(target_cost_per_meeting)
        if self.target_cost_per_email <= 0 or self.target_cost_per_meeting <= 0:
            raise ValueError("efficiency targets must be > 0")

    def score(self, snapshot: UnitCosts) -> int:
        # Nothing sent yet means there is nothing to score
        if snapshot.emails_sent <= 0:
            return 0

        email_score = metric_score(snapshot.cost_per_email, self.target_cost_per_email)
        if snapshot.meetings_booked > 0:
            meeting_score = metric_score(snapshot.cost_per_meeting, self.target_cost_per_meeting)
        else:
            meeting_score = email_score

        overall = (email_score + meeting_score) / 2
        return int(overall.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
