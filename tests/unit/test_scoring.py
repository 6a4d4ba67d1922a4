"""Tests for efficiency scoring."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from leadcost_engine.costs.scoring import EfficiencyScorer, metric_score


@dataclass
class Units:
    emails_sent: int = 0
    meetings_booked: int = 0
    cost_per_email: Decimal = Decimal("0")
    cost_per_meeting: Decimal = Decimal("0")


@pytest.fixture
def scorer():
    return EfficiencyScorer(Decimal("0.10"), Decimal("5.00"))


class TestMetricScore:
    def test_under_target(self):
        assert metric_score("0.05", "0.10") == 100

    def test_at_target(self):
        assert metric_score("0.10", "0.10") == 100

    def test_half_over_target(self):
        assert metric_score("0.15", "0.10") == 50

    def test_clamped_at_zero(self):
        assert metric_score("0.30", "0.10") == 0


class TestEfficiencyScorer:
    def test_no_emails_scores_zero(self, scorer):
        assert scorer.score(Units()) == 0

    def test_meeting_score_falls_back_to_email_score(self, scorer):
        units = Units(emails_sent=10, cost_per_email=Decimal("0.15"))
        assert scorer.score(units) == 50

    def test_average_of_both(self, scorer):
        units = Units(
            emails_sent=100, meetings_booked=4,
            cost_per_email=Decimal("0.05"), cost_per_meeting=Decimal("7.50"),
        )
        assert scorer.score(units) == 75

    def test_within_targets(self, scorer):
        units = Units(
            emails_sent=1000, meetings_booked=30,
            cost_per_email=Decimal("0.08"), cost_per_meeting=Decimal("4.00"),
        )
        assert scorer.score(units) == 100

    @pytest.mark.parametrize("per_email", ["0", "0.01", "0.10", "1", "1000", "1000000000"])
    @pytest.mark.parametrize("per_meeting", ["0", "5", "25.52", "1000000000"])
    @pytest.mark.parametrize("meetings", [0, 5])
    def test_always_bounded(self, scorer, per_email, per_meeting, meetings):
        units = Units(
            emails_sent=100, meetings_booked=meetings,
            cost_per_email=Decimal(per_email), cost_per_meeting=Decimal(per_meeting),
        )
        score = scorer.score(units)
        assert isinstance(score, int)
        assert 0 <= score <= 100

    def test_monotonic_in_email_cost(self, scorer):
        scores = [
            scorer.score(Units(emails_sent=1, cost_per_email=Decimal(c)))
            for c in ("0.10", "0.12", "0.15", "0.19", "0.25")
        ]
        assert scores == sorted(scores, reverse=True)

    def test_targets_must_be_positive(self):
        with pytest.raises(ValueError):
            EfficiencyScorer(0, 5)
        with pytest.raises(ValueError):
            EfficiencyScorer("0.10", "-1")
