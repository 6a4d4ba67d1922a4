"""Tests for monthly spend alerts."""

from decimal import Decimal

import pytest

from leadcost_engine.common.config import LeadCostSettings
from leadcost_engine.costs.alerts import MONTHLY_THRESHOLD
from leadcost_engine.engine import CostEngine


@pytest.fixture
async def low_threshold_engine(clock):
    settings = LeadCostSettings(db_url="sqlite+aiosqlite://", cost_alert_threshold=Decimal("100"))
    eng = CostEngine(settings, clock=clock)
    await eng.start()
    yield eng
    await eng.close()


class TestCostAlerts:
    async def test_no_alert_below_threshold(self, engine):
        await engine.record_activity("email_sent")
        assert await engine.list_alerts() == []

    async def test_alert_when_threshold_crossed(self, engine):
        # 100 USD -> 92 EUR on top of 123 fixed
        await engine.record_usage("gen-1", "m", cost_usd="100")
        alerts = await engine.list_alerts()
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type == MONTHLY_THRESHOLD
        assert (alert.year, alert.month) == (2026, 3)
        assert alert.threshold_amount == Decimal("200")
        assert alert.current_amount == Decimal("215.00")
        assert alert.is_triggered is True
        assert alert.acknowledged_at is None

    async def test_one_alert_per_month(self, low_threshold_engine):
        await low_threshold_engine.record_activity("email_sent")
        await low_threshold_engine.record_activity("email_sent")
        await low_threshold_engine.get_dashboard_metrics(force_refresh=True)
        assert len(await low_threshold_engine.list_alerts()) == 1

    async def test_acknowledge(self, low_threshold_engine):
        await low_threshold_engine.record_activity("email_sent")
        alert = (await low_threshold_engine.list_alerts())[0]

        acked = await low_threshold_engine.acknowledge_alert(alert.id)
        assert acked.acknowledged_at is not None
        assert await low_threshold_engine.list_alerts(unacknowledged_only=True) == []
        assert len(await low_threshold_engine.list_alerts()) == 1

    async def test_acknowledge_unknown(self, engine):
        assert await engine.acknowledge_alert("missing") is None
