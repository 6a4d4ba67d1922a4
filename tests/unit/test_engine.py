"""End-to-end tests for the cost engine."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from leadcost_engine.common.exceptions import InvalidActivityType, InvalidUsage, PersistenceError
from leadcost_engine.costs.models import MonthlySummaryModel
from leadcost_engine.usage.models import UsageRecordModel


def _db_down(*args, **kwargs):
    raise OperationalError("INSERT", {}, Exception("disk I/O error"))


async def _summary(engine, year, month):
    async with engine.db.get_session() as session:
        return await engine.aggregator.get_summary(session, year, month)


class TestEndToEnd:
    async def test_month_with_activity_and_usage(self, engine):
        for _ in range(100):
            await engine.record_activity("email_sent", campaign_id="camp-1")
        for _ in range(5):
            await engine.record_activity("meeting_booked", campaign_id="camp-1")
        await engine.record_usage("gen-1", "anthropic/claude-3-haiku", 1000, 500, cost_usd="3.00")
        await engine.record_usage("gen-2", "anthropic/claude-3-haiku", 800, 400, cost_usd="2.00")

        metrics = await engine.get_dashboard_metrics()

        assert metrics.period == "2026-03"
        assert metrics.instantly_cost == Decimal("75")
        assert metrics.google_workspace_cost == Decimal("48")
        assert metrics.openrouter_cost_usd == Decimal("5.00")
        assert metrics.openrouter_cost == Decimal("4.60")
        assert metrics.total_cost == Decimal("127.60")
        assert metrics.emails_sent == 100
        assert metrics.meetings_booked == 5
        assert metrics.cost_per_email == Decimal("1.276")
        assert metrics.cost_per_meeting == Decimal("25.52")
        assert metrics.efficiency_score == 0
        assert metrics.remaining_budget == Decimal("72.40")
        assert metrics.over_budget is False

    async def test_empty_month(self, engine):
        metrics = await engine.get_dashboard_metrics()
        assert metrics.total_cost == Decimal("123")
        assert metrics.cost_per_email == 0
        assert metrics.cost_per_meeting == 0
        assert metrics.efficiency_score == 0

    async def test_breakdown(self, engine):
        await engine.record_usage("gen-1", "m", cost_usd="10")
        breakdown = (await engine.get_dashboard_metrics()).cost_breakdown()
        assert breakdown["fixed"]["total"] == Decimal("123")
        assert breakdown["variable"]["openrouter"] == Decimal("9.20")
        assert breakdown["total"] == Decimal("132.20")


class TestIdempotentUsage:
    async def test_correction_is_not_double_counted(self, engine):
        await engine.record_usage("gen-1", "m", 10, 10, cost_usd="1.00")
        await engine.record_usage("gen-1", "m", 10, 10, cost_usd="2.00")

        async with engine.db.get_session() as session:
            count = await session.scalar(select(func.count()).select_from(UsageRecordModel))
            record = await engine.usage.get_by_generation_id(session, "gen-1")
        assert count == 1
        assert record.cost_usd == Decimal("2.00")

        metrics = await engine.get_dashboard_metrics()
        assert metrics.openrouter_cost_usd == Decimal("2.00")
        assert metrics.openrouter_cost == Decimal("1.84")

    async def test_correction_stays_in_original_month(self, engine):
        february = datetime(2026, 2, 20, tzinfo=timezone.utc)
        await engine.record_usage("gen-1", "m", cost_usd="1.00", created_at=february)
        await engine.record_usage("gen-1", "m", cost_usd="3.00")

        feb = await _summary(engine, 2026, 2)
        assert feb.openrouter_cost_usd == Decimal("3.00")
        metrics = await engine.get_dashboard_metrics()
        assert metrics.openrouter_cost_usd == 0

    async def test_replaying_same_event_is_harmless(self, engine):
        for _ in range(3):
            await engine.record_usage("gen-1", "m", cost_usd="1.00")
        metrics = await engine.get_dashboard_metrics()
        assert metrics.openrouter_cost == Decimal("0.92")


class TestConcurrentWriters:
    async def test_gathered_writes_are_counted_exactly(self, engine):
        writes = [engine.record_activity("email_sent") for _ in range(30)]
        writes += [
            engine.record_usage(f"gen-{i}", "m", 10, 10, cost_usd="0.10")
            for i in range(30)
        ]
        await asyncio.gather(*writes)

        stored = await _summary(engine, 2026, 3)
        assert stored.emails_sent == 30
        assert stored.openrouter_cost_usd == Decimal("3.00")
        assert stored.total_cost == Decimal("125.76")

        metrics = await engine.get_dashboard_metrics()
        assert metrics.emails_sent == 30
        assert metrics.openrouter_cost_usd == Decimal("3.00")
        assert metrics.cost_per_email == Decimal("4.192")

    async def test_gathered_duplicate_generation_is_stored_once(self, engine):
        await asyncio.gather(
            engine.record_usage("gen-dup", "m", cost_usd="1.00"),
            engine.record_usage("gen-dup", "m", cost_usd="1.00"),
        )
        async with engine.db.get_session() as session:
            count = await session.scalar(select(func.count()).select_from(UsageRecordModel))
        assert count == 1

        stored = await _summary(engine, 2026, 3)
        assert stored.openrouter_cost_usd == Decimal("1.00")
        assert stored.openrouter_cost == Decimal("0.92")

    async def test_writes_to_different_months_do_not_mix(self, engine):
        january = datetime(2026, 1, 10, tzinfo=timezone.utc)
        await asyncio.gather(
            *(engine.record_activity("email_sent", occurred_at=january) for _ in range(5)),
            *(engine.record_activity("meeting_booked") for _ in range(3)),
        )
        jan = await _summary(engine, 2026, 1)
        mar = await _summary(engine, 2026, 3)
        assert (jan.emails_sent, jan.meetings_booked) == (5, 0)
        assert (mar.emails_sent, mar.meetings_booked) == (0, 3)


class TestDashboardCache:
    async def test_cached_within_ttl(self, engine, clock):
        first = await engine.get_dashboard_metrics()
        clock.advance(seconds=30)
        second = await engine.get_dashboard_metrics()
        assert second.computed_at == first.computed_at
        assert engine.cache.recompute_count == 1

    async def test_force_refresh_gives_new_computed_at(self, engine, clock):
        first = await engine.get_dashboard_metrics()
        clock.advance(seconds=1)
        second = await engine.get_dashboard_metrics(force_refresh=True)
        assert second.computed_at != first.computed_at

    async def test_expires_after_ttl(self, engine, clock):
        await engine.get_dashboard_metrics()
        clock.advance(seconds=61)
        await engine.get_dashboard_metrics()
        assert engine.cache.recompute_count == 2

    async def test_current_month_write_invalidates(self, engine):
        await engine.get_dashboard_metrics()
        await engine.record_activity("email_sent")
        metrics = await engine.get_dashboard_metrics()
        assert metrics.emails_sent == 1

    async def test_past_month_write_keeps_cache(self, engine):
        first = await engine.get_dashboard_metrics()
        await engine.record_activity(
            "email_sent", occurred_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
        )
        second = await engine.get_dashboard_metrics()
        assert second is first


class TestFailures:
    async def test_invalid_activity_type(self, engine):
        with pytest.raises(InvalidActivityType):
            await engine.record_activity("email_opened")
        assert await _summary(engine, 2026, 3) is None

    async def test_invalid_usage(self, engine):
        with pytest.raises(InvalidUsage):
            await engine.record_usage("gen-1", "m", prompt_tokens=-1)
        with pytest.raises(InvalidUsage):
            await engine.record_usage("", "m")

    async def test_write_failure_is_surfaced(self, engine, monkeypatch):
        monkeypatch.setattr(engine.activities, "record", _db_down)
        with pytest.raises(PersistenceError) as exc:
            await engine.record_activity("email_sent")
        assert exc.value.operation == "activity.record"
        assert exc.value.code == "PERSISTENCE_ERROR"

    async def test_dashboard_degrades_to_stale(self, engine, monkeypatch):
        good = await engine.get_dashboard_metrics()
        monkeypatch.setattr(engine.aggregator, "recompute", _db_down)

        degraded = await engine.get_dashboard_metrics(force_refresh=True)
        assert degraded.stale is True
        assert degraded.total_cost == good.total_cost
        assert isinstance(engine.cache.last_error, PersistenceError)

    async def test_dashboard_failure_without_snapshot_raises(self, engine, monkeypatch):
        monkeypatch.setattr(engine.aggregator, "recompute", _db_down)
        with pytest.raises(PersistenceError):
            await engine.get_dashboard_metrics()


class TestRecomputeMonth:
    async def test_raw_records_win_over_stored_row(self, engine):
        await engine.record_activity("email_sent")
        async with engine.db.get_session() as session:
            row = await engine.aggregator.get_summary(session, 2026, 3)
            row.total_cost = Decimal("1")
            row.emails_sent = 500

        summary = await engine.recompute_month(2026, 3)
        assert summary.total_cost == Decimal("123")
        assert summary.emails_sent == 1

    async def test_creates_row_lazily(self, engine):
        await engine.recompute_month(2025, 7)
        async with engine.db.get_session() as session:
            count = await session.scalar(select(func.count()).select_from(MonthlySummaryModel))
        assert count == 1
