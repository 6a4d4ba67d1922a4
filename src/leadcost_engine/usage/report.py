"""Usage report bucketing by day, model, purpose and campaign."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Iterable

from leadcost_engine.common.exceptions import InvalidDateRange
from leadcost_engine.common.models import as_utc
from leadcost_engine.costs.currency import CurrencyConverter
from leadcost_engine.usage.models import UsageRecordModel


def parse_instant(
    value: datetime | date | str,
    name: str = "date",
    end_of_day: bool = False,
) -> datetime:
    """
    Parse a report boundary into an aware UTC datetime.

    Accepts datetimes, dates and ISO-8601 strings. Naive values are taken as
    UTC. A bare date means midnight UTC, or the last microsecond of that day
    when ``end_of_day`` is set.
    """
    day_time = time.max if end_of_day else time.min
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, day_time, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.combine(date.fromisoformat(text), day_time, tzinfo=timezone.utc)
        except ValueError:
            pass
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
    raise InvalidDateRange(f"Invalid {name}: {value!r}")


def parse_date_range(
    start: datetime | date | str,
    end: datetime | date | str,
) -> tuple[datetime, datetime]:
    start_at = parse_instant(start, "start_date")
    end_at = parse_instant(end, "end_date", end_of_day=True)
    if start_at > end_at:
        raise InvalidDateRange(
            f"start_date {start_at.isoformat()} is after end_date {end_at.isoformat()}"
        )
    return start_at, end_at


@dataclass
class UsageBucket:
    count: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost_usd: Decimal = field(default_factory=lambda: Decimal("0"))

    def add(self, record: UsageRecordModel) -> None:
        self.count += 1
        self.prompt_tokens += record.prompt_tokens or 0
        self.completion_tokens += record.completion_tokens or 0
        self.total_tokens += record.total_tokens or 0
        self.cost_usd += record.cost_usd or Decimal("0")

    def to_dict(self, converter: CurrencyConverter) -> dict[str, Any]:
        return {
            "count": self.count,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "cost_usd": self.cost_usd,
            "cost_eur": converter.usd_to_eur(self.cost_usd),
        }


def build_usage_report(
    records: Iterable[UsageRecordModel],
    start: datetime,
    end: datetime,
    converter: CurrencyConverter,
) -> dict[str, Any]:
    """Bucket records by day, model, purpose and campaign, plus range totals."""
    totals = UsageBucket()
    by_day: dict[str, UsageBucket] = {}
    by_model: dict[str, UsageBucket] = {}
    by_purpose: dict[str, UsageBucket] = {}
    by_campaign: dict[str, UsageBucket] = {}

    for record in records:
        day = as_utc(record.created_at).date().isoformat()
        for buckets, key in (
            (by_day, day),
            (by_model, record.model),
            (by_purpose, record.purpose or "other"),
            (by_campaign, record.campaign_id or "unassigned"),
        ):
            buckets.setdefault(key, UsageBucket()).add(record)
        totals.add(record)

    def render(buckets: dict[str, UsageBucket]) -> dict[str, dict[str, Any]]:
        return {key: buckets[key].to_dict(converter) for key in sorted(buckets)}

    total = totals.to_dict(converter)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "total_usage": total["count"],
        "total_prompt_tokens": total["prompt_tokens"],
        "total_completion_tokens": total["completion_tokens"],
        "total_tokens": total["total_tokens"],
        "total_cost_usd": total["cost_usd"],
        "total_cost_eur": total["cost_eur"],
        "exchange_rate": converter.rate,
        "by_day": render(by_day),
        "by_model": render(by_model),
        "by_purpose": render(by_purpose),
        "by_campaign": render(by_campaign),
    }
