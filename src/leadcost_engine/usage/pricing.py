"""Fallback price table for when the provider has not reported a billed cost."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ModelPricing:
    """USD per 1M tokens."""
    input_per_million: Decimal
    output_per_million: Decimal


DEFAULT_MODEL = "anthropic/claude-3-haiku"

PRICING_TABLE: dict[str, ModelPricing] = {
    "anthropic/claude-3-haiku": ModelPricing(Decimal("0.25"), Decimal("1.25")),
    "anthropic/claude-3-sonnet": ModelPricing(Decimal("3.00"), Decimal("15.00")),
    "anthropic/claude-3-opus": ModelPricing(Decimal("15.00"), Decimal("75.00")),
    "openai/gpt-4-turbo": ModelPricing(Decimal("10.00"), Decimal("30.00")),
    "openai/gpt-3.5-turbo": ModelPricing(Decimal("0.50"), Decimal("1.50")),
    "google/gemini-pro": ModelPricing(Decimal("0.50"), Decimal("1.50")),
    "meta-llama/llama-3-70b": ModelPricing(Decimal("0.70"), Decimal("0.90")),
}

MILLION = Decimal("1000000")


def estimate_cost_usd(model: str | None, prompt_tokens: int, completion_tokens: int) -> Decimal:
    """Estimate a call's cost; unknown models are priced as the default model."""
    pricing = PRICING_TABLE.get(model or DEFAULT_MODEL, PRICING_TABLE[DEFAULT_MODEL])
    cost = (
        Decimal(prompt_tokens) / MILLION * pricing.input_per_million
        + Decimal(completion_tokens) / MILLION * pricing.output_per_million
    )
    return cost.quantize(Decimal("0.000001"))
