"""USD to EUR conversion and display formatting for cost figures."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

Number = Decimal | int | float | str


def to_decimal(value: Number) -> Decimal:
    """Coerce to Decimal; floats go through str to avoid binary artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount: Number) -> Decimal:
    """Round half-up at the cent boundary."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def usd_to_eur(amount: Number, rate: Number) -> Decimal:
    """Convert a USD amount with a fixed rate, rounded to cents."""
    return round_money(to_decimal(amount) * to_decimal(rate))


class CurrencyConverter:
    """Converts variable (USD) costs into the reporting currency."""

    def __init__(self, rate: Number):
        self.rate = to_decimal(rate)

    def usd_to_eur(self, amount: Number) -> Decimal:
        return usd_to_eur(amount, self.rate)


def format_cost(amount: Number, currency: str = "€") -> str:
    """
    Render a cost for display.

    0 → "€0.00", anything below one cent → "<€0.01", else two decimals.
    Negative amounts (refunds, credits) carry a leading minus sign.
    """
    value = to_decimal(amount)
    if value == 0:
        return f"{currency}0.00"
    if value < 0:
        return f"-{format_cost(-value, currency)}"
    if value < CENT:
        return f"<{currency}0.01"
    return f"{currency}{round_money(value)}"


def format_number(num: int | float) -> str:
    """Abbreviate large counts: 1500 → "1.5K", 2_000_000 → "2.0M"."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1000:
        return f"{num / 1000:.1f}K"
    return str(num)
