"""Integer arithmetic utilities for money.

All prices, totals, commissions and refunds are int minor units (cents).
Percentages are Decimal so that rates like 7.5% stay exact; the result of
applying a rate is rounded half-up to a whole cent.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_HUNDRED = Decimal(100)


def cents_to_display(cents: int, currency: str = "USD") -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    symbol = "$" if currency == "USD" else f"{currency} "
    if cents < 0:
        abs_cents = -cents
        return f"-{symbol}{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{symbol}{cents // 100:,}.{cents % 100:02d}"


def parse_percent(value: object) -> Decimal:
    """Parse a percentage in [0, 100]; raises ValueError otherwise."""
    try:
        percent = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid percentage: {value!r}") from exc
    if not percent.is_finite() or not (0 <= percent <= 100):
        raise ValueError(f"Percentage must be between 0 and 100, got {value}")
    return percent


def percent_of(amount: int, percent: Decimal) -> int:
    """amount * percent / 100, rounded half-up to a whole cent."""
    if amount == 0 or percent == 0:
        return 0
    exact = Decimal(amount) * percent / _HUNDRED
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))
