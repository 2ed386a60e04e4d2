"""Pricing calculator: pure functions over int cents.

total = subtotal + tax + shipping_cost - discount, never negative. A discount
larger than subtotal + tax + shipping_cost is truncated to that amount, so the
returned summary always reconciles exactly and total bottoms out at zero.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from src.mp_common.errors import ValidationError


@dataclass(frozen=True)
class PricingSummary:
    subtotal: int
    tax: int
    shipping_cost: int
    discount: int  # effective discount after truncation
    total: int


def line_total(price: int, quantity: int) -> int:
    if quantity <= 0:
        raise ValidationError(f"quantity must be positive, got {quantity}")
    if price < 0:
        raise ValidationError(f"price must not be negative, got {price}")
    return price * quantity


def calculate_subtotal(lines: Iterable[tuple[int, int]]) -> int:
    """Sum of price * quantity over (price, quantity) pairs."""
    return sum(line_total(price, quantity) for price, quantity in lines)


def calculate_totals(
    lines: Iterable[tuple[int, int]],
    tax: int = 0,
    shipping_cost: int = 0,
    discount: int = 0,
) -> PricingSummary:
    for name, amount in (("tax", tax), ("shipping_cost", shipping_cost), ("discount", discount)):
        if amount < 0:
            raise ValidationError(f"{name} must not be negative, got {amount}")

    subtotal = calculate_subtotal(lines)
    gross = subtotal + tax + shipping_cost
    effective_discount = min(discount, gross)
    return PricingSummary(
        subtotal=subtotal,
        tax=tax,
        shipping_cost=shipping_cost,
        discount=effective_discount,
        total=gross - effective_discount,
    )
