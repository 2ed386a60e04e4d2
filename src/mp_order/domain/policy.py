"""Cancellation and return eligibility, refund amounts."""

from datetime import datetime, timedelta

from src.mp_common.enums import OrderStatus, PaymentStatus
from src.mp_common.errors import (
    CancellationNotAllowedError,
    ReturnNotAllowedError,
    ReturnWindowExpiredError,
)

DEFAULT_RETURN_WINDOW = timedelta(days=30)

CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

# Money has actually moved (or is held) only in these payment states.
_REFUNDABLE_PAYMENT_STATUSES = frozenset({PaymentStatus.AUTHORIZED, PaymentStatus.COMPLETED})


def can_cancel(status: OrderStatus) -> bool:
    return status in CANCELLABLE_STATUSES


def ensure_cancellable(order_number: str, status: OrderStatus) -> None:
    if not can_cancel(status):
        raise CancellationNotAllowedError(order_number, status.value)


def cancellation_refund_amount(payment_status: PaymentStatus, total: int) -> int:
    return total if payment_status in _REFUNDABLE_PAYMENT_STATUSES else 0


def return_deadline(delivered_at: datetime, window: timedelta = DEFAULT_RETURN_WINDOW) -> datetime:
    return delivered_at + window


def is_within_return_window(
    delivered_at: datetime,
    now: datetime,
    window: timedelta = DEFAULT_RETURN_WINDOW,
) -> bool:
    """Elapsed time is a continuous duration; exactly `window` is still eligible."""
    return now - delivered_at <= window


def ensure_returnable(
    order_number: str,
    status: OrderStatus,
    delivered_at: datetime | None,
    now: datetime,
    window: timedelta = DEFAULT_RETURN_WINDOW,
) -> None:
    if status is not OrderStatus.DELIVERED or delivered_at is None:
        raise ReturnNotAllowedError(order_number, status.value)
    if not is_within_return_window(delivered_at, now, window):
        raise ReturnWindowExpiredError(order_number, window.days)


def payment_status_after_refund(refunded_total: int, order_total: int) -> PaymentStatus:
    if refunded_total >= order_total:
        return PaymentStatus.REFUNDED
    return PaymentStatus.PARTIALLY_REFUNDED
