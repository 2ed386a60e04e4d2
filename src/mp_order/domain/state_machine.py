"""Status transition tables for orders, items, payments and return requests.

Forward flow: pending -> confirmed -> processing -> shipped -> delivered.
Side exits: cancelled (from pending/confirmed) and returned (from delivered).
Both side exits are terminal.

Order status is stored, not derived on read. It is advanced by one rule:
after any item-level change the order moves forward, one step at a time, to
the earliest status among its active (not cancelled / not returned) items.
It never moves backward.
"""

from collections.abc import Iterable

from src.mp_common.enums import OrderStatus, PaymentStatus, ReturnStatus
from src.mp_common.errors import InvalidTransitionError

ORDER_FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)
_RANK = {status: rank for rank, status in enumerate(ORDER_FLOW)}

TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# An acknowledged (processing) item can still be cancelled together with its order.
ITEM_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    **ORDER_TRANSITIONS,
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
}

# Timestamp attribute set (once) when an order enters the status.
TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
}

RETURN_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.REQUESTED: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.RECEIVED}),
    ReturnStatus.RECEIVED: frozenset({ReturnStatus.PROCESSED}),
    ReturnStatus.PROCESSED: frozenset({ReturnStatus.COMPLETED}),
    ReturnStatus.COMPLETED: frozenset(),
    ReturnStatus.REJECTED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.AUTHORIZED, PaymentStatus.COMPLETED, PaymentStatus.FAILED}
    ),
    # A failed authorization may be retried.
    PaymentStatus.FAILED: frozenset(
        {PaymentStatus.AUTHORIZED, PaymentStatus.COMPLETED, PaymentStatus.FAILED}
    ),
    PaymentStatus.AUTHORIZED: frozenset(
        {
            PaymentStatus.COMPLETED,
            PaymentStatus.FAILED,
            PaymentStatus.PARTIALLY_REFUNDED,
            PaymentStatus.REFUNDED,
        }
    ),
    PaymentStatus.COMPLETED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.PARTIALLY_REFUNDED: frozenset(
        {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS[current]


def assert_transition(
    current: OrderStatus, target: OrderStatus, reason: str | None = None
) -> None:
    """Raise InvalidTransitionError unless current -> target is in the order table."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value, reason)


def assert_item_transition(current: OrderStatus, target: OrderStatus, item_id: str) -> None:
    if target not in ITEM_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value, f"item {item_id}")


def assert_return_transition(current: ReturnStatus, target: ReturnStatus) -> None:
    if target not in RETURN_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value, "return request")


def assert_payment_transition(current: PaymentStatus, target: PaymentStatus) -> None:
    if target not in PAYMENT_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value, "payment")


def is_active(status: OrderStatus) -> bool:
    return status not in TERMINAL_STATUSES


def rank(status: OrderStatus) -> int:
    """Position along the forward flow; terminal statuses have no rank."""
    return _RANK[status]


def next_status(status: OrderStatus) -> OrderStatus | None:
    if status not in _RANK:
        return None
    position = _RANK[status] + 1
    return ORDER_FLOW[position] if position < len(ORDER_FLOW) else None


def earliest_status(statuses: Iterable[OrderStatus]) -> OrderStatus | None:
    """Earliest forward-flow status, ignoring terminal ones; None if all are terminal."""
    active = [s for s in statuses if is_active(s)]
    if not active:
        return None
    return min(active, key=rank)


def aggregate_status(statuses: Iterable[OrderStatus]) -> OrderStatus:
    """Status of a group of items: earliest active one, else returned, else cancelled."""
    statuses = list(statuses)
    earliest = earliest_status(statuses)
    if earliest is not None:
        return earliest
    if OrderStatus.RETURNED in statuses:
        return OrderStatus.RETURNED
    return OrderStatus.CANCELLED
