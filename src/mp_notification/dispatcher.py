"""Fire-and-forget dispatch of order domain events.

Dispatch happens after the order mutation has been committed. A failing
dispatcher is logged by the caller and never undoes or fails the mutation.
"""

import logging
from typing import Protocol

from src.mp_order.domain.events import OrderEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    async def dispatch(self, event: OrderEvent) -> None: ...


class LoggingDispatcher:
    """Default dispatcher: writes each event to the log."""

    async def dispatch(self, event: OrderEvent) -> None:
        logger.info(
            "Order event: type=%s, order=%s, customer=%s, payload=%s",
            event.event_type.value,
            event.order_number,
            event.customer_id,
            event.payload,
        )


class RecordingDispatcher:
    """Keeps dispatched events in memory; used by tests."""

    def __init__(self) -> None:
        self.events: list[OrderEvent] = []

    async def dispatch(self, event: OrderEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.event_type.value for e in self.events]
