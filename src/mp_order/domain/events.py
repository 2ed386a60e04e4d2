"""Domain events raised by the Order aggregate.

Events are collected on the aggregate during a mutation and handed to the
notification dispatcher only after the mutation has been committed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mp_common.enums import OrderEventType


@dataclass(frozen=True)
class OrderEvent:
    event_type: OrderEventType
    order_id: str
    order_number: str
    customer_id: str
    occurred_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "order_id": self.order_id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }
