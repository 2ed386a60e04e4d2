"""OrderRepository Protocol: interface contract for persistence layer.

Unit tests inject the in-process implementation or a mock conforming to this
Protocol. `db` is whatever session the implementation needs (an AsyncSession
for PostgreSQL, ignored by the in-process repository).
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Protocol

from src.mp_order.domain.models import Order

# A mutation validates and changes the aggregate in place, or raises and
# leaves the stored order untouched.
OrderMutation = Callable[[Order], None]


class OrderRepositoryProtocol(Protocol):
    async def create(self, db: Any, order: Order) -> str:
        """Persist a new order; raises DuplicateOrderNumberError on a number clash."""
        ...

    async def get_by_id(self, db: Any, order_id: str) -> Order | None: ...

    async def get_by_number(self, db: Any, order_number: str) -> Order | None: ...

    async def list_by_customer(
        self, db: Any, customer_id: str, limit: int, cursor_id: str | None = None
    ) -> list[Order]: ...

    async def list_by_seller(
        self, db: Any, seller_id: str, start: datetime, end: datetime
    ) -> list[Order]: ...

    async def update(
        self,
        db: Any,
        order_id: str,
        mutation: OrderMutation,
        expected_version: int | None = None,
    ) -> Order:
        """Atomic read-modify-write.

        Raises OrderNotFoundError if missing and ConcurrentModificationError if
        the stored version moved underneath (or differs from expected_version).
        """
        ...

    async def count_created_on(self, db: Any, day: date) -> int: ...

    async def next_daily_sequence(self, db: Any, day: date) -> int: ...
