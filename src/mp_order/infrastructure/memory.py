"""In-process OrderRepository for tests and single-process deployments.

Orders are stored as serialised documents, never as live objects, so callers
can only change stored state through `update`.
"""

import asyncio
from datetime import date, datetime
from typing import Any

from src.mp_common.errors import (
    ConcurrentModificationError,
    DuplicateOrderNumberError,
    OrderNotFoundError,
)
from src.mp_order.domain.invariants import verify_order_invariants
from src.mp_order.domain.models import Order
from src.mp_order.domain.repository import OrderMutation
from src.mp_order.infrastructure.documents import order_from_document, order_to_document


class InMemoryOrderRepository:
    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._by_number: dict[str, str] = {}
        self._sequences: dict[date, int] = {}
        self._lock = asyncio.Lock()

    async def create(self, db: Any, order: Order) -> str:
        verify_order_invariants(order)
        async with self._lock:
            if order.order_number in self._by_number:
                raise DuplicateOrderNumberError(order.order_number)
            self._documents[order.id] = order_to_document(order)
            self._by_number[order.order_number] = order.id
        return order.id

    async def get_by_id(self, db: Any, order_id: str) -> Order | None:
        document = self._documents.get(order_id)
        return order_from_document(document) if document else None

    async def get_by_number(self, db: Any, order_number: str) -> Order | None:
        order_id = self._by_number.get(order_number)
        return await self.get_by_id(db, order_id) if order_id else None

    async def list_by_customer(
        self, db: Any, customer_id: str, limit: int, cursor_id: str | None = None
    ) -> list[Order]:
        ids = sorted(
            (
                order_id
                for order_id, doc in self._documents.items()
                if doc["customer_id"] == customer_id
                and (cursor_id is None or order_id < cursor_id)
            ),
            reverse=True,
        )
        return [order_from_document(self._documents[i]) for i in ids[:limit]]

    async def list_by_seller(
        self, db: Any, seller_id: str, start: datetime, end: datetime
    ) -> list[Order]:
        orders = [
            order_from_document(doc)
            for doc in self._documents.values()
            if any(s["seller_id"] == seller_id for s in doc["sub_orders"])
        ]
        selected = [o for o in orders if o.order_date and start <= o.order_date < end]
        return sorted(selected, key=lambda o: (o.order_date, o.id))

    async def update(
        self,
        db: Any,
        order_id: str,
        mutation: OrderMutation,
        expected_version: int | None = None,
    ) -> Order:
        async with self._lock:
            document = self._documents.get(order_id)
            if document is None:
                raise OrderNotFoundError(order_id)
            order = order_from_document(document)
            if expected_version is not None and order.version != expected_version:
                raise ConcurrentModificationError(order_id)

            mutation(order)
            verify_order_invariants(order)

            order.version += 1
            self._documents[order_id] = order_to_document(order)
            return order

    async def count_created_on(self, db: Any, day: date) -> int:
        return sum(
            1 for doc in self._documents.values() if doc["business_day"] == day.isoformat()
        )

    async def next_daily_sequence(self, db: Any, day: date) -> int:
        async with self._lock:
            if day not in self._sequences:
                self._sequences[day] = sum(
                    1 for doc in self._documents.values() if doc["business_day"] == day.isoformat()
                )
            self._sequences[day] += 1
            return self._sequences[day]
