"""OrderRepository: raw SQL persistence implementation.

The aggregate lives in `orders.document` (JSONB). The columns next to it are
projections used for lookups, listing and the uniqueness constraint on the
order number; they are rewritten from the aggregate on every write.
"""

import json
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import (
    ConcurrentModificationError,
    DuplicateOrderNumberError,
    OrderNotFoundError,
)
from src.mp_order.domain.invariants import verify_order_invariants
from src.mp_order.domain.models import Order
from src.mp_order.domain.repository import OrderMutation
from src.mp_order.infrastructure.documents import order_from_document, order_to_document

logger = logging.getLogger(__name__)

ORDER_NUMBER_CONSTRAINT = "uq_orders_order_number"

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, order_number, customer_id, seller_ids, status,
        payment_status, total, currency, created_on, order_date, document, version)
    VALUES (:id, :order_number, :customer_id, :seller_ids, :status,
        :payment_status, :total, :currency, :created_on, :order_date,
        CAST(:document AS JSONB), :version)
""")

_UPDATE_ORDER_SQL = text("""
    UPDATE orders
    SET status = :status, payment_status = :payment_status, total = :total,
        document = CAST(:document AS JSONB),
        version = version + 1, updated_at = NOW()
    WHERE id = :id AND version = :version
""")

_SELECT_COLUMNS = "id, document, version"

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

_GET_ORDER_BY_NUMBER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE order_number = :order_number
""")

_LIST_BY_CUSTOMER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE customer_id = :customer_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE :seller_id = ANY(seller_ids)
      AND order_date >= :start AND order_date < :end
    ORDER BY order_date ASC, id ASC
""")

_COUNT_CREATED_ON_SQL = text("""
    SELECT COUNT(*) FROM orders WHERE created_on = :day
""")

# First draw of a day is seeded from the orders already stored for that day,
# so a lost counter row cannot hand out numbers that are already taken.
_NEXT_SEQUENCE_SQL = text("""
    INSERT INTO order_number_sequences (day, last_value)
    VALUES (:day, (SELECT COUNT(*) FROM orders WHERE created_on = :day) + 1)
    ON CONFLICT (day) DO UPDATE
    SET last_value = order_number_sequences.last_value + 1, updated_at = NOW()
    RETURNING last_value
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    document = row.document
    if isinstance(document, str):
        document = json.loads(document)
    order = order_from_document(document)
    order.version = row.version
    return order


def _projection(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "status": order.status.value,
        "payment_status": order.payment.status.value,
        "total": order.total,
        "document": json.dumps(order_to_document(order)),
    }


def _is_order_number_violation(exc: IntegrityError) -> bool:
    return ORDER_NUMBER_CONSTRAINT in str(exc.orig)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def create(self, db: AsyncSession, order: Order) -> str:
        verify_order_invariants(order)
        params = _projection(order)
        params.update(
            {
                "order_number": order.order_number,
                "customer_id": order.customer_id,
                "seller_ids": [s.seller_id for s in order.sub_orders],
                "currency": order.currency,
                "created_on": order.business_day,
                "order_date": order.order_date,
                "version": order.version,
            }
        )
        try:
            # Savepoint: a number clash must not poison the caller's transaction.
            async with db.begin_nested():
                await db.execute(_INSERT_ORDER_SQL, params)
        except IntegrityError as exc:
            if _is_order_number_violation(exc):
                raise DuplicateOrderNumberError(order.order_number) from exc
            raise
        return order.id

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_by_number(self, db: AsyncSession, order_number: str) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_NUMBER_SQL, {"order_number": order_number})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_by_customer(
        self,
        db: AsyncSession,
        customer_id: str,
        limit: int,
        cursor_id: str | None = None,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_BY_CUSTOMER_SQL,
            {"customer_id": customer_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_by_seller(
        self, db: AsyncSession, seller_id: str, start: datetime, end: datetime
    ) -> list[Order]:
        result = await db.execute(
            _LIST_BY_SELLER_SQL, {"seller_id": seller_id, "start": start, "end": end}
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def update(
        self,
        db: AsyncSession,
        order_id: str,
        mutation: OrderMutation,
        expected_version: int | None = None,
    ) -> Order:
        """Lock the row, apply the mutation, write back with a version check.

        The caller owns the transaction: commit on success, rollback if the
        mutation (or anything here) raises.
        """
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            raise OrderNotFoundError(order_id)
        order = _row_to_order(row)
        if expected_version is not None and order.version != expected_version:
            raise ConcurrentModificationError(order_id)

        mutation(order)
        verify_order_invariants(order)

        params = _projection(order)
        params["version"] = order.version
        # Stored document carries the version it will have after this write.
        order.version += 1
        params["document"] = json.dumps(order_to_document(order))
        updated = await db.execute(_UPDATE_ORDER_SQL, params)
        if updated.rowcount != 1:
            logger.warning("Version conflict: order=%s, version=%d", order_id, params["version"])
            raise ConcurrentModificationError(order_id)
        return order

    async def count_created_on(self, db: AsyncSession, day: date) -> int:
        result = await db.execute(_COUNT_CREATED_ON_SQL, {"day": day})
        return int(result.scalar_one())

    async def next_daily_sequence(self, db: AsyncSession, day: date) -> int:
        result = await db.execute(_NEXT_SEQUENCE_SQL, {"day": day})
        return int(result.scalar_one())
