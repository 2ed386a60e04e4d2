"""Per-day sequence counters behind the order number generator."""

import logging
from datetime import date
from typing import Any

import redis.asyncio as aioredis

from src.mp_common.redis_client import get_redis
from src.mp_order.domain.repository import OrderRepositoryProtocol

logger = logging.getLogger(__name__)

_KEY_TTL_SECONDS = 2 * 24 * 3600


class RepositorySequenceCounter:
    """Atomic upsert counter kept next to the orders table."""

    def __init__(self, repo: OrderRepositoryProtocol) -> None:
        self._repo = repo

    async def next_value(self, db: Any, day: date) -> int:
        return await self._repo.next_daily_sequence(db, day)


class RedisDailyCounter:
    """INCR on `order_seq:{YYYYMMDD}`; a fresh key is seeded from stored orders.

    Processes racing on a fresh key may draw numbers that already exist; the
    generator's retry on a uniqueness violation absorbs that.
    """

    def __init__(
        self,
        repo: OrderRepositoryProtocol,
        redis: aioredis.Redis | None = None,
        key_prefix: str = "order_seq",
    ) -> None:
        self._repo = repo
        self._redis = redis
        self._key_prefix = key_prefix

    def _key(self, day: date) -> str:
        return f"{self._key_prefix}:{day:%Y%m%d}"

    async def next_value(self, db: Any, day: date) -> int:
        client = self._redis or await get_redis()
        key = self._key(day)
        value = int(await client.incr(key))
        if value == 1:
            existing = await self._repo.count_created_on(db, day)
            if existing:
                value = int(await client.incrby(key, existing))
                logger.info("Seeded order counter: key=%s, existing=%d", key, existing)
            await client.expire(key, _KEY_TTL_SECONDS)
        return value


class InMemoryDailyCounter:
    """Process-local counter; only correct with a single process."""

    def __init__(self) -> None:
        self._values: dict[date, int] = {}

    async def next_value(self, db: Any, day: date) -> int:
        self._values[day] = self._values.get(day, 0) + 1
        return self._values[day]
