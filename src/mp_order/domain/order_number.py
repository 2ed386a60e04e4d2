"""Human-readable order numbers: PREFIX + YYMMDD + zero-padded daily sequence.

The day is evaluated in one canonical timezone so that two processes never
disagree about which counter they draw from. The sequence comes from an
atomic per-day counter; if persistence still reports a uniqueness violation
(e.g. a counter reset) the whole creation is retried with a fresh number.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any, Protocol, TypeVar

from src.mp_common.datetime_utils import local_day, utc_now
from src.mp_common.errors import DuplicateOrderNumberError, OrderNumberExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEQUENCE_WIDTH = 4


def format_order_number(prefix: str, day: date, sequence: int) -> str:
    """MT2501150001 for the first order of 2025-01-15; widens past 9999."""
    if sequence <= 0:
        raise ValueError(f"sequence must be positive, got {sequence}")
    return f"{prefix}{day:%y%m%d}{sequence:0{SEQUENCE_WIDTH}d}"


class DailyCounterProtocol(Protocol):
    async def next_value(self, db: Any, day: date) -> int: ...


class OrderNumberGenerator:
    def __init__(
        self,
        counter: DailyCounterProtocol,
        prefix: str = "MT",
        timezone: str = "UTC",
        max_attempts: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._counter = counter
        self._prefix = prefix
        self._timezone = timezone
        self._max_attempts = max_attempts
        self._clock = clock

    def business_day(self, now: datetime | None = None) -> date:
        return local_day(now or self._clock(), self._timezone)

    async def next_number(self, db: Any, day: date) -> str:
        sequence = await self._counter.next_value(db, day)
        return format_order_number(self._prefix, day, sequence)

    async def assign(
        self,
        db: Any,
        create: Callable[[str, date], Awaitable[T]],
        now: datetime | None = None,
    ) -> T:
        """Draw a number and run `create(order_number, day)`, retrying on collision."""
        day = self.business_day(now)
        for attempt in range(1, self._max_attempts + 1):
            order_number = await self.next_number(db, day)
            try:
                return await create(order_number, day)
            except DuplicateOrderNumberError:
                logger.warning(
                    "Order number collision: number=%s, attempt=%d/%d",
                    order_number,
                    attempt,
                    self._max_attempts,
                )
        raise OrderNumberExhaustedError(self._max_attempts)
