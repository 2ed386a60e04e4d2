"""Time-ordered string IDs for orders, items, returns and refunds.

IDs are snowflake-style integers rendered as zero-padded decimal strings, so
lexical order equals creation order (cursor pagination relies on this).
Uniqueness across processes comes from the worker id; within a process the
sequence is guarded by a lock.
"""

import threading
import time

_EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
_WORKER_BITS = 10
_SEQUENCE_BITS = 12
_MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1
_WIDTH = 20


class IdGenerator:
    """41-bit ms timestamp | 10-bit worker id | 12-bit per-ms sequence."""

    def __init__(self, worker_id: int = 0) -> None:
        if not (0 <= worker_id < (1 << _WORKER_BITS)):
            raise ValueError(f"worker_id must be 0-{(1 << _WORKER_BITS) - 1}")
        self._worker_id = worker_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms < self._last_ms:
                # Clock stepped back: keep issuing on the last timestamp.
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return (
                ((now_ms - _EPOCH_MS) << (_WORKER_BITS + _SEQUENCE_BITS))
                | (self._worker_id << _SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self) -> str:
        return str(self.next_int()).zfill(_WIDTH)


_default_generator = IdGenerator()


def generate_id() -> str:
    """Generate a unique, time-ordered string ID from the process-wide generator."""
    return _default_generator.next_id()
