"""Unique ids for users, books, transactions, comments and appointments.

All of them carry a snowflake number: millisecond timestamp, ID_MACHINE_ID and
a per-millisecond sequence. Within one process ids are unique and strictly
increasing; across API processes sharing a database they stay unique as long
as each process runs with its own ID_MACHINE_ID.

Order references embed the buyer ("ORDER_<snowflake>_<user_id>") so support
staff can read who placed an order straight off a receipt.
"""

import threading
import time

from config.settings import settings

_EPOCH_MS = 1_700_000_000_000
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1
_MAX_MACHINE_ID = (1 << _MACHINE_BITS) - 1


class SnowflakeIdGenerator:
    """Thread-safe 63-bit id source: [41 bits ms][10 bits machine][12 bits sequence]."""

    def __init__(self, machine_id: int = 0) -> None:
        if not 0 <= machine_id <= _MAX_MACHINE_ID:
            raise ValueError(f"machine_id must be within 0..{_MAX_MACHINE_ID}, got {machine_id}")
        self._machine_bits = machine_id << _SEQUENCE_BITS
        self._last_timestamp_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def _current_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def next_id(self) -> str:
        with self._lock:
            # never step behind the last issued timestamp, even if the wall clock does
            now = max(self._current_ms(), self._last_timestamp_ms)
            if now == self._last_timestamp_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    # 4096 ids already issued this millisecond
                    now = self._last_timestamp_ms + 1
                    while self._current_ms() < now:
                        time.sleep(0)
            else:
                self._sequence = 0
            self._last_timestamp_ms = now

            elapsed = now - _EPOCH_MS
            return str((elapsed << (_MACHINE_BITS + _SEQUENCE_BITS)) | self._machine_bits | self._sequence)


_generator = SnowflakeIdGenerator(settings.ID_MACHINE_ID)


def generate_id() -> str:
    return _generator.next_id()


def generate_user_id() -> str:
    return f"user_{generate_id()}"


def generate_book_id() -> str:
    return f"book_{generate_id()}"


def generate_transaction_id() -> str:
    return f"tx_{generate_id()}"


def generate_transaction_reference(user_id: str) -> str:
    return f"ORDER_{generate_id()}_{user_id}"


def generate_comment_id() -> str:
    return f"comment_{generate_id()}"


def generate_appointment_id(user_id: str) -> str:
    return f"apt_{user_id}_{generate_id()}"
