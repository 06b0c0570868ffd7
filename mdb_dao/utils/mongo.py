"""
MongoDB helpers for identifiers and field values.
"""

import os
import threading
import time
from typing import Any

from bson import ObjectId


def generate_new_id() -> str:
    """Create a new unique record id as an ObjectId hex string."""
    return str(ObjectId())


class PaginationKeySequence:
    """
    Strictly increasing pagination keys for this process.

    A key is the larger of the wall clock in nanoseconds and the previous
    value plus one, as 16 hex digits, followed by a random per-process tag.
    Keys compare as plain strings. Ordering holds within one process only;
    keys from different processes order by their clocks, with the tag as a
    tiebreaker.
    """

    def __init__(self, tag: str | None = None) -> None:
        self._tag = tag if tag is not None else os.urandom(3).hex()
        self._last = 0
        self._lock = threading.Lock()

    def next_key(self) -> str:
        with self._lock:
            self._last = max(self._last + 1, time.time_ns())
            value = self._last
        return f"{value:016x}{self._tag}"


_pagination_keys = PaginationKeySequence()


def generate_pagination_key() -> str:
    """Next key from the process-wide ``PaginationKeySequence``."""
    return _pagination_keys.next_key()


def timestamp() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_blank(value: Any) -> bool:
    """True for None and for values whose string form is empty or whitespace."""
    return value is None or not str(value).strip()
