"""A time-to-live keyed store.

Entries are added whole and never mutated in place; expired entries are
dropped lazily on access.
"""

from __future__ import annotations

import datetime as dt
import threading
import time
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class TTLStore[T]:
    """Keyed cache whose entries expire a fixed time after insertion."""

    def __init__(
        self,
        key_func: cabc.Callable[[T], str],
        ttl: dt.timedelta,
        *,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the store with a key function and entry lifetime."""
        self._key_func = key_func
        self._ttl_s = ttl.total_seconds()
        self._clock = clock
        self._entries: dict[str, tuple[T, float]] = {}
        self._lock = threading.Lock()

    def add(self, obj: T) -> str:
        """Insert or replace an entry and return its key."""
        key = self._key_func(obj)
        with self._lock:
            self._entries[key] = (obj, self._clock() + self._ttl_s)
        return key

    def get_by_key(self, key: str) -> T | None:
        """Return the live entry for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            obj, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return obj

    def list_keys(self) -> list[str]:
        """Return the keys of all live entries."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, exp) in self._entries.items() if now >= exp]
            for key in expired:
                del self._entries[key]
            return list(self._entries)

    def __len__(self) -> int:
        """Return the number of live entries."""
        return len(self.list_keys())
