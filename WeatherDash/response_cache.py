"""In-memory response cache with per-entry timestamps and lazy TTL expiry."""
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

CACHE_DURATION_SECONDS = 10 * 60


def make_key(prefix: str, *parts: Any) -> str:
    """Build a deterministic cache key, e.g. make_key("weather", 40.7, -74.0) -> "weather:40.7:-74.0"."""
    return ":".join([prefix] + [str(part) for part in parts])


class ResponseCache:
    """
    Key/value store for raw provider responses.

    Entries are replaced wholesale on set() and are never evicted except by
    clear(); an expired entry simply stops being returned by get().
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_DURATION_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logging.debug(f"Cache miss for {key}")
            return None

        value, timestamp = entry
        age = self._clock() - timestamp
        if age < self.ttl_seconds:
            logging.debug(f"Cache hit for {key} (age: {age:.1f}s, TTL: {self.ttl_seconds}s)")
            return value

        logging.debug(f"Cache entry for {key} expired (age: {age:.1f}s >= TTL: {self.ttl_seconds}s)")
        return None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        logging.info(f"Clearing response cache ({len(self._entries)} entries)")
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
