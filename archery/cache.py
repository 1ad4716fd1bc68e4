import os
import threading
import time
from typing import Any, Dict, Optional, Tuple

# Cache store selection.
# Upstream payloads are cached as JSON text with a flat TTL. With
# ``DATABASE_URL`` set the PostgreSQL store in ``cache_pg`` is used so several
# worker processes share one cache; otherwise entries live in this process.

DEFAULT_TTL = 3600  # seconds


class MemoryCache:
    """In-process TTL cache keyed by string.

    Expired entries are dropped lazily when read.
    """

    backend = "memory"

    def __init__(self, clock=time.time):
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            exp, value = entry
            if exp <= self._clock():
                self._entries.pop(key, None)
                return None
            return value

    def setex(self, key: str, ttl: int, value: str) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + int(ttl), value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def flush(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def describe(self) -> Dict[str, Any]:
        with self._lock:
            return {"backend": self.backend, "status": "ok", "entries": len(self._entries)}


def open_cache():
    """Return the cache store configured by the environment.

    Picking the PostgreSQL store opens no connections; ``create_app`` sets up
    the pool separately.
    """
    if not os.environ.get("DATABASE_URL"):
        return MemoryCache()
    from . import cache_pg as _pg
    return _pg.PgCache()


__all__ = ["DEFAULT_TTL", "MemoryCache", "open_cache"]
