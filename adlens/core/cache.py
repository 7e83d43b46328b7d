"""AdLens — In-Memory TTL Cache.

Read-through cache for performance reports. Entries expire after a fixed
TTL and the whole cache is dropped when a sync completes. Every clear()
bumps a generation counter; a writer that captured the generation before
computing its value only stores it if no clear() happened in between.
"""

import json
import threading
import time
from typing import Any, Dict, Optional, Tuple


class TTLCache:
    """Thread-safe key → value store with per-entry expiry."""

    def __init__(self, ttl_seconds: float = 300):
        self._store: Dict[str, Tuple[Any, float]] = {}
        self._ttl = ttl_seconds
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._store[key]
                return None
            return value

    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        generation: int | None = None,
    ) -> bool:
        """Store a value. Returns False if the cache was cleared since `generation`."""
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._store[key] = (value, time.monotonic() + ttl)
            return True

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._generation += 1

    def __len__(self) -> int:
        return len(self._store)

    @staticmethod
    def make_key(prefix: str, payload: Dict[str, Any]) -> str:
        """Stable key: same payload, any field order → same key."""
        return f"{prefix}:{json.dumps(payload, sort_keys=True, separators=(',', ':'))}"
