"""
Per-process TTL cache for system configuration lookups.
"""
import threading
import time
from typing import Any, Optional

# Distinguishes "cached as absent" from "not cached"
MISSING = object()


class TTLCache:
    """
    Thread-safe key/value store whose entries expire after a TTL.

    Entries are kept as {key: (deadline, value)}. Expired entries are swept
    whenever the cache is read, written or sized.
    """

    def __init__(self, default_ttl: int = 300):
        self.default_ttl = default_ttl
        self._storage = {}
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        stale = [key for key, (deadline, _) in self._storage.items() if deadline < now]
        for key in stale:
            self._storage.pop(key, None)

    def get(self, key: str, default: Any = None) -> Optional[Any]:
        """
        Look up a live entry.

        Args:
            key: Config key.
            default: Returned for unknown or expired keys; pass MISSING to
                tell a cached None apart from a miss.
        """
        with self._lock:
            self._sweep(time.time())
            entry = self._storage.get(key)
        return default if entry is None else entry[1]

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store `value` (None included) for `ttl` seconds, default_ttl when omitted."""
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = time.time()
            self._sweep(now)
            self._storage[key] = (now + lifetime, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._storage.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def __len__(self) -> int:
        with self._lock:
            self._sweep(time.time())
            return len(self._storage)
