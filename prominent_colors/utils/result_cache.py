"""
In-memory cache of computed color lists with a fixed time to live.
"""
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

DEFAULT_TTL_SECONDS = 300.0


class ResultCache:
    """
    Thread-safe mapping of request fingerprints to color lists.

    Entries expire a fixed time after insertion regardless of access. Expired
    entries are hidden from reads immediately and removed by delete_expired.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._items: Dict[str, Tuple[List[str], float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[str]]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            colors, expires_at = item
            if self._clock() >= expires_at:
                return None
            return list(colors)

    def set(self, key: str, colors: List[str], ttl: Optional[float] = None) -> None:
        if ttl is None:
            ttl = self.default_ttl
        with self._lock:
            self._items[key] = (list(colors), self._clock() + ttl)

    def delete_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, expires_at) in self._items.items() if now >= expires_at]
            for k in expired:
                del self._items[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
