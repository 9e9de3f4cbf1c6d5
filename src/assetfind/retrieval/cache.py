# src/assetfind/retrieval/cache.py
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..config import CACHE_CAPACITY, CACHE_TTL_SECONDS
from .scorer import ScoredCandidate


@dataclass(frozen=True)
class CacheEntry:
    key: str
    created_at: float
    items: Tuple[ScoredCandidate, ...]

    def __len__(self) -> int:
        return len(self.items)


class ResultCache:
    """
    Ranked result lists keyed by normalized query.

    Eviction is FIFO by insertion order (reads do not refresh an entry).
    Expiry is passive: stale entries are dropped when looked up.
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        capacity: int = CACHE_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry

    def put(self, key: str, items: Sequence[ScoredCandidate]) -> CacheEntry:
        entry = CacheEntry(key=key, created_at=self._clock(), items=tuple(items))
        with self._lock:
            # a re-inserted key counts as newest
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
