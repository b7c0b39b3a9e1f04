"""Content-addressable TTL cache for match results.

Keys are sha256 digests of (candidate id, job id, preference fingerprint).
Storage sits behind the ``CacheStore`` interface so the in-process store can
be replaced with a shared backend (e.g. Redis) without touching callers.
"""

import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from job_matcher.config import settings
from job_matcher.models.requests import MatchPreferences
from job_matcher.models.responses import MatchResult

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    payload: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class CacheStore(ABC):
    """Minimal key/value interface the caches are written against."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        """Return the raw entry, expired or not."""

    @abstractmethod
    def put(self, entry: CacheEntry) -> None:
        """Insert or replace an entry."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove an entry if present."""

    @abstractmethod
    def evict_oldest(self, count: int) -> int:
        """Remove the ``count`` oldest entries. Returns how many were removed."""

    @abstractmethod
    def entries(self) -> list[CacheEntry]:
        """Snapshot of all entries."""

    @abstractmethod
    def clear(self) -> None:
        """Drop everything."""

    @abstractmethod
    def __len__(self) -> int: ...


class InMemoryStore(CacheStore):
    """Process-local store; a single lock guards the dict."""

    def __init__(self) -> None:
        self._data: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._data.get(key)

    def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._data[entry.key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def evict_oldest(self, count: int) -> int:
        with self._lock:
            oldest = sorted(self._data.values(), key=lambda e: e.created_at)[:count]
            for entry in oldest:
                del self._data[entry.key]
            return len(oldest)

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._data.values())

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class TTLCache:
    """Generic TTL cache over a ``CacheStore`` with bulk size-bound eviction."""

    def __init__(
        self,
        store: CacheStore | None = None,
        ttl_seconds: float = 300.0,
        max_entries: int | None = None,
        evict_batch: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.evict_batch = max(1, evict_batch)
        self._clock = clock

    def get(self, key: str) -> Any | None:
        entry = self.store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            # lazy expiry
            self.store.delete(key)
            return None
        return entry.payload

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        self.store.put(
            CacheEntry(
                key=key,
                payload=value,
                created_at=self._clock(),
                ttl=self.ttl_seconds if ttl is None else ttl,
            )
        )
        if self.max_entries is not None and len(self.store) > self.max_entries:
            removed = self.store.evict_oldest(self.evict_batch)
            logger.debug("Cache over %d entries, evicted %d oldest", self.max_entries, removed)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [e.key for e in self.store.entries() if e.is_expired(now)]
        for key in expired:
            self.store.delete(key)
        return len(expired)

    def clear(self) -> None:
        self.store.clear()

    def __len__(self) -> int:
        return len(self.store)


class ScoreCache(TTLCache):
    """Match-result cache with hit/miss and estimated-tokens-saved counters."""

    def __init__(
        self,
        store: CacheStore | None = None,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        evict_batch: int | None = None,
        tokens_per_hit: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            store=store,
            ttl_seconds=settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds,
            max_entries=settings.cache_max_entries if max_entries is None else max_entries,
            evict_batch=settings.cache_evict_batch if evict_batch is None else evict_batch,
            clock=clock,
        )
        self.tokens_per_hit = (
            settings.estimated_tokens_per_call if tokens_per_hit is None else tokens_per_hit
        )
        self.hits = 0
        self.misses = 0
        self.tokens_saved = 0
        self._counter_lock = threading.Lock()

    @staticmethod
    def make_key(
        candidate_id: str,
        job_id: str,
        preferences: MatchPreferences | None = None,
    ) -> str:
        fingerprint = preferences.fingerprint() if preferences is not None else ""
        # JSON array encoding keeps the three parts unambiguous
        raw = json.dumps([candidate_id, job_id, fingerprint])
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def peek(self, key: str) -> MatchResult | None:
        """Lookup that leaves the hit/miss counters untouched."""
        return super().get(key)

    def get(self, key: str) -> MatchResult | None:
        result = super().get(key)
        with self._counter_lock:
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
                self.tokens_saved += self.tokens_per_hit
        return result

    def stats(self) -> dict:
        now = self._clock()
        return {
            "size": len(self.store),
            "hits": self.hits,
            "misses": self.misses,
            "tokens_saved": self.tokens_saved,
            "entries": [
                {"key": e.key[:8], "age_seconds": round(now - e.created_at, 1), "ttl": e.ttl}
                for e in self.store.entries()
            ],
        }
