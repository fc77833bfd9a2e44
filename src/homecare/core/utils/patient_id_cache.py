"""
Time-bounded memoization of patient id resolution.

Entries are keyed by (caller auth id, requested id) because resolution depends
on who is asking, not only on the target. Expired entries are swept only when a
write pushes the entry count over ``max_entries``; there is no background timer.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ...domain.entities.profile import Profile
from .patient_id_resolver import PatientIdResolver, ResolvedPatientIds

logger = logging.getLogger("homecare")

CacheKey = Tuple[str, str]

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_ENTRIES = 1000


@dataclass(frozen=True)
class CacheEntry:
    ids: ResolvedPatientIds
    computed_at: float


class PatientIdCache:
    """In-process TTL cache for resolved patient ids."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def key(caller_auth_id: Optional[str], requested_id: Optional[str]) -> CacheKey:
        return (caller_auth_id or "", requested_id or "")

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.computed_at < self.ttl_seconds

    def get(self, key: CacheKey) -> Optional[ResolvedPatientIds]:
        """Cached ids for ``key``, or None when absent or stale."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self._clock()):
            return None
        return entry.ids

    def put(self, key: CacheKey, ids: ResolvedPatientIds) -> None:
        self._entries[key] = CacheEntry(ids=ids, computed_at=self._clock())
        if len(self._entries) > self.max_entries:
            self.sweep()

    def sweep(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not self._is_fresh(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired patient id cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CachedPatientIdResolver:
    """``PatientIdResolver`` behind a ``PatientIdCache``.

    Concurrent misses for the same key may each resolve and overwrite the
    entry; resolution is idempotent so the last write wins.
    """

    def __init__(self, resolver: PatientIdResolver, cache: PatientIdCache) -> None:
        self._resolver = resolver
        self._cache = cache

    async def resolve(
        self, requested_id: str, caller_auth_id: Optional[str], profile: Profile
    ) -> ResolvedPatientIds:
        key = PatientIdCache.key(caller_auth_id, requested_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        ids = await self._resolver.resolve(requested_id, caller_auth_id, profile)
        self._cache.put(key, ids)
        return ids
