"""Expiring cache of address search results."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from glassquote.models import GeocodingResult


@dataclass(frozen=True)
class AddressKey:
    """Search identity: case and spacing of the address do not matter."""

    text: str
    language: str

    @classmethod
    def from_query(cls, query: str, language: str) -> AddressKey:
        return cls(text=" ".join(query.casefold().split()), language=language)


@dataclass(frozen=True)
class CachedSearch:
    results: tuple[GeocodingResult, ...]
    limit: int
    expires_at: float

    def covers(self, limit: int) -> bool:
        """True when this search already holds every result ``limit`` asks for.

        A search that came back with fewer matches than it asked for is
        exhaustive, so it answers any larger limit too.
        """
        return limit <= self.limit or len(self.results) < self.limit


class AddressSearchCache:
    """Thread-safe address search cache with TTL and least-recently-used eviction.

    Entries are keyed by address and language only. A cached search for
    five matches serves a later ``first_match`` lookup by slicing, so the
    same address is not geocoded twice for different limits.
    """

    def __init__(
        self,
        *,
        ttl_sec: int,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._ttl_sec = ttl_sec
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[AddressKey, CachedSearch] = OrderedDict()

    def lookup(
        self, query: str, *, limit: int, language: str
    ) -> Optional[tuple[GeocodingResult, ...]]:
        """Return up to ``limit`` cached matches, or None on a miss."""
        key = AddressKey.from_query(query, language)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._entries[key]
                return None
            if not entry.covers(limit):
                return None
            self._entries.move_to_end(key)
            return entry.results[:limit]

    def store(
        self,
        query: str,
        results: Iterable[GeocodingResult],
        *,
        limit: int,
        language: str,
    ) -> None:
        key = AddressKey.from_query(query, language)
        now = self._clock()
        with self._lock:
            self._entries[key] = CachedSearch(
                results=tuple(results),
                limit=limit,
                expires_at=now + self._ttl_sec,
            )
            self._entries.move_to_end(key)
            self._evict_locked(now)

    def _evict_locked(self, now: float) -> None:
        for key in [k for k, entry in self._entries.items() if entry.expires_at <= now]:
            del self._entries[key]
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
