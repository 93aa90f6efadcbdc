from __future__ import annotations

import asyncio
import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from cms_localization.schemas.translation import Locale


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Content-addressed key for a cached translation."""

    source_digest: str
    source_locale: Locale
    target_locale: Locale
    provider_version: str

    @classmethod
    def build(
        cls,
        text: str,
        *,
        source_locale: Locale,
        target_locale: Locale,
        provider_version: str,
    ) -> CacheKey:
        return cls(_digest(text), source_locale, target_locale, provider_version)


@dataclass(slots=True)
class _CacheEntry:
    value: str
    expires_at: float


class TranslationCache:
    """In-process LRU cache of provider translations with TTL expiry.

    Keys hash the source text, so editing source content naturally misses;
    ``invalidate`` drops every translation of a superseded text eagerly.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1000,
        ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[CacheKey, _CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: CacheKey) -> str | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    async def set(self, key: CacheKey, value: str) -> None:
        async with self._lock:
            self._entries[key] = _CacheEntry(value, self._clock() + self._ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    async def invalidate(self, text: str) -> int:
        """Drop cached translations of ``text`` for every locale and provider."""
        digest = _digest(text)
        async with self._lock:
            stale = [key for key in self._entries if key.source_digest == digest]
            for key in stale:
                del self._entries[key]
        return len(stale)

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count
