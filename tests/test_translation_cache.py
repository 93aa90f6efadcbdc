from __future__ import annotations

import pytest

from cms_localization.schemas.translation import Locale
from cms_localization.services.cache import CacheKey, TranslationCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _key(text: str, provider_version: str = "google:v2") -> CacheKey:
    return CacheKey.build(
        text,
        source_locale=Locale.ES,
        target_locale=Locale.EN,
        provider_version=provider_version,
    )


@pytest.mark.asyncio
async def test_cache_round_trip_and_ttl_expiry() -> None:
    clock = FakeClock()
    cache = TranslationCache(ttl_seconds=60, clock=clock)

    await cache.set(_key("Hola"), "Hello")
    assert await cache.get(_key("Hola")) == "Hello"

    clock.now += 61
    assert await cache.get(_key("Hola")) is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_cache_keys_include_provider_version() -> None:
    cache = TranslationCache()

    await cache.set(_key("Hola", "google:v2"), "Hello")

    assert await cache.get(_key("Hola", "libretranslate:v1")) is None


@pytest.mark.asyncio
async def test_cache_evicts_least_recently_used() -> None:
    cache = TranslationCache(max_entries=2)

    await cache.set(_key("uno"), "one")
    await cache.set(_key("dos"), "two")
    assert await cache.get(_key("uno")) == "one"
    await cache.set(_key("tres"), "three")

    assert await cache.get(_key("dos")) is None
    assert await cache.get(_key("uno")) == "one"
    assert await cache.get(_key("tres")) == "three"


@pytest.mark.asyncio
async def test_invalidate_drops_every_variant_of_a_source_text() -> None:
    cache = TranslationCache()
    await cache.set(_key("Hola", "google:v2"), "Hello")
    await cache.set(_key("Hola", "libretranslate:v1"), "Hi")
    await cache.set(_key("Adiós"), "Goodbye")

    assert await cache.invalidate("Hola") == 2
    assert len(cache) == 1
    assert await cache.clear() == 1


def test_cache_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        TranslationCache(max_entries=0)
