from __future__ import annotations

import asyncio
import logging
import time
from functools import partial
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from cms_localization.core.config import AppSettings
from cms_localization.integrations.translation import (
    TranslationProvider,
    TranslationProviderError,
    build_translation_provider,
    classify_error,
    is_retryable,
)
from cms_localization.schemas.translation import (
    SOURCE_LOCALE,
    Locale,
    TranslationErrorKind,
    TranslationRequest,
    UnsupportedLocaleError,
    parse_locale,
)
from cms_localization.services.cache import CacheKey, TranslationCache
from cms_localization.services.chunking import (
    CHUNK_SEPARATOR,
    needs_chunking,
    split_text_into_chunks,
)
from cms_localization.services.eligibility import is_translatable

logger = logging.getLogger(__name__)


class TranslationService:
    """Fail-open boundary in front of a translation provider.

    ``translate_text`` never raises and never returns an empty value for
    non-empty input: any provider failure degrades to the source text.
    """

    def __init__(
        self,
        provider: TranslationProvider | None,
        *,
        cache: TranslationCache | None = None,
        timeout_seconds: float = 5.0,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
        max_concurrency: int = 8,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._timeout = timeout_seconds
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay_seconds
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sleep = sleep
        self._warned_unconfigured = False

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> TranslationService:
        config = settings.provider_config()
        cache = None
        if settings.translation_cache_enabled:
            cache = TranslationCache(
                max_entries=settings.translation_cache_max_entries,
                ttl_seconds=settings.translation_cache_ttl_seconds,
            )
        return cls(
            build_translation_provider(config, client_factory=client_factory),
            cache=cache,
            timeout_seconds=config.timeout_seconds,
            retry_attempts=settings.translation_retry_attempts,
            retry_delay_seconds=settings.translation_retry_delay_seconds,
            max_concurrency=settings.translation_max_concurrency,
        )

    @property
    def provider_name(self) -> str | None:
        return self._provider.name if self._provider else None

    @property
    def cache(self) -> TranslationCache | None:
        return self._cache

    def is_text_translatable(self, text: object) -> bool:
        return is_translatable(text)

    async def translate_text(
        self,
        text: str,
        *,
        target_locale: Locale | str,
        source_locale: Locale | str = SOURCE_LOCALE,
        field: str | None = None,
    ) -> str:
        """Return ``text`` translated into ``target_locale``, or ``text`` itself."""
        if not is_translatable(text):
            logger.debug("Skipping ineligible text (field=%s)", field)
            return text

        try:
            source = parse_locale(source_locale)
            target = parse_locale(target_locale)
        except UnsupportedLocaleError as exc:
            logger.warning("Refusing to translate with invalid locale: %s", exc)
            return text

        if source == target:
            return text

        if self._provider is None:
            if not self._warned_unconfigured:
                logger.warning(
                    "No translation provider configured; serving source text.",
                    extra={"error_kind": TranslationErrorKind.MISCONFIGURED.value},
                )
                self._warned_unconfigured = True
            return text

        key = CacheKey.build(
            text,
            source_locale=source,
            target_locale=target,
            provider_version=self._provider.cache_namespace,
        )
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return cached

        if needs_chunking(text):
            chunks = split_text_into_chunks(text) or [text]
            results = await asyncio.gather(
                *(self._translate_chunk(chunk, source, target, field) for chunk in chunks)
            )
            translated = CHUNK_SEPARATOR.join(value for value, _ in results)
            succeeded = all(ok for _, ok in results)
        else:
            translated, succeeded = await self._translate_fragment(text, source, target, field)

        if succeeded and self._cache is not None and translated != text:
            await self._cache.set(key, translated)
        return translated

    async def invalidate(self, text: str) -> int:
        """Forget cached translations of a source text that has been edited."""
        if self._cache is None:
            return 0
        return await self._cache.invalidate(text)

    async def clear_cache(self) -> int:
        if self._cache is None:
            return 0
        return await self._cache.clear()

    async def _translate_chunk(
        self,
        chunk: str,
        source: Locale,
        target: Locale,
        field: str | None,
    ) -> tuple[str, bool]:
        if not is_translatable(chunk):
            logger.debug("Skipping ineligible chunk (field=%s)", field)
            return chunk, True
        return await self._translate_fragment(chunk, source, target, field)

    async def _translate_fragment(
        self,
        text: str,
        source: Locale,
        target: Locale,
        field: str | None,
    ) -> tuple[str, bool]:
        request = TranslationRequest(text=text, source_locale=source, target_locale=target)
        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return await self._call_provider(request)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_fixed(self._retry_delay),
            retry=retry_if_exception(_is_transient),
            before_sleep=partial(self._log_retry, field=field),
            sleep=self._sleep,
            reraise=True,
        )
        started = time.perf_counter()
        try:
            translated = await retrying(attempt)
        except Exception as exc:
            kind, status_code = classify_error(exc)
            logger.warning(
                "Translation failed; serving source text (provider=%s kind=%s field=%s): %s",
                self.provider_name,
                kind.value,
                field,
                exc,
                extra={
                    "provider": self.provider_name,
                    "error_kind": kind.value,
                    "status_code": status_code,
                    "field": field,
                    "latency_ms": int((time.perf_counter() - started) * 1000),
                    "attempt": attempts,
                },
            )
            return text, False

        logger.debug(
            "Translated %d chars via %s in %d ms",
            len(text),
            self.provider_name,
            int((time.perf_counter() - started) * 1000),
            extra={"provider": self.provider_name, "field": field, "attempt": attempts},
        )
        return translated, True

    async def _call_provider(self, request: TranslationRequest) -> str:
        assert self._provider is not None
        async with self._semaphore:
            translated = await asyncio.wait_for(
                self._provider.translate(request), timeout=self._timeout
            )
        if not translated:
            raise TranslationProviderError(
                "Provider returned an empty translation.",
                provider=self._provider.name,
                kind=TranslationErrorKind.MALFORMED_RESPONSE,
            )
        return translated

    def _log_retry(self, retry_state: RetryCallState, *, field: str | None) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        kind, status_code = classify_error(exc) if exc else (TranslationErrorKind.UNKNOWN, None)
        logger.info(
            "Retrying translation after transient failure (attempt=%d kind=%s)",
            retry_state.attempt_number,
            kind.value,
            extra={
                "provider": self.provider_name,
                "error_kind": kind.value,
                "status_code": status_code,
                "field": field,
                "latency_ms": int(retry_state.seconds_since_start * 1000),
                "attempt": retry_state.attempt_number,
            },
        )


def _is_transient(exc: BaseException) -> bool:
    return is_retryable(*classify_error(exc))
