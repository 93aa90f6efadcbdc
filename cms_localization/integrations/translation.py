from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import httpx

from cms_localization.schemas.translation import (
    ProviderConfig,
    ProviderName,
    TranslationErrorKind,
    TranslationRequest,
)


logger = logging.getLogger(__name__)

GOOGLE_TRANSLATE_ENDPOINT = "https://translation.googleapis.com/language/translate/v2"


class TranslationProviderError(RuntimeError):
    """Raised by a provider when a translation request cannot be completed."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        kind: TranslationErrorKind = TranslationErrorKind.UNKNOWN,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.kind = kind
        self.status_code = status_code


class TranslationProvider:
    """Abstract translation backend interface."""

    name: str = "abstract"
    version: str = "v0"

    async def translate(self, request: TranslationRequest) -> str:
        raise NotImplementedError

    @property
    def cache_namespace(self) -> str:
        return f"{self.name}:{self.version}"


class _HttpTranslationProvider(TranslationProvider):
    def __init__(
        self,
        *,
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        )

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code < 200 or response.status_code >= 300:
            raise TranslationProviderError(
                f"{self.name} translation request failed with status {response.status_code}.",
                provider=self.name,
                kind=TranslationErrorKind.HTTP_STATUS,
                status_code=response.status_code,
            )

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TranslationProviderError(
                f"{self.name} returned a non-JSON response.",
                provider=self.name,
                kind=TranslationErrorKind.MALFORMED_RESPONSE,
                status_code=response.status_code,
            ) from exc

    def _malformed(self, detail: str, response: httpx.Response) -> TranslationProviderError:
        return TranslationProviderError(
            f"{self.name} response {detail}.",
            provider=self.name,
            kind=TranslationErrorKind.MALFORMED_RESPONSE,
            status_code=response.status_code,
        )


class GoogleTranslateProvider(_HttpTranslationProvider):
    """Google Cloud Translation v2 backend authenticated with an API key."""

    name = ProviderName.GOOGLE.value
    version = "v2"

    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str = GOOGLE_TRANSLATE_ENDPOINT,
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        if not api_key:
            raise ValueError("GoogleTranslateProvider requires an API key.")
        super().__init__(timeout_seconds=timeout_seconds, client_factory=client_factory)
        self._api_key = api_key
        self._endpoint = endpoint

    async def translate(self, request: TranslationRequest) -> str:
        payload = {
            "q": request.text,
            "source": request.source_locale.value,
            "target": request.target_locale.value,
            "format": "html",
        }
        async with self._client_factory() as client:
            response = await client.post(
                self._endpoint,
                params={"key": self._api_key},
                json=payload,
            )

        self._raise_for_status(response)
        data = self._json(response)
        try:
            translated = data["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as exc:
            raise self._malformed("is missing data.translations[0].translatedText", response) from exc
        if not isinstance(translated, str):
            raise self._malformed("translatedText is not a string", response)
        return translated


class LibreTranslateProvider(_HttpTranslationProvider):
    """Self-hosted LibreTranslate backend."""

    name = ProviderName.LIBRETRANSLATE.value
    version = "v1"

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        if not base_url:
            raise ValueError("LibreTranslateProvider requires a base URL.")
        super().__init__(timeout_seconds=timeout_seconds, client_factory=client_factory)
        self._endpoint = f"{base_url.rstrip('/')}/translate"

    async def translate(self, request: TranslationRequest) -> str:
        payload = {
            "q": request.text,
            "source": request.source_locale.value,
            "target": request.target_locale.value,
            "format": "html",
        }
        async with self._client_factory() as client:
            response = await client.post(self._endpoint, data=payload)

        self._raise_for_status(response)
        data = self._json(response)
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            raise self._malformed("is missing translatedText", response)
        return translated


def build_translation_provider(
    config: ProviderConfig,
    *,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> TranslationProvider | None:
    """Select the configured backend once at startup.

    Returns None when the selected provider lacks its credential or URL.
    """
    if not config.is_configured:
        logger.warning(
            "Translation provider %s is not configured; content will be served untranslated.",
            config.provider.value,
        )
        return None

    if config.provider is ProviderName.GOOGLE:
        return GoogleTranslateProvider(
            config.api_key or "",
            timeout_seconds=config.timeout_seconds,
            client_factory=client_factory,
        )
    return LibreTranslateProvider(
        config.base_url or "",
        timeout_seconds=config.timeout_seconds,
        client_factory=client_factory,
    )


def classify_error(exc: BaseException) -> tuple[TranslationErrorKind, int | None]:
    """Map a provider exception to an error kind and optional HTTP status."""
    if isinstance(exc, TranslationProviderError):
        return exc.kind, exc.status_code
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return TranslationErrorKind.TIMEOUT, None
    if isinstance(exc, httpx.HTTPStatusError):
        return TranslationErrorKind.HTTP_STATUS, exc.response.status_code
    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return TranslationErrorKind.NETWORK, None
    if isinstance(exc, (ValueError, KeyError, IndexError, TypeError)):
        return TranslationErrorKind.MALFORMED_RESPONSE, None
    return TranslationErrorKind.UNKNOWN, None


def is_retryable(kind: TranslationErrorKind, status_code: int | None = None) -> bool:
    """Transient failures: transport errors, 429 and 5xx responses.

    Timeouts are final so one hanging call costs at most one timeout.
    """
    if kind is TranslationErrorKind.NETWORK:
        return True
    if kind is TranslationErrorKind.HTTP_STATUS and status_code is not None:
        return status_code == 429 or status_code >= 500
    return False
