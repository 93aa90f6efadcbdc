from __future__ import annotations

import asyncio
import logging
import time

import httpx
import pytest

from cms_localization.core.config import AppSettings
from cms_localization.integrations.translation import (
    LibreTranslateProvider,
    TranslationProvider,
    TranslationProviderError,
)
from cms_localization.schemas.translation import (
    Locale,
    TranslationErrorKind,
    TranslationRequest,
)
from cms_localization.services.cache import TranslationCache
from cms_localization.services.translation import TranslationService


class FakeProvider(TranslationProvider):
    """Provider stub that upper-cases text and can fail on demand."""

    name = "fake"
    version = "test"

    def __init__(self, failures: list[Exception] | None = None, *, delay: float = 0.0):
        self.requests: list[TranslationRequest] = []
        self._failures = list(failures or [])
        self._delay = delay

    async def translate(self, request: TranslationRequest) -> str:
        self.requests.append(request)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._failures:
            raise self._failures.pop(0)
        return request.text.upper()


async def _no_sleep(_: float) -> None:
    return None


def _service(provider: TranslationProvider | None, **kwargs) -> TranslationService:
    kwargs.setdefault("sleep", _no_sleep)
    return TranslationService(provider, **kwargs)


@pytest.mark.asyncio
async def test_translate_text_calls_provider_with_locales() -> None:
    provider = FakeProvider()
    service = _service(provider)

    translated = await service.translate_text("Hola mundo", target_locale="en")

    assert translated == "HOLA MUNDO"
    assert len(provider.requests) == 1
    assert provider.requests[0].source_locale is Locale.ES
    assert provider.requests[0].target_locale is Locale.EN


@pytest.mark.asyncio
async def test_same_locale_skips_provider() -> None:
    provider = FakeProvider()
    service = _service(provider)

    assert await service.translate_text("Hola", target_locale="es", source_locale="es") == "Hola"
    assert provider.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["https://x.com", "a@b.com", "<br>", "12345", ""])
async def test_ineligible_text_is_returned_without_provider_call(text: str) -> None:
    provider = FakeProvider()
    service = _service(provider)

    assert await service.translate_text(text, target_locale=Locale.EN) == text
    assert provider.requests == []


@pytest.mark.asyncio
async def test_provider_error_fails_open(caplog: pytest.LogCaptureFixture) -> None:
    error = TranslationProviderError(
        "forbidden", provider="fake", kind=TranslationErrorKind.HTTP_STATUS, status_code=403
    )
    provider = FakeProvider([error])
    service = _service(provider)

    with caplog.at_level(logging.WARNING):
        translated = await service.translate_text("Hola", target_locale="en", field="title")

    assert translated == "Hola"
    assert len(provider.requests) == 1
    record = next(r for r in caplog.records if "serving source text" in r.getMessage())
    assert record.error_kind == "http_status"
    assert record.status_code == 403
    assert record.field == "title"
    assert record.provider == "fake"


@pytest.mark.asyncio
async def test_transient_errors_are_retried() -> None:
    unavailable = TranslationProviderError(
        "unavailable", provider="fake", kind=TranslationErrorKind.HTTP_STATUS, status_code=503
    )
    provider = FakeProvider([httpx.ConnectError("refused"), unavailable])
    service = _service(provider, retry_attempts=3)

    assert await service.translate_text("Hola", target_locale="en") == "HOLA"
    assert len(provider.requests) == 3


@pytest.mark.asyncio
async def test_retries_stop_after_configured_attempts(caplog: pytest.LogCaptureFixture) -> None:
    provider = FakeProvider([httpx.ConnectError("refused")] * 5)
    service = _service(provider, retry_attempts=2)

    with caplog.at_level(logging.INFO):
        assert await service.translate_text("Hola", target_locale="en", field="title") == "Hola"

    assert len(provider.requests) == 2
    retry_log = next(r for r in caplog.records if "Retrying translation" in r.getMessage())
    assert retry_log.attempt == 1
    assert retry_log.error_kind == "network"
    failure = next(r for r in caplog.records if "serving source text" in r.getMessage())
    assert failure.attempt == 2
    assert failure.field == "title"


@pytest.mark.asyncio
async def test_retry_waits_configured_delay_between_attempts() -> None:
    delays: list[float] = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    provider = FakeProvider([httpx.ConnectError("refused")] * 2)
    service = TranslationService(
        provider, retry_attempts=3, retry_delay_seconds=0.25, sleep=record_sleep
    )

    assert await service.translate_text("Hola", target_locale="en") == "HOLA"
    assert delays == [0.25, 0.25]


@pytest.mark.asyncio
async def test_hanging_provider_costs_a_single_timeout() -> None:
    class HangingProvider(FakeProvider):
        async def translate(self, request: TranslationRequest) -> str:
            self.requests.append(request)
            await asyncio.sleep(3600)
            return request.text

    provider = HangingProvider()
    service = TranslationService(
        provider,
        timeout_seconds=0.2,
        retry_attempts=3,
        retry_delay_seconds=1.0,
        sleep=asyncio.sleep,
    )

    started = time.perf_counter()
    translated = await service.translate_text("Hola", target_locale="en")
    elapsed = time.perf_counter() - started

    assert translated == "Hola"
    assert len(provider.requests) == 1
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_timeout_fails_open() -> None:
    provider = FakeProvider(delay=1.0)
    service = _service(provider, timeout_seconds=0.01, retry_attempts=1)

    assert await service.translate_text("Hola", target_locale="en") == "Hola"


@pytest.mark.asyncio
async def test_empty_provider_result_fails_open() -> None:
    class EmptyProvider(FakeProvider):
        async def translate(self, request: TranslationRequest) -> str:
            self.requests.append(request)
            return ""

    service = _service(EmptyProvider(), retry_attempts=1)

    assert await service.translate_text("Hola", target_locale="en") == "Hola"


@pytest.mark.asyncio
async def test_missing_provider_warns_once(caplog: pytest.LogCaptureFixture) -> None:
    service = _service(None)

    with caplog.at_level(logging.WARNING):
        assert await service.translate_text("Hola", target_locale="en") == "Hola"
        assert await service.translate_text("Adiós", target_locale="en") == "Adiós"

    warnings = [r for r in caplog.records if "No translation provider" in r.getMessage()]
    assert len(warnings) == 1


@pytest.mark.asyncio
async def test_invalid_locale_fails_open() -> None:
    provider = FakeProvider()
    service = _service(provider)

    assert await service.translate_text("Hola", target_locale="fr") == "Hola"
    assert provider.requests == []


@pytest.mark.asyncio
async def test_successful_translations_are_cached() -> None:
    provider = FakeProvider()
    service = _service(provider, cache=TranslationCache())

    first = await service.translate_text("Hola", target_locale="en")
    second = await service.translate_text("Hola", target_locale="en")

    assert first == second == "HOLA"
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_failed_translations_are_not_cached() -> None:
    provider = FakeProvider([TranslationProviderError("down", provider="fake")])
    service = _service(provider, cache=TranslationCache(), retry_attempts=1)

    assert await service.translate_text("Hola", target_locale="en") == "Hola"
    assert await service.translate_text("Hola", target_locale="en") == "HOLA"
    assert len(provider.requests) == 2


@pytest.mark.asyncio
async def test_invalidate_forces_retranslation() -> None:
    provider = FakeProvider()
    service = _service(provider, cache=TranslationCache())

    await service.translate_text("Hola", target_locale="en")
    assert await service.invalidate("Hola") == 1
    await service.translate_text("Hola", target_locale="en")

    assert len(provider.requests) == 2


@pytest.mark.asyncio
async def test_long_text_is_translated_in_chunks() -> None:
    provider = FakeProvider()
    service = _service(provider)
    paragraphs = [f"párrafo {index} " + "a" * 700 for index in range(4)]
    text = "\n\n".join(paragraphs)

    translated = await service.translate_text(text, target_locale="en")

    assert len(provider.requests) == 4
    assert translated == "\n\n".join(p.upper() for p in paragraphs)


@pytest.mark.asyncio
async def test_failed_chunk_keeps_its_source_text() -> None:
    provider = FakeProvider([TranslationProviderError("down", provider="fake")])
    service = _service(provider, retry_attempts=1, max_concurrency=1)
    paragraphs = ["uno " + "a" * 900, "dos " + "b" * 900, "tres " + "c" * 900]

    translated = await service.translate_text("\n\n".join(paragraphs), target_locale="en")

    pieces = translated.split("\n\n")
    assert pieces[0] == paragraphs[0]
    assert pieces[1:] == [p.upper() for p in paragraphs[1:]]


@pytest.mark.asyncio
async def test_ineligible_chunks_are_not_sent_to_provider() -> None:
    provider = FakeProvider()
    service = _service(provider)
    paragraphs = [
        "primero " + "a" * 900,
        "https://fundacion.org/informe-anual-2023",
        "segundo " + "b" * 900,
        "2024",
        "tercero " + "c" * 900,
    ]

    translated = await service.translate_text("\n\n".join(paragraphs), target_locale="en")

    sent = [request.text for request in provider.requests]
    assert len(sent) == 3
    assert "https://fundacion.org/informe-anual-2023" not in sent
    assert "2024" not in sent
    assert translated.split("\n\n") == [
        paragraphs[0].upper(),
        paragraphs[1],
        paragraphs[2].upper(),
        paragraphs[3],
        paragraphs[4].upper(),
    ]


@pytest.mark.asyncio
async def test_long_html_is_sent_as_whole_paragraphs() -> None:
    provider = FakeProvider()
    service = _service(provider)
    html = "".join(f"<p>Parrafo {index} {'texto ' * 60}</p>" for index in range(6))

    translated = await service.translate_text(html, target_locale="en")

    assert len(provider.requests) > 1
    for request in provider.requests:
        assert request.text.startswith("<p>")
        assert request.text.endswith("</p>")
    assert "<P>\n\n" not in translated
    assert all(piece.startswith("<P>") for piece in translated.split("\n\n"))


@pytest.mark.asyncio
async def test_from_settings_wires_libretranslate_provider() -> None:
    captured: list[dict[str, object]] = []

    class RecordingClient:
        async def __aenter__(self) -> RecordingClient:
            return self

        async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
            return None

        async def post(self, url: str, **kwargs: object) -> httpx.Response:
            captured.append({"url": url, **kwargs})
            return httpx.Response(200, json={"translatedText": "Hello"})

    settings = AppSettings(
        TRANSLATION_PROVIDER="libretranslate",
        LIBRETRANSLATE_URL="https://lt.internal",
        TRANSLATION_CACHE_ENABLED=False,
    )
    service = TranslationService.from_settings(settings, client_factory=RecordingClient)

    assert service.provider_name == LibreTranslateProvider.name
    assert service.cache is None
    assert await service.translate_text("Hola", target_locale="en") == "Hello"
    assert captured[0]["url"] == "https://lt.internal/translate"
