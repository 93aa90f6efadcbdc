from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Locale(str, Enum):
    """Locales served by the public site. Content is authored in Spanish."""

    ES = "es"
    EN = "en"


SOURCE_LOCALE = Locale.ES


class UnsupportedLocaleError(ValueError):
    """Raised when a locale outside the supported set reaches the core."""

    def __init__(self, value: object):
        super().__init__(f"Unsupported locale: {value!r}. Expected one of: es, en.")
        self.value = value


def parse_locale(value: Locale | str) -> Locale:
    """Return the Locale for ``value`` or raise UnsupportedLocaleError."""
    if isinstance(value, Locale):
        return value
    if not isinstance(value, str):
        raise UnsupportedLocaleError(value)
    try:
        return Locale(value.strip().lower())
    except ValueError as exc:
        raise UnsupportedLocaleError(value) from exc


class ContentType(str, Enum):
    NEWS = "news"
    PROGRAM = "program"
    LIBRARY = "library"
    MEDIA = "media"


class ProviderName(str, Enum):
    GOOGLE = "google"
    LIBRETRANSLATE = "libretranslate"


class TranslationErrorKind(str, Enum):
    """Classification of provider failures for logs."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    MISCONFIGURED = "misconfigured"
    UNKNOWN = "unknown"


class ProviderConfig(BaseModel):
    """Immutable provider selection built once per process from settings."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderName = Field(
        default=ProviderName.LIBRETRANSLATE,
        description="Translation backend to dispatch to.",
    )
    api_key: str | None = Field(
        default=None, description="API key for the Google Cloud Translation backend."
    )
    base_url: str | None = Field(
        default=None, description="Base URL of the self-hosted LibreTranslate instance."
    )
    timeout_seconds: float = Field(
        default=5.0, gt=0, description="Per-request timeout for provider calls."
    )

    @property
    def is_configured(self) -> bool:
        if self.provider is ProviderName.GOOGLE:
            return bool(self.api_key)
        return bool(self.base_url)


class TranslationRequest(BaseModel):
    """Single text translation request handed to a provider."""

    model_config = ConfigDict(frozen=True)

    text: str
    source_locale: Locale = SOURCE_LOCALE
    target_locale: Locale

    @property
    def requires_provider(self) -> bool:
        return self.source_locale != self.target_locale


class RecordTranslationRequest(BaseModel):
    locale: Locale = Field(..., description="Locale the record should be rendered in.")
    record: dict[str, Any] = Field(
        default_factory=dict, description="Content record in the source language."
    )

    @field_validator("locale", mode="before")
    @classmethod
    def _normalize_locale(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class RecordBatchTranslationRequest(BaseModel):
    locale: Locale = Field(..., description="Locale the records should be rendered in.")
    records: list[dict[str, Any]] = Field(
        default_factory=list, description="Content records in the source language."
    )

    @field_validator("locale", mode="before")
    @classmethod
    def _normalize_locale(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class RecordBatchTranslationResponse(BaseModel):
    locale: Locale = Field(..., description="Locale the records were rendered in.")
    records: list[dict[str, Any]] = Field(
        default_factory=list, description="Records in input order."
    )


class TextTranslationRequest(BaseModel):
    text: str = Field("", description="Text to translate.")
    target_locale: Locale = Field(..., description="Locale code to translate into.")
    source_locale: Locale = Field(
        default=SOURCE_LOCALE,
        description="Locale code of the provided text. Defaults to es.",
    )

    @field_validator("target_locale", "source_locale", mode="before")
    @classmethod
    def _normalize_locale(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class TextTranslationResponse(BaseModel):
    text: str = Field(..., description="Original text.")
    translated_text: str = Field(..., description="Translated text, or the original on failure.")
    translatable: bool = Field(..., description="Whether the text was eligible for translation.")


class CacheClearResponse(BaseModel):
    cleared: int = Field(..., description="Number of cached translations dropped.")
