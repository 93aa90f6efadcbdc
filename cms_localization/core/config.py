from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from cms_localization.schemas.translation import ProviderConfig, ProviderName


class AppSettings(BaseSettings):
    """Application configuration loaded from environment or .env."""

    app_name: str = Field(default="CMS Localization API")
    app_env: str = Field(default="dev", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")

    enable_auto_translation: Optional[bool] = Field(
        default=None, alias="ENABLE_AUTO_TRANSLATION"
    )
    translation_provider: ProviderName = Field(
        default=ProviderName.LIBRETRANSLATE, alias="TRANSLATION_PROVIDER"
    )
    google_translate_api_key: Optional[SecretStr] = Field(
        default=None, alias="GOOGLE_TRANSLATE_API_KEY"
    )
    libretranslate_url: Optional[str] = Field(
        default="https://libretranslate.org", alias="LIBRETRANSLATE_URL"
    )
    translation_timeout_seconds: float = Field(
        default=5.0, gt=0, alias="TRANSLATION_TIMEOUT_SECONDS"
    )
    translation_retry_attempts: int = Field(
        default=3, ge=1, alias="TRANSLATION_RETRY_ATTEMPTS"
    )
    translation_retry_delay_seconds: float = Field(
        default=1.0, ge=0, alias="TRANSLATION_RETRY_DELAY_SECONDS"
    )
    translation_max_concurrency: int = Field(
        default=8, ge=1, alias="TRANSLATION_MAX_CONCURRENCY"
    )
    translation_cache_enabled: bool = Field(default=True, alias="TRANSLATION_CACHE_ENABLED")
    translation_cache_ttl_seconds: float = Field(
        default=24 * 60 * 60, gt=0, alias="TRANSLATION_CACHE_TTL_SECONDS"
    )
    translation_cache_max_entries: int = Field(
        default=1000, ge=1, alias="TRANSLATION_CACHE_MAX_ENTRIES"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def auto_translation_enabled(self) -> bool:
        """Explicit flag wins; otherwise only development environments auto-translate."""
        if self.enable_auto_translation is not None:
            return self.enable_auto_translation
        return self.app_env.lower() in {"dev", "development"}

    def provider_config(self) -> ProviderConfig:
        """Freeze the provider selection into an immutable config object."""
        api_key = (
            self.google_translate_api_key.get_secret_value()
            if self.google_translate_api_key
            else None
        )
        return ProviderConfig(
            provider=self.translation_provider,
            api_key=api_key or None,
            base_url=self.libretranslate_url or None,
            timeout_seconds=self.translation_timeout_seconds,
        )


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings."""
    return AppSettings()  # type: ignore[call-arg]
