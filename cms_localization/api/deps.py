from cms_localization.core.config import AppSettings, get_settings
from cms_localization.services.content_translation import ContentTranslationService
from cms_localization.services.translation import TranslationService

_translation_service: TranslationService | None = None
_content_translation_service: ContentTranslationService | None = None


async def get_app_settings() -> AppSettings:
    """Provide the cached application settings."""
    return get_settings()


async def get_translation_service() -> TranslationService:
    """Provide singleton TranslationService instance."""
    global _translation_service
    if _translation_service is None:
        _translation_service = TranslationService.from_settings(get_settings())
    return _translation_service


async def get_content_translation_service() -> ContentTranslationService:
    """Provide singleton ContentTranslationService bound to the shared translator."""
    global _content_translation_service
    if _content_translation_service is None:
        _content_translation_service = ContentTranslationService(
            await get_translation_service()
        )
    return _content_translation_service


def reset_services() -> None:
    """Drop cached singletons so the next request rebuilds them from settings."""
    global _translation_service, _content_translation_service
    _translation_service = None
    _content_translation_service = None
