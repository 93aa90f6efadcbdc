from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from cms_localization.api.deps import get_app_settings
from cms_localization.core.config import AppSettings

router = APIRouter()


@router.get("/healthz")
async def healthcheck(settings: AppSettings = Depends(get_app_settings)) -> dict[str, object]:
    """Liveness probe; also reports whether English reads will be auto-translated."""
    config = settings.provider_config()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "auto_translation": settings.auto_translation_enabled,
        "translation_provider": config.provider.value,
        "translation_provider_configured": config.is_configured,
    }
