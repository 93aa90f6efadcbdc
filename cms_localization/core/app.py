from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from cms_localization import __version__
from cms_localization.api.router import api_router
from cms_localization.core.config import get_settings


logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    """Ensure application logs propagate with the requested verbosity."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
    root_logger.setLevel(level)


def create_app() -> FastAPI:
    settings = get_settings()
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        config = settings.provider_config()
        logger.info(
            "Auto-translation %s (provider=%s configured=%s)",
            "enabled" if settings.auto_translation_enabled else "disabled",
            config.provider.value,
            config.is_configured,
        )
        yield

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        return {"service": settings.app_name, "environment": settings.app_env}

    return app
