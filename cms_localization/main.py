import uvicorn

from cms_localization.core.config import get_settings

APP_FACTORY = "cms_localization.core.app:create_app"


def run() -> None:
    """Entrypoint for `cms-localization-api` script.

    The app is built by uvicorn through the factory so reload workers pick up
    settings from their own environment.
    """
    settings = get_settings()
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
