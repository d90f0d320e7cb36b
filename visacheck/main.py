import uvicorn

from visacheck.api.app import create_app
from visacheck.api.services import build_services
from visacheck.config.settings import Settings
from visacheck.database.connection import apply_schema, close_pool, init_pool
from visacheck.logging.logger import Log


def main() -> None:
    """Entry point: initialize pool -> optional schema -> build services -> serve."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        if settings.db_apply_schema:
            apply_schema()

        app = create_app(build_services(settings))
        Log.info(f"Starting visacheck API on {settings.api_host}:{settings.api_port}")
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower(),
        )
    finally:
        close_pool()


if __name__ == "__main__":
    main()
