import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from visacheck.api.errors import register_exception_handlers
from visacheck.api.routes import evaluations, health, quota, visa_config, webhooks
from visacheck.api.services import Services
from visacheck.api.usage import purge_usage_loop, track_api_usage


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the api_usage retention purge for as long as the app serves."""
    services: Services = app.state.services
    purge_task = asyncio.create_task(
        purge_usage_loop(
            services.api_usage,
            services.settings.api_usage_retention_days,
            services.settings.api_usage_purge_interval_seconds,
        )
    )

    yield

    purge_task.cancel()
    try:
        await purge_task
    except asyncio.CancelledError:
        pass


def create_app(services: Services) -> FastAPI:
    """Build the FastAPI application around already-constructed services."""
    app = FastAPI(
        title="visacheck",
        description="Visa document eligibility analysis API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    register_exception_handlers(app)
    app.middleware("http")(track_api_usage)

    app.include_router(health.router)
    app.include_router(visa_config.router)
    app.include_router(evaluations.router)
    app.include_router(quota.router)
    app.include_router(webhooks.router)
    return app
