import asyncio
import time
from collections.abc import Awaitable, Callable

import psycopg
from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool

from visacheck.database.models import ApiKeyRecord, ApiUsageEntry
from visacheck.database.repositories.api_usage_repository import ApiUsageRepository
from visacheck.logging.logger import Log


async def track_api_usage(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Write one api_usage row for every call that authenticated with an API key.

    The row is written after the response is produced. A failure to write
    it is logged and does not change the response.
    """
    started = time.perf_counter()
    response = await call_next(request)
    api_key: ApiKeyRecord | None = getattr(request.state, "api_key", None)
    if api_key is None:
        return response

    entry = ApiUsageEntry(
        user_id=api_key.user_id,
        api_key=api_key.key,
        endpoint=request.url.path,
        method=request.method,
        status_code=response.status_code,
        success=200 <= response.status_code < 300,
        response_time_ms=int((time.perf_counter() - started) * 1000),
        metadata={"apiKeyName": api_key.name},
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    try:
        await run_in_threadpool(request.app.state.services.api_usage.record, entry)
    except psycopg.Error as exc:
        Log.error(f"Error tracking API usage: {exc}")
    return response


async def purge_usage_loop(
    api_usage: ApiUsageRepository,
    retention_days: int,
    interval_seconds: float,
) -> None:
    """Delete api_usage rows past retention now and then every ``interval_seconds``.

    Runs until cancelled. A failed purge is logged and retried on the next tick.
    """
    while True:
        try:
            removed = await run_in_threadpool(api_usage.purge_expired, retention_days)
            Log.info(f"Purged {removed} api_usage rows older than {retention_days} days")
        except psycopg.Error as exc:
            Log.error(f"Error purging API usage: {exc}")
        await asyncio.sleep(interval_seconds)
