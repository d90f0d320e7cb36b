"""Maps domain exceptions to the ``{success: false, message}`` envelope."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from visacheck.api.exceptions import ApiError
from visacheck.billing.exceptions import WebhookError
from visacheck.config.exceptions import ConfigurationError
from visacheck.evaluation.exceptions import (
    EvaluationNotFoundError,
    InvalidSubmissionError,
    VisaTypeNotFoundError,
)
from visacheck.logging.logger import Log
from visacheck.quota.exceptions import QuotaExceededError


def _envelope(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _envelope(exc.status_code, str(exc))


async def _quota_exceeded(request: Request, exc: QuotaExceededError) -> JSONResponse:
    return _envelope(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "API rate limit exceeded",
        error=str(exc),
        quota=exc.to_payload(),
    )


async def _invalid_submission(request: Request, exc: InvalidSubmissionError) -> JSONResponse:
    return _envelope(status.HTTP_400_BAD_REQUEST, str(exc))


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return _envelope(status.HTTP_404_NOT_FOUND, str(exc))


async def _webhook_error(request: Request, exc: WebhookError) -> JSONResponse:
    Log.warning(f"Rejected webhook: {exc}")
    return _envelope(status.HTTP_400_BAD_REQUEST, str(exc))


async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    Log.error(f"Configuration error on {request.url.path}: {exc}")
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"{exc}. Please contact administrator.",
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return _envelope(status.HTTP_400_BAD_REQUEST, f"Invalid request: {details}")


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    Log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error)
    app.add_exception_handler(QuotaExceededError, _quota_exceeded)
    app.add_exception_handler(InvalidSubmissionError, _invalid_submission)
    app.add_exception_handler(VisaTypeNotFoundError, _not_found)
    app.add_exception_handler(EvaluationNotFoundError, _not_found)
    app.add_exception_handler(WebhookError, _webhook_error)
    app.add_exception_handler(ConfigurationError, _configuration_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled)
