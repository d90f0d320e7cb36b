"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, Header, Request

from visacheck.api.exceptions import AuthenticationError
from visacheck.api.services import Services
from visacheck.database.models import ApiKeyRecord
from visacheck.evaluation.orchestrator import EvaluationOrchestrator
from visacheck.quota.gate import QuotaGate


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> ApiKeyRecord:
    """Resolve the x-api-key header to an active key and remember it for usage tracking."""
    if not x_api_key:
        raise AuthenticationError("API key is required")

    api_key = services.api_keys.find_active(x_api_key)
    if api_key is None:
        raise AuthenticationError("Invalid or inactive API key")

    services.api_keys.touch_last_used(api_key.id)
    request.state.api_key = api_key
    return api_key


def get_orchestrator(services: Services = Depends(get_services)) -> EvaluationOrchestrator:
    return services.require_orchestrator()


def get_quota_gate(services: Services = Depends(get_services)) -> QuotaGate:
    return services.quota_gate
