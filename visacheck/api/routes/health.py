from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from visacheck.api.dependencies import get_services
from visacheck.api.services import Services

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(services: Services = Depends(get_services)):
    """Cheap liveness check, no database calls."""
    return {
        "status": "ok",
        "evaluations": "enabled" if services.orchestrator is not None else "disabled",
        "timestamp": datetime.now(UTC).isoformat(),
    }
