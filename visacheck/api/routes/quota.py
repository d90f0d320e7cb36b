from fastapi import APIRouter, Depends

from visacheck.api.dependencies import get_quota_gate, require_api_key
from visacheck.database.models import ApiKeyRecord
from visacheck.quota.gate import QuotaGate

router = APIRouter(prefix="/api/v1/quota", tags=["quota"])


@router.get("")
def get_quota(
    api_key: ApiKeyRecord = Depends(require_api_key),
    quota_gate: QuotaGate = Depends(get_quota_gate),
):
    """Current allowance for the caller. Does not consume a call."""
    quota = quota_gate.check_quota(api_key.user_id)
    return {"success": True, "data": quota.to_dict()}
