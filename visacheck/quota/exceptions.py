from datetime import datetime
from typing import Any


class QuotaExceededError(Exception):
    """Raised when a user has no evaluations left in the current period.

    ``to_payload`` is the body clients use to render an upgrade prompt.
    """

    def __init__(
        self,
        *,
        limit: int,
        used: int,
        plan: str,
        period_end: datetime | None = None,
    ) -> None:
        self.limit = limit
        self.used = used
        self.plan = plan
        self.period_end = period_end
        if plan == "free":
            message = "You have reached your free plan limit. Please upgrade to continue."
        else:
            message = f"You have reached your {plan} plan limit for this billing period."
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "limit": self.limit,
            "used": self.used,
            "remaining": 0,
            "plan": self.plan,
        }
        if self.period_end is not None:
            payload["periodEnd"] = self.period_end.isoformat()
        return payload
