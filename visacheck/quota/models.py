from dataclasses import dataclass
from datetime import datetime

from visacheck.database.models import PlanRecord, SubscriptionRecord
from visacheck.quota.exceptions import QuotaExceededError


@dataclass(frozen=True)
class QuotaStatus:
    """Read-only view of a user's allowance for the current period."""

    allowed: bool
    remaining: int
    limit: int
    used: int
    plan: PlanRecord
    subscription: SubscriptionRecord | None = None

    def exceeded(self) -> QuotaExceededError:
        return QuotaExceededError(
            limit=self.limit,
            used=self.used,
            plan=self.plan.tier,
            period_end=self.subscription.current_period_end if self.subscription else None,
        )

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "allowed": self.allowed,
            "limit": self.limit,
            "used": self.used,
            "remaining": max(self.remaining, 0),
            "plan": self.plan.tier,
        }
        if self.subscription is not None:
            data["periodEnd"] = self.subscription.current_period_end.isoformat()
        return data


@dataclass(frozen=True)
class QuotaReservation:
    """A call taken from the allowance ahead of running an evaluation.

    Subscribed users already had ``calls_used`` incremented. Free-tier
    reservations are settled when the evaluation row is inserted, under
    ``limit`` counted from ``period_start``.
    """

    user_id: int
    plan: PlanRecord
    limit: int
    period_start: datetime
    subscription_id: int | None = None

    @property
    def is_subscription(self) -> bool:
        return self.subscription_id is not None

    def exceeded(self) -> QuotaExceededError:
        return QuotaExceededError(limit=self.limit, used=self.limit, plan=self.plan.tier)
