from collections.abc import Callable
from datetime import UTC, datetime

from visacheck.config.exceptions import ConfigurationError
from visacheck.database.models import PlanRecord
from visacheck.database.repositories.evaluation_repository import EvaluationRepository
from visacheck.database.repositories.plan_repository import PlanRepository
from visacheck.database.repositories.subscription_repository import SubscriptionRepository
from visacheck.logging.logger import Log
from visacheck.quota.exceptions import QuotaExceededError
from visacheck.quota.models import QuotaReservation, QuotaStatus


def utc_now() -> datetime:
    return datetime.now(UTC)


def start_of_month(now: datetime) -> datetime:
    """First instant of ``now``'s calendar month in UTC."""
    now = now.astimezone(UTC)
    return datetime(now.year, now.month, 1, tzinfo=UTC)


class QuotaGate:
    """Decides whether a user may run another evaluation.

    A user with an active subscription whose period has not ended is
    metered by ``subscriptions.calls_used`` against the plan limit. Everyone
    else falls back to the free plan, metered by the number of evaluation
    rows created since the start of the current UTC month.
    """

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        plan_repository: PlanRepository,
        evaluation_repository: EvaluationRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._subscriptions = subscription_repository
        self._plans = plan_repository
        self._evaluations = evaluation_repository
        self._clock = clock

    def check_quota(self, user_id: int) -> QuotaStatus:
        """Report the user's allowance without consuming anything."""
        now = self._clock()
        subscription = self._subscriptions.find_active(user_id, now)
        if subscription is not None:
            limit = subscription.plan.call_limit
            used = subscription.calls_used
            return QuotaStatus(
                allowed=used < limit,
                remaining=limit - used,
                limit=limit,
                used=used,
                plan=subscription.plan,
                subscription=subscription,
            )

        free_plan = self._free_plan()
        used = self._evaluations.count_created_since(user_id, start_of_month(now))
        return QuotaStatus(
            allowed=used < free_plan.call_limit,
            remaining=free_plan.call_limit - used,
            limit=free_plan.call_limit,
            used=used,
            plan=free_plan,
        )

    def reserve(self, user_id: int) -> QuotaReservation:
        """Take one call from the user's allowance.

        For subscribed users the counter is incremented atomically here. For
        the free tier the returned reservation carries the limit and the
        period start, and the evaluation insert enforces them.

        Raises:
            QuotaExceededError: if nothing is left in the current period.
        """
        now = self._clock()
        subscription = self._subscriptions.find_active(user_id, now)
        if subscription is not None:
            calls_used = self._subscriptions.try_consume_call(subscription.id)
            if calls_used is None:
                limit = subscription.plan.call_limit
                Log.warning(
                    "Quota exceeded",
                    user_id=user_id,
                    plan=subscription.plan.tier,
                    limit=limit,
                )
                raise QuotaExceededError(
                    limit=limit,
                    used=max(subscription.calls_used, limit),
                    plan=subscription.plan.tier,
                    period_end=subscription.current_period_end,
                )
            Log.debug("Reserved subscription call", user_id=user_id, calls_used=calls_used)
            return QuotaReservation(
                user_id=user_id,
                plan=subscription.plan,
                limit=subscription.plan.call_limit,
                period_start=subscription.current_period_start,
                subscription_id=subscription.id,
            )

        free_plan = self._free_plan()
        period_start = start_of_month(now)
        used = self._evaluations.count_created_since(user_id, period_start)
        if used >= free_plan.call_limit:
            Log.warning("Quota exceeded", user_id=user_id, plan="free", limit=free_plan.call_limit)
            raise QuotaExceededError(limit=free_plan.call_limit, used=used, plan=free_plan.tier)
        return QuotaReservation(
            user_id=user_id,
            plan=free_plan,
            limit=free_plan.call_limit,
            period_start=period_start,
        )

    def release(self, reservation: QuotaReservation) -> None:
        """Give back a subscription call whose evaluation did not succeed.

        Free-tier usage is derived from evaluation rows, so there is nothing
        to undo for it.
        """
        if reservation.subscription_id is None:
            return
        self._subscriptions.release_call(reservation.subscription_id)
        Log.info("Released subscription call", user_id=reservation.user_id)

    def _free_plan(self) -> PlanRecord:
        plan = self._plans.find_free_plan()
        if plan is None:
            raise ConfigurationError("Free plan not configured")
        return plan
