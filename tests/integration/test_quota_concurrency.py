from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from visacheck.database.connection import get_connection
from visacheck.database.models import SubscriptionRecord
from visacheck.database.repositories.evaluation_repository import EvaluationRepository
from visacheck.database.repositories.subscription_repository import SubscriptionRepository

CONCURRENT_REQUESTS = 50


@pytest.mark.integration
class TestSubscriptionQuotaUnderLoad:
    def test_exactly_limit_calls_succeed(self, seed_subscription: SubscriptionRecord) -> None:
        repo = SubscriptionRepository()

        with ThreadPoolExecutor(max_workers=CONCURRENT_REQUESTS) as pool:
            results = list(
                pool.map(
                    lambda _: repo.try_consume_call(seed_subscription.id),
                    range(CONCURRENT_REQUESTS),
                )
            )

        granted = [r for r in results if r is not None]
        assert len(granted) == seed_subscription.plan.call_limit
        assert sorted(granted) == list(range(1, seed_subscription.plan.call_limit + 1))

        refreshed = repo.find_by_stripe_id(seed_subscription.stripe_subscription_id or "")
        assert refreshed is not None
        assert refreshed.calls_used == seed_subscription.plan.call_limit

    def test_last_call_granted_once(self, seed_subscription: SubscriptionRecord) -> None:
        repo = SubscriptionRepository()
        limit = seed_subscription.plan.call_limit
        with get_connection() as conn:
            conn.execute(
                "UPDATE subscriptions SET calls_used = %s WHERE id = %s",
                (limit - 1, seed_subscription.id),
            )
            conn.commit()

        with ThreadPoolExecutor(max_workers=CONCURRENT_REQUESTS) as pool:
            results = list(
                pool.map(
                    lambda _: repo.try_consume_call(seed_subscription.id),
                    range(CONCURRENT_REQUESTS),
                )
            )

        assert [r for r in results if r is not None] == [limit]
        refreshed = repo.find_by_stripe_id(seed_subscription.stripe_subscription_id or "")
        assert refreshed is not None
        assert refreshed.calls_used == limit

    def test_release_returns_capacity(self, seed_subscription: SubscriptionRecord) -> None:
        repo = SubscriptionRepository()
        for _ in range(seed_subscription.plan.call_limit):
            assert repo.try_consume_call(seed_subscription.id) is not None
        assert repo.try_consume_call(seed_subscription.id) is None

        repo.release_call(seed_subscription.id)

        assert repo.try_consume_call(seed_subscription.id) == seed_subscription.plan.call_limit


@pytest.mark.integration
class TestFreeTierQuotaUnderLoad:
    def test_exactly_limit_rows_created(self, seed_user: int) -> None:
        repo = EvaluationRepository()
        since = datetime.now(UTC) - timedelta(minutes=1)
        limit = 5

        with ThreadPoolExecutor(max_workers=CONCURRENT_REQUESTS) as pool:
            results = list(
                pool.map(
                    lambda _: repo.create_within_limit(
                        seed_user, "US", "H1B", limit=limit, since=since
                    ),
                    range(CONCURRENT_REQUESTS),
                )
            )

        assert sum(1 for r in results if r is not None) == limit
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM evaluations WHERE user_id = %s", (seed_user,))
                row = cur.fetchone()
        assert row is not None
        assert row[0] == limit
