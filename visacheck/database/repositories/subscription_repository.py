from datetime import datetime
from typing import Any

from psycopg.rows import dict_row

from visacheck.database.connection import get_connection
from visacheck.database.models import PlanRecord, SubscriptionRecord, SubscriptionUpdate

_SELECT_WITH_PLAN = """
    SELECT s.id, s.user_id, s.status, s.current_period_start, s.current_period_end,
           s.calls_used, s.stripe_subscription_id, s.cancel_at_period_end, s.canceled_at,
           p.id AS plan_id, p.name AS plan_name, p.tier AS plan_tier,
           p.billing_period AS plan_billing_period, p.call_limit AS plan_call_limit,
           p.price_cents AS plan_price_cents
    FROM subscriptions s
    JOIN plans p ON p.id = s.plan_id
"""


class SubscriptionRepository:
    """Database operations for the subscriptions table.

    Usage counters are only ever changed by single conditional UPDATE
    statements, so concurrent requests cannot lose or overshoot increments.
    """

    def find_active(self, user_id: int, now: datetime) -> SubscriptionRecord | None:
        """Return the user's active subscription whose period has not ended."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    _SELECT_WITH_PLAN
                    + """
                    WHERE s.user_id = %s
                      AND s.status = 'active'
                      AND s.current_period_end >= %s
                    ORDER BY s.current_period_end DESC
                    LIMIT 1
                    """,
                    (user_id, now),
                )
                row = cur.fetchone()

        return self._to_record(row) if row is not None else None

    def find_by_stripe_id(self, stripe_subscription_id: str) -> SubscriptionRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    _SELECT_WITH_PLAN + " WHERE s.stripe_subscription_id = %s",
                    (stripe_subscription_id,),
                )
                row = cur.fetchone()

        return self._to_record(row) if row is not None else None

    def try_consume_call(self, subscription_id: int) -> int | None:
        """Atomically take one call from the subscription's allowance.

        Returns the new ``calls_used`` value, or None when the plan limit is
        already reached (or the subscription is no longer active).
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE subscriptions AS s
                    SET calls_used = s.calls_used + 1, updated_at = NOW()
                    FROM plans AS p
                    WHERE s.id = %s
                      AND p.id = s.plan_id
                      AND s.status = 'active'
                      AND s.current_period_end >= NOW()
                      AND s.calls_used < p.call_limit
                    RETURNING s.calls_used
                    """,
                    (subscription_id,),
                )
                row = cur.fetchone()
            conn.commit()

        return int(row[0]) if row is not None else None

    def release_call(self, subscription_id: int) -> None:
        """Give back a call taken by try_consume_call, never going below zero."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE subscriptions
                SET calls_used = calls_used - 1, updated_at = NOW()
                WHERE id = %s AND calls_used > 0
                """,
                (subscription_id,),
            )
            conn.commit()

    def create_from_provider(
        self,
        *,
        user_id: int,
        plan_id: int,
        stripe_customer_id: str,
        stripe_subscription_id: str,
        status: str,
        current_period_start: datetime,
        current_period_end: datetime,
        cancel_at_period_end: bool,
    ) -> int | None:
        """Insert a subscription announced by the payment provider.

        Redelivered events are no-ops: the insert is keyed on
        ``stripe_subscription_id``. Returns the new row id, or None when the
        subscription already exists or the user or plan is unknown.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO subscriptions
                        (user_id, plan_id, stripe_customer_id, stripe_subscription_id, status,
                         current_period_start, current_period_end, cancel_at_period_end,
                         calls_used)
                    SELECT u.id, p.id, %(customer_id)s, %(sub_id)s, %(status)s,
                           %(period_start)s, %(period_end)s, %(cancel_at_period_end)s, 0
                    FROM users AS u
                    JOIN plans AS p ON p.id = %(plan_id)s
                    WHERE u.id = %(user_id)s
                    ON CONFLICT (stripe_subscription_id) DO NOTHING
                    RETURNING id
                    """,
                    {
                        "user_id": user_id,
                        "plan_id": plan_id,
                        "customer_id": stripe_customer_id,
                        "sub_id": stripe_subscription_id,
                        "status": status,
                        "period_start": current_period_start,
                        "period_end": current_period_end,
                        "cancel_at_period_end": cancel_at_period_end,
                    },
                )
                row = cur.fetchone()
            conn.commit()

        return int(row[0]) if row is not None else None

    def apply_provider_update(
        self,
        stripe_subscription_id: str,
        *,
        status: str,
        current_period_start: datetime | None,
        current_period_end: datetime | None,
        cancel_at_period_end: bool,
        canceled_at: datetime | None,
    ) -> SubscriptionUpdate | None:
        """Sync status and billing period from the payment provider.

        The stored period only moves forward, and ``calls_used`` is reset to
        zero in the same statement when it does. That happens when the new
        status is active and the incoming period start is later than the
        stored one, so replayed or out-of-order events never reset twice. A
        missing period start keeps the stored period. Returns None if the
        subscription is unknown.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    WITH previous AS (
                        SELECT id,
                               COALESCE(
                                   %(status)s::text = 'active'
                                   AND %(period_start)s::timestamptz > current_period_start,
                                   FALSE
                               ) AS renewed
                        FROM subscriptions
                        WHERE stripe_subscription_id = %(sub_id)s
                        FOR UPDATE
                    )
                    UPDATE subscriptions AS s
                    SET calls_used = CASE WHEN previous.renewed THEN 0 ELSE s.calls_used END,
                        current_period_start = CASE
                            WHEN previous.renewed THEN %(period_start)s::timestamptz
                            ELSE s.current_period_start
                        END,
                        current_period_end = CASE
                            WHEN previous.renewed
                                 OR %(period_start)s::timestamptz = s.current_period_start
                            THEN COALESCE(%(period_end)s::timestamptz, s.current_period_end)
                            ELSE s.current_period_end
                        END,
                        status = %(status)s,
                        cancel_at_period_end = %(cancel_at_period_end)s,
                        canceled_at = %(canceled_at)s,
                        updated_at = NOW()
                    FROM previous
                    WHERE s.id = previous.id
                    RETURNING s.id, previous.renewed
                    """,
                    {
                        "sub_id": stripe_subscription_id,
                        "status": status,
                        "period_start": current_period_start,
                        "period_end": current_period_end,
                        "cancel_at_period_end": cancel_at_period_end,
                        "canceled_at": canceled_at,
                    },
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            return None
        return SubscriptionUpdate(subscription_id=row["id"], usage_reset=bool(row["renewed"]))

    def renew_period(
        self,
        stripe_subscription_id: str,
        current_period_start: datetime,
        current_period_end: datetime | None,
    ) -> SubscriptionUpdate | None:
        """Start a paid-for billing period on an active subscription.

        Uses the same forward-only rule as apply_provider_update, so whichever
        of the invoice and subscription events arrives first performs the
        single reset for a renewal. Returns None if the subscription is unknown.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    WITH previous AS (
                        SELECT id,
                               status = 'active'
                               AND %(period_start)s::timestamptz > current_period_start
                               AS renewed
                        FROM subscriptions
                        WHERE stripe_subscription_id = %(sub_id)s
                        FOR UPDATE
                    )
                    UPDATE subscriptions AS s
                    SET calls_used = CASE WHEN previous.renewed THEN 0 ELSE s.calls_used END,
                        current_period_start = CASE
                            WHEN previous.renewed THEN %(period_start)s::timestamptz
                            ELSE s.current_period_start
                        END,
                        current_period_end = CASE
                            WHEN previous.renewed
                            THEN COALESCE(%(period_end)s::timestamptz, s.current_period_end)
                            ELSE s.current_period_end
                        END,
                        updated_at = CASE WHEN previous.renewed THEN NOW() ELSE s.updated_at END
                    FROM previous
                    WHERE s.id = previous.id
                    RETURNING s.id, previous.renewed
                    """,
                    {
                        "sub_id": stripe_subscription_id,
                        "period_start": current_period_start,
                        "period_end": current_period_end,
                    },
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            return None
        return SubscriptionUpdate(subscription_id=row["id"], usage_reset=bool(row["renewed"]))

    def mark_canceled(self, stripe_subscription_id: str, canceled_at: datetime) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE subscriptions
                    SET status = 'canceled', canceled_at = %s, updated_at = NOW()
                    WHERE stripe_subscription_id = %s
                    """,
                    (canceled_at, stripe_subscription_id),
                )
                found = cur.rowcount > 0
            conn.commit()
        return found

    @staticmethod
    def _to_record(row: dict[str, Any]) -> SubscriptionRecord:
        return SubscriptionRecord(
            id=row["id"],
            user_id=row["user_id"],
            plan=PlanRecord(
                id=row["plan_id"],
                name=row["plan_name"],
                tier=row["plan_tier"],
                billing_period=row["plan_billing_period"],
                call_limit=row["plan_call_limit"],
                price_cents=row["plan_price_cents"],
            ),
            status=row["status"],
            current_period_start=row["current_period_start"],
            current_period_end=row["current_period_end"],
            calls_used=row["calls_used"],
            stripe_subscription_id=row["stripe_subscription_id"],
            cancel_at_period_end=row["cancel_at_period_end"],
            canceled_at=row["canceled_at"],
        )
