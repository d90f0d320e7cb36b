from psycopg.rows import dict_row

from visacheck.database.connection import get_connection
from visacheck.database.models import PlanRecord


class PlanRepository:
    """Database operations for the plans table."""

    def find_free_plan(self) -> PlanRecord | None:
        """Return the active monthly free plan, if one is configured."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, name, tier, billing_period, call_limit, price_cents
                    FROM plans
                    WHERE tier = 'free' AND billing_period = 'monthly' AND is_active
                    ORDER BY id
                    LIMIT 1
                    """
                )
                row = cur.fetchone()

        if row is None:
            return None
        return PlanRecord(
            id=row["id"],
            name=row["name"],
            tier=row["tier"],
            billing_period=row["billing_period"],
            call_limit=row["call_limit"],
            price_cents=row["price_cents"],
        )
