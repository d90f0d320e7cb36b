import os
import uuid
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import psycopg
import pytest

from visacheck.config.settings import Settings
from visacheck.database.connection import apply_schema, close_pool, get_connection, init_pool
from visacheck.database.models import SubscriptionRecord
from visacheck.database.repositories.subscription_repository import SubscriptionRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "visacheck_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings, max_size=20)
        apply_schema()
    except psycopg.Error as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a scratch database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, int]], None, None]:
    cleanup: list[tuple[str, int]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            # users cascade to api_keys, subscriptions, evaluations and api_usage
            for table, row_id in cleanup:
                if table == "users":
                    cur.execute("DELETE FROM users WHERE id = %s", (row_id,))
            for table, row_id in cleanup:
                if table == "plans":
                    cur.execute("DELETE FROM plans WHERE id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def seed_user(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, int]],
) -> int:
    with db_conn.cursor() as cur:
        cur.execute(
            "INSERT INTO users (email, name) VALUES (%s, %s) RETURNING id",
            (f"it-{uuid.uuid4()}@example.com", "Integration Test"),
        )
        row = cur.fetchone()
        assert row is not None
        user_id = row[0]
    db_conn.commit()
    integration_cleanup.append(("users", user_id))
    return user_id


@pytest.fixture
def seed_api_key(db_conn: psycopg.Connection[Any], seed_user: int) -> str:
    key = f"vk_test_{uuid.uuid4().hex}"
    with db_conn.cursor() as cur:
        cur.execute(
            "INSERT INTO api_keys (user_id, key, name) VALUES (%s, %s, %s)",
            (seed_user, key, "integration"),
        )
    db_conn.commit()
    return key


def _insert_plan(
    db_conn: psycopg.Connection[Any],
    cleanup: list[tuple[str, int]],
    call_limit: int,
) -> int:
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO plans (name, tier, price_cents, billing_period, call_limit, is_active)
            VALUES (%s, 'pro', 2900, 'monthly', %s, FALSE)
            RETURNING id
            """,
            (f"Integration Pro {uuid.uuid4().hex[:8]}", call_limit),
        )
        row = cur.fetchone()
        assert row is not None
        plan_id = row[0]
    db_conn.commit()
    cleanup.append(("plans", plan_id))
    return plan_id


@pytest.fixture
def seed_subscription(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, int]],
    seed_user: int,
) -> SubscriptionRecord:
    """Active pro subscription with a 10-call limit, half of the period elapsed."""
    plan_id = _insert_plan(db_conn, integration_cleanup, call_limit=10)
    now = datetime.now(UTC)
    stripe_id = f"sub_it_{uuid.uuid4().hex[:12]}"
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO subscriptions
                (user_id, plan_id, stripe_customer_id, stripe_subscription_id, status,
                 current_period_start, current_period_end, calls_used)
            VALUES (%s, %s, %s, %s, 'active', %s, %s, 0)
            """,
            (
                seed_user,
                plan_id,
                "cus_integration",
                stripe_id,
                now - timedelta(days=15),
                now + timedelta(days=15),
            ),
        )
    db_conn.commit()
    record = SubscriptionRepository().find_by_stripe_id(stripe_id)
    assert record is not None
    return record
