from psycopg.types.json import Jsonb

from visacheck.database.connection import get_connection
from visacheck.database.models import ApiUsageEntry


class ApiUsageRepository:
    """Append-only audit log of API-key-authenticated calls."""

    def record(self, entry: ApiUsageEntry) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO api_usage
                    (user_id, api_key, endpoint, method, status_code, success,
                     response_time_ms, error_message, metadata, ip_address, user_agent)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    entry.user_id,
                    entry.api_key,
                    entry.endpoint,
                    entry.method,
                    entry.status_code,
                    entry.success,
                    entry.response_time_ms,
                    entry.error_message,
                    Jsonb(entry.metadata),
                    entry.ip_address,
                    entry.user_agent,
                ),
            )
            conn.commit()

    def purge_expired(self, retention_days: int) -> int:
        """Delete rows older than ``retention_days``. Returns the number removed."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM api_usage
                    WHERE timestamp < NOW() - make_interval(days => %s)
                    """,
                    (retention_days,),
                )
                removed = cur.rowcount
            conn.commit()
        return removed
