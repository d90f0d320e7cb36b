from psycopg.rows import dict_row

from visacheck.database.connection import get_connection
from visacheck.database.models import ApiKeyRecord


class ApiKeyRepository:
    """Database operations for the api_keys table."""

    def find_active(self, key: str) -> ApiKeyRecord | None:
        """Find an active API key by its value."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, key, name, last_used_at
                    FROM api_keys
                    WHERE key = %s AND is_active
                    """,
                    (key,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return ApiKeyRecord(
            id=row["id"],
            user_id=row["user_id"],
            key=row["key"],
            name=row["name"],
            last_used_at=row["last_used_at"],
        )

    def touch_last_used(self, api_key_id: int) -> None:
        with get_connection() as conn:
            conn.execute(
                "UPDATE api_keys SET last_used_at = NOW() WHERE id = %s",
                (api_key_id,),
            )
            conn.commit()
