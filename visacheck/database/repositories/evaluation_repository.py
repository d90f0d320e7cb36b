from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from visacheck.analysis.models import EvaluationResult
from visacheck.database.connection import get_connection
from visacheck.database.models import EvaluationRecord, StoredDocument
from visacheck.evaluation.exceptions import EvaluationNotFoundError

_COLUMNS = "id, user_id, country, visa_type, documents, status, result, created_at, processed_at"
_LIST_COLUMNS = (
    "id, user_id, country, visa_type, documents, status, "
    "result - 'rawAnalysis' AS result, created_at, processed_at"
)


class EvaluationRepository:
    """Database operations for the evaluations table."""

    def create(
        self,
        user_id: int,
        country: str,
        visa_type: str,
        status: str = "pending",
    ) -> EvaluationRecord:
        """Insert a new evaluation row with an empty documents array."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                row = self._insert(cur, user_id, country, visa_type, status)
            conn.commit()
        return self._to_record(row)

    def create_within_limit(
        self,
        user_id: int,
        country: str,
        visa_type: str,
        *,
        limit: int,
        since: datetime,
        status: str = "pending",
    ) -> EvaluationRecord | None:
        """Insert an evaluation only if the user has fewer than ``limit`` rows since ``since``.

        A per-user advisory lock serializes concurrent submissions, so the
        count and the insert act as one step. Returns None when the limit is
        already reached.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT pg_advisory_xact_lock(%s)", (user_id,))
                used = self._count_since(cur, user_id, since)
                if used >= limit:
                    conn.rollback()
                    return None
                row = self._insert(cur, user_id, country, visa_type, status)
            conn.commit()
        return self._to_record(row)

    def count_created_since(self, user_id: int, since: datetime) -> int:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                return self._count_since(cur, user_id, since)

    def update_documents(self, evaluation_id: int, documents: list[StoredDocument]) -> None:
        """Persist the documents array.

        Raises:
            EvaluationNotFoundError: if no evaluation with this ID exists.
        """
        payload = [doc.to_json() for doc in documents]
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE evaluations SET documents = %s WHERE id = %s",
                    (Jsonb(payload), evaluation_id),
                )
                if cur.rowcount == 0:
                    raise EvaluationNotFoundError(f"Evaluation {evaluation_id} not found")
            conn.commit()

    def mark_processing(self, evaluation_id: int) -> None:
        """Move a pending evaluation to processing.

        Raises:
            EvaluationNotFoundError: if no pending evaluation with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE evaluations SET status = 'processing' "
                    "WHERE id = %s AND status = 'pending'",
                    (evaluation_id,),
                )
                if cur.rowcount == 0:
                    raise EvaluationNotFoundError(f"Pending evaluation {evaluation_id} not found")
            conn.commit()

    def mark_completed(self, evaluation_id: int, result: EvaluationResult) -> EvaluationRecord:
        return self._finish(evaluation_id, "completed", result)

    def mark_failed(self, evaluation_id: int, result: EvaluationResult) -> EvaluationRecord:
        return self._finish(evaluation_id, "failed", result)

    def find_for_user(self, evaluation_id: int, user_id: int) -> EvaluationRecord:
        """Find an evaluation owned by ``user_id``.

        Raises:
            EvaluationNotFoundError: if it does not exist or has another owner.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM evaluations WHERE id = %s AND user_id = %s",
                    (evaluation_id, user_id),
                )
                row = cur.fetchone()

        if row is None:
            raise EvaluationNotFoundError("Evaluation not found")
        return self._to_record(row)

    def list_for_user(
        self,
        user_id: int,
        *,
        status: str | None = None,
        country: str | None = None,
        visa_type: str | None = None,
        limit: int = 20,
        skip: int = 0,
    ) -> tuple[list[EvaluationRecord], int]:
        """Return one page of the user's evaluations (newest first) and the total count.

        The raw model reply is left out of listed results.
        """
        clauses = ["user_id = %s"]
        params: list[Any] = [user_id]
        for column, value in (("status", status), ("country", country), ("visa_type", visa_type)):
            if value:
                clauses.append(f"{column} = %s")
                params.append(value)
        where = " AND ".join(clauses)

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_LIST_COLUMNS}
                    FROM evaluations
                    WHERE {where}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s OFFSET %s
                    """,
                    (*params, limit, skip),
                )
                rows = cur.fetchall()
                cur.execute(f"SELECT COUNT(*) AS total FROM evaluations WHERE {where}", params)
                total_row = cur.fetchone()

        total = int(total_row["total"]) if total_row else 0
        return [self._to_record(row) for row in rows], total

    def delete_for_user(self, evaluation_id: int, user_id: int) -> EvaluationRecord:
        """Delete an evaluation owned by ``user_id`` and return the deleted row.

        Stored document objects are not touched.

        Raises:
            EvaluationNotFoundError: if it does not exist or has another owner.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    DELETE FROM evaluations
                    WHERE id = %s AND user_id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (evaluation_id, user_id),
                )
                row = cur.fetchone()
                if row is None:
                    raise EvaluationNotFoundError("Evaluation not found")
            conn.commit()
        return self._to_record(row)

    def _finish(
        self,
        evaluation_id: int,
        status: str,
        result: EvaluationResult,
    ) -> EvaluationRecord:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE evaluations
                    SET status = %s, result = %s, processed_at = NOW()
                    WHERE id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (status, Jsonb(result.to_dict()), evaluation_id),
                )
                row = cur.fetchone()
                if row is None:
                    raise EvaluationNotFoundError(f"Evaluation {evaluation_id} not found")
            conn.commit()
        return self._to_record(row)

    @staticmethod
    def _insert(
        cur: psycopg.Cursor[dict[str, Any]],
        user_id: int,
        country: str,
        visa_type: str,
        status: str,
    ) -> dict[str, Any]:
        cur.execute(
            f"""
            INSERT INTO evaluations (user_id, country, visa_type, status, documents)
            VALUES (%s, %s, %s, %s, '[]'::jsonb)
            RETURNING {_COLUMNS}
            """,
            (user_id, country, visa_type, status),
        )
        row = cur.fetchone()
        if row is None:
            raise RuntimeError("INSERT INTO evaluations returned no row")
        return row

    @staticmethod
    def _count_since(
        cur: psycopg.Cursor[dict[str, Any]],
        user_id: int,
        since: datetime,
    ) -> int:
        cur.execute(
            """
            SELECT COUNT(*) AS used
            FROM evaluations
            WHERE user_id = %s AND created_at >= %s
            """,
            (user_id, since),
        )
        row = cur.fetchone()
        return int(row["used"]) if row else 0

    @staticmethod
    def _to_record(row: dict[str, Any]) -> EvaluationRecord:
        result = row.get("result")
        return EvaluationRecord(
            id=row["id"],
            user_id=row["user_id"],
            country=row["country"],
            visa_type=row["visa_type"],
            status=row["status"],
            documents=[StoredDocument.from_json(d) for d in row.get("documents") or []],
            result=EvaluationResult.from_dict(result) if result else None,
            created_at=row.get("created_at"),
            processed_at=row.get("processed_at"),
        )
