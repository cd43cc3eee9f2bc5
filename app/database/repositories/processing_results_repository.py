from typing import Any

from app.database.connection import get_connection
from app.database.serialization import jsonb


class ProcessingResultsRepository:
    """Append-only writes to the document_processing_results table."""

    def append(
        self,
        document_id: int,
        stage: str,
        status: str,
        *,
        payload: Any = None,
        confidence: float | None = None,
        duration_ms: int | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record the outcome of one pipeline stage."""
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO document_processing_results (
                    document_id, stage, status, payload, confidence,
                    duration_ms, error_message, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, NOW())
                """,
                (
                    document_id,
                    stage,
                    status,
                    jsonb(payload) if payload is not None else None,
                    confidence,
                    duration_ms,
                    error_message,
                ),
            )
            conn.commit()
