import uuid

from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.models import ProcessingRunRecord


class ProcessingRunsRepository:
    """Run-tracking status store, one row per document (processing_runs table).

    A row in 'processing' acts as the document's run lock. Each run gets a
    run_token from try_start; progress and finish updates only touch the row
    while it still carries that token and is in 'processing', so neither a
    cancellation nor a newer run is overwritten by an older one.
    """

    def __init__(self, stale_after_seconds: int = 900) -> None:
        self._stale_after_seconds = stale_after_seconds

    def try_start(self, document_id: int) -> str | None:
        """Start a run unless another one is in flight and not stale.

        Returns:
            The new run's token when this caller now owns the run, else None.
        """
        run_token = uuid.uuid4().hex
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO processing_runs (
                        document_id, run_token, status, stage, progress, message,
                        started_at, updated_at, completed_at
                    )
                    VALUES (%s, %s, 'processing', 'queued', 0, 'Processing started',
                            NOW(), NOW(), NULL)
                    ON CONFLICT (document_id) DO UPDATE
                    SET run_token = EXCLUDED.run_token,
                        status = 'processing',
                        stage = 'queued',
                        progress = 0,
                        message = EXCLUDED.message,
                        started_at = NOW(),
                        updated_at = NOW(),
                        completed_at = NULL
                    WHERE processing_runs.status <> 'processing'
                       OR processing_runs.updated_at
                          < NOW() - make_interval(secs => %s)
                    """,
                    (document_id, run_token, float(self._stale_after_seconds)),
                )
                started = cur.rowcount == 1
            conn.commit()
        return run_token if started else None

    def update_progress(
        self, document_id: int, run_token: str, stage: str, progress: int, message: str
    ) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET stage = %s, progress = %s, message = %s, updated_at = NOW()
                    WHERE document_id = %s AND run_token = %s AND status = 'processing'
                    """,
                    (stage, progress, message, document_id, run_token),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def finish(self, document_id: int, run_token: str, status: str, message: str) -> bool:
        """Close a run as 'completed' or 'failed'."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET status = %s,
                        stage = 'done',
                        progress = 100,
                        message = %s,
                        updated_at = NOW(),
                        completed_at = NOW()
                    WHERE document_id = %s AND run_token = %s AND status = 'processing'
                    """,
                    (status, message, document_id, run_token),
                )
                finished = cur.rowcount == 1
            conn.commit()
        return finished

    def mark_cancelled(self, document_id: int) -> bool:
        """Cancel the document's run if it is still in flight.

        Returns:
            False when there is no run or it already completed, failed or was cancelled.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET status = 'cancelled',
                        message = 'Processing cancelled',
                        updated_at = NOW(),
                        completed_at = NOW()
                    WHERE document_id = %s
                      AND status NOT IN ('completed', 'failed', 'cancelled')
                    """,
                    (document_id,),
                )
                cancelled = cur.rowcount == 1
            conn.commit()
        return cancelled

    def is_cancelled(self, document_id: int, run_token: str) -> bool:
        """True when the run was cancelled or a newer run has replaced it."""
        row = self._fetch_token_and_status(document_id)
        return row is None or row[0] != run_token or row[1] == "cancelled"

    def owns(self, document_id: int, run_token: str) -> bool:
        """True while no newer run has taken the document's record."""
        row = self._fetch_token_and_status(document_id)
        return row is not None and row[0] == run_token

    def find(self, document_id: int) -> ProcessingRunRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT document_id, run_token, status, stage, progress, message,
                           started_at, updated_at, completed_at
                    FROM processing_runs
                    WHERE document_id = %s
                    """,
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return ProcessingRunRecord(
            document_id=row["document_id"],
            status=row["status"],
            stage=row["stage"],
            progress=row["progress"],
            message=row["message"],
            run_token=row["run_token"],
            started_at=row["started_at"],
            updated_at=row["updated_at"],
            completed_at=row["completed_at"],
        )

    def _fetch_token_and_status(self, document_id: int) -> tuple[str, str] | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT run_token, status FROM processing_runs WHERE document_id = %s",
                    (document_id,),
                )
                row = cur.fetchone()
        return None if row is None else (row[0], row[1])
