from typing import Any

import psycopg
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.models import DocumentRecord, DocumentStatus
from app.database.serialization import jsonb
from app.processor.exceptions import DocumentNotFoundError

_DOCUMENT_COLUMNS = """
    id, client_id, mime_type, storage_disk, storage_path,
    processing_status, processing_message, document_type,
    processing_started_at, processing_completed_at, created_at, updated_at
"""


class DocumentsRepository:
    """Database operations for the documents table."""

    def find_by_id(self, document_id: int) -> DocumentRecord:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _to_record(row)

    def claim_pending(self, conn: psycopg.Connection[Any], limit: int) -> list[DocumentRecord]:
        """Claim up to `limit` pending documents using SELECT FOR UPDATE SKIP LOCKED.

        Claimed rows move to 'processing' before the transaction commits, so
        another worker never picks the same document.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS}
                FROM documents
                WHERE processing_status = 'pending'
                ORDER BY created_at
                LIMIT %s
                FOR UPDATE SKIP LOCKED
                """,
                (limit,),
            )
            rows = cur.fetchall()

        if not rows:
            return []

        conn.execute(
            """
            UPDATE documents
            SET processing_status = 'processing',
                processing_message = 'Queued for processing',
                updated_at = NOW()
            WHERE id = ANY(%s)
            """,
            ([row["id"] for row in rows],),
        )
        conn.commit()

        records = [_to_record(row) for row in rows]
        for record in records:
            record.processing_status = "processing"
        return records

    def update_status(
        self, document_id: int, status: DocumentStatus, message: str | None = None
    ) -> None:
        """Set processing status and message.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET processing_status = %s,
                        processing_message = %s,
                        processing_started_at = CASE
                            WHEN %s THEN NOW()
                            ELSE processing_started_at
                        END,
                        updated_at = NOW()
                    WHERE id = %s
                    """,
                    (status, message, status == "processing", document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def save_ocr_result(self, document_id: int, ocr_result: Any) -> None:
        """Persist OCR text, confidence and the full OCR payload; status -> ocr_completed."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET ocr_text = %s,
                        ocr_confidence = %s,
                        ocr_data = %s,
                        processing_status = 'ocr_completed',
                        processing_message = 'Text extraction completed',
                        updated_at = NOW()
                    WHERE id = %s
                    """,
                    (ocr_result.text, ocr_result.confidence, jsonb(ocr_result), document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def save_analysis_result(self, document_id: int, analysis: Any) -> None:
        """Persist the analysis payload, detected type and extracted data."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET document_type = %s,
                        ai_analysis_result = %s,
                        ai_confidence = %s,
                        extracted_data = %s,
                        processing_message = 'Document analysis completed',
                        updated_at = NOW()
                    WHERE id = %s
                    """,
                    (
                        analysis.document_type,
                        jsonb(analysis),
                        analysis.confidence,
                        jsonb(analysis.extracted_data),
                        document_id,
                    ),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def save_autofill_result(self, document_id: int, autofill: Any) -> None:
        """Persist the auto-fill outcome for the document."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET autofill_result = %s, updated_at = NOW()
                    WHERE id = %s
                    """,
                    (jsonb(autofill), document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()

    def finish_processing(
        self, document_id: int, status: DocumentStatus, message: str
    ) -> None:
        """Set the final status and completion timestamp of a pipeline run."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET processing_status = %s,
                        processing_message = %s,
                        processing_completed_at = NOW(),
                        updated_at = NOW()
                    WHERE id = %s
                    """,
                    (status, message, document_id),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
            conn.commit()


def _to_record(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=row["id"],
        client_id=row["client_id"],
        mime_type=row["mime_type"],
        storage_disk=row["storage_disk"],
        storage_path=row["storage_path"],
        processing_status=row["processing_status"],
        processing_message=row["processing_message"],
        document_type=row["document_type"],
        processing_started_at=row["processing_started_at"],
        processing_completed_at=row["processing_completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
