from typing import Any

import pytest

from app.analysis.models import AnalysisResult, W2Data
from app.database.connection import get_connection
from app.database.repositories.documents_repository import DocumentsRepository
from app.processor.exceptions import DocumentNotFoundError


def _fetch(db_conn: Any, document_id: int, columns: str) -> tuple:
    with db_conn.cursor() as cur:
        cur.execute(f"SELECT {columns} FROM documents WHERE id = %s", (document_id,))
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return row


@pytest.mark.integration
class TestDocumentsRepositoryFindById:
    def test_returns_seeded_document(self, seed_document: int) -> None:
        record = DocumentsRepository().find_by_id(seed_document)
        assert record.id == seed_document
        assert record.client_id == 501
        assert record.processing_status == "pending"
        assert record.storage_path == "documents/w2.pdf"

    def test_raises_for_missing_document(self, integration_pool: None) -> None:
        with pytest.raises(DocumentNotFoundError):
            DocumentsRepository().find_by_id(-1)


@pytest.mark.integration
class TestDocumentsRepositoryClaimPending:
    def test_claims_pending_document_and_marks_processing(
        self, seed_document: int, db_conn: Any
    ) -> None:
        repo = DocumentsRepository()
        with get_connection() as conn:
            claimed = repo.claim_pending(conn, limit=1000)

        assert seed_document in [record.id for record in claimed]
        assert all(record.processing_status == "processing" for record in claimed)
        assert _fetch(db_conn, seed_document, "processing_status")[0] == "processing"

    def test_skips_documents_not_pending(self, make_document: Any) -> None:
        document_id = make_document(status="completed")
        with get_connection() as conn:
            claimed = DocumentsRepository().claim_pending(conn, limit=1000)
        assert document_id not in [record.id for record in claimed]


@pytest.mark.integration
class TestDocumentsRepositoryWrites:
    def test_update_status_sets_started_at_for_processing(
        self, seed_document: int, db_conn: Any
    ) -> None:
        DocumentsRepository().update_status(seed_document, "processing", "Starting")
        status, message, started_at = _fetch(
            db_conn, seed_document, "processing_status, processing_message, processing_started_at"
        )
        assert status == "processing"
        assert message == "Starting"
        assert started_at is not None

    def test_update_status_raises_for_missing_document(self, integration_pool: None) -> None:
        with pytest.raises(DocumentNotFoundError):
            DocumentsRepository().update_status(-1, "failed", "nope")

    def test_save_analysis_result_writes_type_and_payload(
        self, seed_document: int, db_conn: Any
    ) -> None:
        analysis = AnalysisResult(
            document_type="W-2",
            confidence=0.85,
            extracted_data=W2Data(wages=60000.0, federal_tax_withheld=8000.0),
            validation_results=[],
            insights=[],
            recommendations=[],
            processing_time_ms=12,
        )
        DocumentsRepository().save_analysis_result(seed_document, analysis)

        document_type, ai_confidence, extracted = _fetch(
            db_conn, seed_document, "document_type, ai_confidence, extracted_data"
        )
        assert document_type == "W-2"
        assert ai_confidence == pytest.approx(0.85)
        assert extracted["kind"] == "w2"
        assert extracted["wages"] == 60000.0

    def test_finish_processing_sets_completed_at(self, seed_document: int, db_conn: Any) -> None:
        DocumentsRepository().finish_processing(seed_document, "failed", "OCR failed")
        status, completed_at = _fetch(
            db_conn, seed_document, "processing_status, processing_completed_at"
        )
        assert status == "failed"
        assert completed_at is not None
