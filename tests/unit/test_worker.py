from unittest.mock import MagicMock, patch

from app.database.models import DocumentRecord
from app.processor.models import BatchItem, ProcessingResult
from app.worker.worker import Worker


def _make_worker() -> tuple[Worker, MagicMock, MagicMock]:
    """Create a Worker with mocked dependencies."""
    mock_repo = MagicMock()
    mock_orchestrator = MagicMock()
    mock_orchestrator.process_batch.return_value = []
    settings = MagicMock(worker_poll_interval_seconds=1, worker_batch_limit=9)
    worker = Worker(mock_repo, mock_orchestrator, settings)
    return worker, mock_repo, mock_orchestrator


def _make_document(document_id: int = 1) -> DocumentRecord:
    return DocumentRecord(
        id=document_id,
        client_id=501,
        mime_type="application/pdf",
        storage_disk="local",
        storage_path=f"documents/{document_id}.pdf",
        processing_status="processing",
    )


class TestWorkerDispatch:
    def test_dispatches_claimed_documents_as_batch(self) -> None:
        worker, _repo, mock_orchestrator = _make_worker()
        documents = [_make_document(1), _make_document(2)]

        with patch.object(
            worker, "_try_claim_documents", side_effect=[documents, KeyboardInterrupt]
        ):
            worker.run()

        mock_orchestrator.process_batch.assert_called_once_with(
            [
                BatchItem(document_id=1, mime_type="application/pdf"),
                BatchItem(document_id=2, mime_type="application/pdf"),
            ]
        )

    def test_dispatches_multiple_batches(self) -> None:
        worker, _repo, mock_orchestrator = _make_worker()

        with patch.object(
            worker,
            "_try_claim_documents",
            side_effect=[[_make_document(1)], [_make_document(2)], KeyboardInterrupt],
        ):
            worker.run()

        assert mock_orchestrator.process_batch.call_count == 2

    def test_stops_after_max_batches(self) -> None:
        worker, _repo, mock_orchestrator = _make_worker()

        with patch.object(worker, "_try_claim_documents", return_value=[_make_document()]):
            worker.run(max_batches=2)

        assert mock_orchestrator.process_batch.call_count == 2

    def test_dispatch_returns_batch_results(self) -> None:
        worker, _repo, mock_orchestrator = _make_worker()
        results = [ProcessingResult(document_id=1, status="failed", confidence=0.0)]
        mock_orchestrator.process_batch.return_value = results

        assert worker._dispatch([_make_document(1)]) == results


class TestWorkerSleep:
    def test_sleeps_when_nothing_claimed(self) -> None:
        worker, _repo, _orchestrator = _make_worker()

        with (
            patch.object(worker, "_try_claim_documents", side_effect=[[], KeyboardInterrupt]),
            patch("app.worker.worker.time.sleep") as mock_sleep,
        ):
            worker.run()

        mock_sleep.assert_called_once_with(1)


class TestWorkerClaim:
    @patch("app.worker.worker.get_connection")
    def test_claims_with_batch_limit(self, mock_get_conn: MagicMock) -> None:
        worker, mock_repo, _orchestrator = _make_worker()
        mock_conn = MagicMock()
        mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
        mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
        mock_repo.claim_pending.return_value = [_make_document()]

        claimed = worker._try_claim_documents()

        mock_repo.claim_pending.assert_called_once_with(mock_conn, 9)
        assert [d.id for d in claimed] == [1]

    @patch("app.worker.worker.get_connection", side_effect=RuntimeError("db down"))
    def test_database_error_returns_empty(self, _mock_get_conn: MagicMock) -> None:
        worker, _repo, _orchestrator = _make_worker()
        assert worker._try_claim_documents() == []


class TestWorkerShutdown:
    def test_handles_keyboard_interrupt(self) -> None:
        worker, _repo, _orchestrator = _make_worker()

        with patch.object(worker, "_try_claim_documents", side_effect=KeyboardInterrupt):
            worker.run()  # Should not raise
