import time

from app.config.settings import Settings
from app.database.connection import get_connection
from app.database.models import DocumentRecord
from app.database.repositories.documents_repository import DocumentsRepository
from app.logging.logger import Log
from app.processor.models import BatchItem, ProcessingResult
from app.processor.orchestrator import PipelineOrchestrator


class Worker:
    """Poll loop: sleep -> claim pending documents -> process them as a batch."""

    def __init__(
        self,
        documents_repo: DocumentsRepository,
        orchestrator: PipelineOrchestrator,
        settings: Settings,
    ) -> None:
        self._documents_repo = documents_repo
        self._orchestrator = orchestrator
        self._settings = settings

    def run(self, max_batches: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_batches is set, stop after processing that many batches (for testing).
        """
        Log.info("Worker started, polling for pending documents")
        batches_done = 0
        try:
            while True:
                if max_batches is not None and batches_done >= max_batches:
                    break
                documents = self._try_claim_documents()
                if documents:
                    self._dispatch(documents)
                    batches_done += 1
                else:
                    Log.debug("No pending documents, sleeping")
                    time.sleep(self._settings.worker_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _dispatch(self, documents: list[DocumentRecord]) -> list[ProcessingResult]:
        """Run claimed documents through the pipeline from their stored files."""
        items = [BatchItem(document_id=doc.id, mime_type=doc.mime_type) for doc in documents]
        results = self._orchestrator.process_batch(items)
        failed = sum(1 for r in results if r.status == "failed")
        Log.info(f"Batch of {len(results)} documents done, {failed} failed")
        return results

    def _try_claim_documents(self) -> list[DocumentRecord]:
        """Attempt to claim pending documents. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._documents_repo.claim_pending(
                    conn, self._settings.worker_batch_limit
                )
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return []
