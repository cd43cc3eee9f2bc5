"""Pipeline orchestrator: OCR -> analysis -> auto-fill for one document or a batch."""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.analysis.engine import AnalysisEngine
from app.analysis.exceptions import AnalysisFailure
from app.analysis.models import AnalysisResult
from app.autofill.exceptions import AutoFillFailure
from app.autofill.models import AutoFillResult
from app.autofill.resolver import AutoFillResolver
from app.classification.classifier import DocumentClassifier
from app.classification.models import DocumentClassification, ProcessingPlan
from app.classification.planner import plan_processing
from app.config.settings import Settings
from app.database.repositories.documents_repository import DocumentsRepository
from app.database.repositories.processing_results_repository import (
    ProcessingResultsRepository,
)
from app.database.repositories.processing_runs_repository import ProcessingRunsRepository
from app.database.repositories.tax_forms_repository import TaxFormsRepository
from app.llm.factory import LlmFactory
from app.logging.logger import Log
from app.ocr.exceptions import ExtractionFailure
from app.ocr.extractor import TextExtractor
from app.ocr.factory import OcrProviderFactory
from app.ocr.models import OcrResult
from app.processor.exceptions import (
    DocumentAlreadyProcessingError,
    DocumentNotFoundError,
    PipelineFailure,
)
from app.processor.file_loader import FileLoader
from app.processor.models import (
    BatchItem,
    OverallStatus,
    ProcessingError,
    ProcessingOptions,
    ProcessingResult,
    ProcessingStatus,
    Severity,
    Stage,
)

STAGE_WEIGHTS = {"ocr": 0.4, "analysis": 0.4, "autofill": 0.2}

# Fallback progress when a document has no run record
STATUS_PROGRESS = {
    "pending": 0,
    "processing": 25,
    "ocr_completed": 40,
    "analyzing": 60,
    "completed": 100,
    "failed": 0,
}


@dataclass
class _RunState:
    run_token: str
    errors: list[ProcessingError] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)
    summary: list[str] = field(default_factory=list)
    cancelled: bool = False
    ocr_result: OcrResult | None = None
    classification: DocumentClassification | None = None
    plan: ProcessingPlan | None = None
    analysis: AnalysisResult | None = None
    autofill: AutoFillResult | None = None

    def fail(self, stage: Stage, message: str, severity: Severity) -> None:
        self.errors.append(
            ProcessingError(
                stage=stage,
                message=message,
                severity=severity,
                timestamp=datetime.now(timezone.utc),
            )
        )

    def skip(self, stage: Stage) -> None:
        self.stages.append(f"{stage}_skipped")


class PipelineOrchestrator:
    """Runs documents through the pipeline and tracks each run's status."""

    def __init__(
        self,
        *,
        documents: DocumentsRepository,
        runs: ProcessingRunsRepository,
        results: ProcessingResultsRepository,
        file_loader: FileLoader,
        extractor: TextExtractor,
        classifier: DocumentClassifier,
        analysis_engine: AnalysisEngine,
        resolver: AutoFillResolver,
        batch_group_size: int = 3,
    ) -> None:
        self._documents = documents
        self._runs = runs
        self._results = results
        self._file_loader = file_loader
        self._extractor = extractor
        self._classifier = classifier
        self._analysis_engine = analysis_engine
        self._resolver = resolver
        self._batch_group_size = max(1, batch_group_size)

    def process_document(
        self,
        document_id: int,
        file_bytes: bytes,
        mime_type: str,
        options: ProcessingOptions | None = None,
    ) -> ProcessingResult:
        """Run the full pipeline for one document.

        Stage failures are recorded in the result, not raised.

        Raises:
            DocumentAlreadyProcessingError: if a run for the document is in flight.
            PipelineFailure: on an unexpected error; the document is marked failed.
        """
        options = options or ProcessingOptions()
        run_token = self._runs.try_start(document_id)
        if run_token is None:
            raise DocumentAlreadyProcessingError(
                f"Document {document_id} is already being processed"
            )
        Log.info(f"Processing document {document_id} ({mime_type}, {len(file_bytes)} bytes)")
        try:
            return self._run(document_id, run_token, file_bytes, mime_type, options)
        except Exception as exc:
            message = f"Processing failed: {exc}"
            Log.exception("Pipeline failure", document_id=document_id, stage="pipeline")
            self._mark_failed(document_id, message, run_token)
            raise PipelineFailure(message) from exc

    def process_batch(
        self, items: list[BatchItem], options: ProcessingOptions | None = None
    ) -> list[ProcessingResult]:
        """Process documents in fixed-size groups; each group finishes before the next starts.

        Never raises for a single document: its failure becomes a failed result entry.
        """
        groups = partition_batch(items, self._batch_group_size)
        results: list[ProcessingResult] = []
        for index, group in enumerate(groups, start=1):
            Log.info(f"Batch group {index}/{len(groups)}: {len(group)} documents")
            with ThreadPoolExecutor(max_workers=len(group)) as pool:
                futures = [pool.submit(self._process_item, item, options) for item in group]
                for item, future in zip(group, futures):
                    try:
                        results.append(future.result())
                    except Exception as exc:
                        Log.error(f"Batch document failed: {exc}", document_id=item.document_id)
                        if not isinstance(exc, (PipelineFailure, DocumentAlreadyProcessingError)):
                            # failed before a run started, e.g. the stored file is missing
                            self._mark_failed(item.document_id, f"Processing failed: {exc}")
                        results.append(failed_result(item.document_id, exc))
        return results

    def reprocess_document(
        self, document_id: int, options: ProcessingOptions | None = None
    ) -> ProcessingResult:
        """Re-run the pipeline on the stored file.

        The document's own client_id is used unless the options carry one.

        Raises:
            DocumentNotFoundError, FileNotFoundError, UnsupportedStorageDiskError:
                when the stored file cannot be loaded.
        """
        document = self._documents.find_by_id(document_id)
        file_bytes = self._file_loader.load(document)
        options = options or ProcessingOptions()
        if options.client_id is None:
            options = replace(options, client_id=document.client_id)
        return self.process_document(document_id, file_bytes, document.mime_type, options)

    def get_processing_status(self, document_id: int) -> ProcessingStatus:
        run = self._runs.find(document_id)
        if run is not None:
            return ProcessingStatus(
                document_id=document_id,
                status=run.status,
                message=run.message or "",
                progress=run.progress,
                estimated_time_remaining_seconds=(
                    estimate_remaining_seconds(run.started_at, run.progress)
                    if run.status == "processing"
                    else None
                ),
            )

        try:
            document = self._documents.find_by_id(document_id)
        except DocumentNotFoundError:
            return ProcessingStatus(
                document_id=document_id,
                status="unknown",
                message="Document not found",
                progress=0,
            )
        return ProcessingStatus(
            document_id=document_id,
            status=document.processing_status,
            message=document.processing_message or "",
            progress=STATUS_PROGRESS.get(document.processing_status, 0),
        )

    def cancel_processing(self, document_id: int) -> bool:
        """Mark an in-flight run cancelled. Stages already running are not interrupted."""
        cancelled = self._runs.mark_cancelled(document_id)
        if cancelled:
            Log.info(f"Cancellation requested for document {document_id}")
        return cancelled

    def _process_item(
        self, item: BatchItem, options: ProcessingOptions | None
    ) -> ProcessingResult:
        item_options = item.options or options
        if item.file_bytes is None:
            return self.reprocess_document(item.document_id, item_options)
        mime_type = item.mime_type or self._documents.find_by_id(item.document_id).mime_type
        return self.process_document(item.document_id, item.file_bytes, mime_type, item_options)

    def _run(
        self,
        document_id: int,
        run_token: str,
        file_bytes: bytes,
        mime_type: str,
        options: ProcessingOptions,
    ) -> ProcessingResult:
        started = time.monotonic()
        state = _RunState(run_token=run_token)

        self._ocr_stage(state, document_id, file_bytes, mime_type, options)
        if state.ocr_result is not None:
            self._classify(state, state.ocr_result)
        self._analysis_stage(state, document_id, options)
        self._autofill_stage(state, document_id, options)

        self._runs.update_progress(
            document_id, run_token, "finalizing", 95, "Finalizing results"
        )
        status = overall_status(state.errors, state.ocr_result, state.analysis)
        confidence = overall_confidence(state.ocr_result, state.analysis, state.autofill)
        summary = "; ".join(state.summary) or "No stages ran"
        result = ProcessingResult(
            document_id=document_id,
            status=status,
            confidence=confidence,
            stages_completed=state.stages,
            errors=state.errors,
            summary=summary,
            processing_time_ms=int((time.monotonic() - started) * 1000),
            ocr_result=state.ocr_result,
            classification=state.classification,
            processing_plan=state.plan,
            analysis_result=state.analysis,
            autofill_result=state.autofill,
        )

        final = "failed" if status == "failed" else "completed"
        self._close(document_id, run_token, final, summary)
        Log.info(
            f"Document {document_id} finished: {status} "
            f"(confidence {confidence:.2f}, {len(state.errors)} errors)"
        )
        return result

    def _ocr_stage(
        self,
        state: _RunState,
        document_id: int,
        file_bytes: bytes,
        mime_type: str,
        options: ProcessingOptions,
    ) -> None:
        if options.skip_ocr:
            state.skip("ocr")
            return
        self._runs.update_progress(document_id, state.run_token, "ocr", 10, "Extracting text")
        started = time.monotonic()
        try:
            state.ocr_result = self._extractor.extract(document_id, file_bytes, mime_type)
        except ExtractionFailure as exc:
            state.fail("ocr", str(exc), "critical")
            state.summary.append("OCR failed")
            self._record(document_id, "ocr", "failed", started, error_message=str(exc))
            return
        state.stages.append("ocr")
        state.summary.append(
            f"OCR extracted {len(state.ocr_result.text)} characters "
            f"(confidence {state.ocr_result.confidence:.2f})"
        )
        self._record(
            document_id,
            "ocr",
            "completed",
            started,
            payload=state.ocr_result,
            confidence=state.ocr_result.confidence,
        )

    def _classify(self, state: _RunState, ocr_result: OcrResult) -> None:
        state.classification = self._classifier.classify(
            ocr_result.text,
            {
                "page_count": ocr_result.metadata.page_count,
                "language": ocr_result.metadata.language,
            },
        )
        state.plan = plan_processing(state.classification)

    def _analysis_stage(
        self, state: _RunState, document_id: int, options: ProcessingOptions
    ) -> None:
        if self._cancelled(state, document_id, "analysis"):
            return
        if options.skip_analysis or state.ocr_result is None:
            state.skip("analysis")
            return
        self._runs.update_progress(
            document_id, state.run_token, "analysis", 40, "Analyzing document"
        )
        started = time.monotonic()
        try:
            state.analysis = self._analysis_engine.analyze(document_id, state.ocr_result)
        except AnalysisFailure as exc:
            state.fail("analysis", str(exc), "high")
            state.summary.append("Analysis failed")
            self._record(document_id, "analysis", "failed", started, error_message=str(exc))
            return
        state.stages.append("analysis")
        state.summary.append(
            f"Identified {state.analysis.document_type} "
            f"(confidence {state.analysis.confidence:.2f})"
        )
        self._record(
            document_id,
            "analysis",
            "completed",
            started,
            payload=state.analysis,
            confidence=state.analysis.confidence,
        )

    def _autofill_stage(
        self, state: _RunState, document_id: int, options: ProcessingOptions
    ) -> None:
        if self._cancelled(state, document_id, "autofill"):
            return
        if options.skip_autofill:
            state.skip("autofill")
            return
        if state.analysis is None:
            state.fail("autofill", "No analysis result available for auto-fill", "high")
            state.skip("autofill")
            return
        if options.client_id is None:
            state.fail("autofill", "No client identifier available for auto-fill", "medium")
            state.skip("autofill")
            return
        self._runs.update_progress(
            document_id, state.run_token, "autofill", 75, "Filling tax forms"
        )
        started = time.monotonic()
        try:
            state.autofill = self._resolver.auto_fill(
                options.client_id, document_id, state.analysis
            )
        except AutoFillFailure as exc:
            state.fail("autofill", str(exc), "medium")
            state.summary.append("Auto-fill failed")
            self._record(document_id, "autofill", "failed", started, error_message=str(exc))
            return
        if not state.autofill.success:
            message = "; ".join(state.autofill.warnings) or state.autofill.summary
            state.fail("autofill", f"Auto-fill failed: {message}", "medium")
            state.summary.append("Auto-fill failed")
            self._record(
                document_id,
                "autofill",
                "failed",
                started,
                payload=state.autofill,
                error_message=message,
            )
            return
        self._documents.save_autofill_result(document_id, state.autofill)
        state.stages.append("autofill")
        state.summary.append(f"Auto-fill: {state.autofill.summary}")
        self._record(
            document_id,
            "autofill",
            "completed",
            started,
            payload=state.autofill,
            confidence=state.autofill.confidence,
        )

    def _cancelled(self, state: _RunState, document_id: int, stage: Stage) -> bool:
        if not state.cancelled and self._runs.is_cancelled(document_id, state.run_token):
            Log.info(f"Document {document_id} cancelled before {stage}")
            state.cancelled = True
        if state.cancelled:
            state.fail(stage, f"Processing cancelled before {stage}", "low")
            state.skip(stage)
        return state.cancelled

    def _record(
        self,
        document_id: int,
        stage: Stage,
        status: str,
        started: float,
        *,
        payload: Any = None,
        confidence: float | None = None,
        error_message: str | None = None,
    ) -> None:
        self._results.append(
            document_id,
            stage,
            status,
            payload=payload,
            confidence=confidence,
            duration_ms=int((time.monotonic() - started) * 1000),
            error_message=error_message,
        )

    def _close(self, document_id: int, run_token: str, status: str, message: str) -> None:
        """Finish the run; the document is only written while this run still owns it."""
        finished = self._runs.finish(document_id, run_token, status, message)
        if finished or self._runs.owns(document_id, run_token):
            self._documents.finish_processing(document_id, status, message)
        else:
            Log.warning(
                "Run was replaced by a newer one, leaving the document to it",
                document_id=document_id,
            )

    def _mark_failed(
        self, document_id: int, message: str, run_token: str | None = None
    ) -> None:
        """Mark the document failed; without a run token no run record is touched."""
        try:
            if run_token is None:
                self._documents.finish_processing(document_id, "failed", message)
            else:
                self._close(document_id, run_token, "failed", message)
        except Exception as exc:
            Log.error(f"Could not mark document {document_id} failed: {exc}")


def partition_batch(items: list[BatchItem], group_size: int) -> list[list[BatchItem]]:
    """Split items into consecutive groups of group_size (last group may be smaller)."""
    return [items[i : i + group_size] for i in range(0, len(items), group_size)]


def overall_status(
    errors: list[ProcessingError],
    ocr_result: OcrResult | None,
    analysis: AnalysisResult | None,
) -> OverallStatus:
    if any(e.severity == "critical" for e in errors):
        return "failed"
    if errors:
        return "partial"
    if ocr_result is not None and analysis is not None:
        return "success"
    return "partial"


def overall_confidence(
    ocr_result: OcrResult | None,
    analysis: AnalysisResult | None,
    autofill: AutoFillResult | None,
) -> float:
    """Weighted mean over the stages that produced a result.

    An auto-fill that wrote no form carries no confidence.
    """
    if autofill is not None and not autofill.success:
        autofill = None
    parts = [
        (STAGE_WEIGHTS["ocr"], ocr_result.confidence if ocr_result else None),
        (STAGE_WEIGHTS["analysis"], analysis.confidence if analysis else None),
        (STAGE_WEIGHTS["autofill"], autofill.confidence if autofill else None),
    ]
    ran = [(weight, value) for weight, value in parts if value is not None]
    if not ran:
        return 0.0
    return sum(weight * value for weight, value in ran) / sum(weight for weight, _ in ran)


def estimate_remaining_seconds(started_at: datetime | None, progress: int) -> int | None:
    """Linear extrapolation: elapsed * (100 - progress) / progress."""
    if started_at is None or progress <= 0:
        return None
    if progress >= 100:
        return 0
    elapsed = (datetime.now(started_at.tzinfo) - started_at).total_seconds()
    return max(0, int(elapsed * (100 - progress) / progress))


def failed_result(document_id: int, exc: Exception) -> ProcessingResult:
    return ProcessingResult(
        document_id=document_id,
        status="failed",
        confidence=0.0,
        errors=[
            ProcessingError(
                stage="ocr",
                message=str(exc),
                severity="critical",
                timestamp=datetime.now(timezone.utc),
            )
        ],
        summary=f"Processing failed: {exc}",
    )


def build_orchestrator(settings: Settings, files_root: Path | None = None) -> PipelineOrchestrator:
    """Build a PipelineOrchestrator with all required adapters."""
    documents = DocumentsRepository()
    completer = LlmFactory.create(settings)
    extractor = TextExtractor(
        documents,
        general=OcrProviderFactory.create_general(settings),
        structured=OcrProviderFactory.create_structured(settings),
    )
    resolver = AutoFillResolver(
        tax_forms=TaxFormsRepository(),
        tax_year=settings.autofill_tax_year,
        max_attempts=settings.autofill_merge_max_attempts,
        protect_user_fields=settings.autofill_protect_user_fields,
    )
    return PipelineOrchestrator(
        documents=documents,
        runs=ProcessingRunsRepository(settings.processing_stale_after_seconds),
        results=ProcessingResultsRepository(),
        file_loader=FileLoader(files_root=files_root or settings.files_root),
        extractor=extractor,
        classifier=DocumentClassifier(completer),
        analysis_engine=AnalysisEngine(completer=completer, documents=documents),
        resolver=resolver,
        batch_group_size=settings.pipeline_batch_group_size,
    )
