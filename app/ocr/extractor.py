"""Text extraction stage: provider call, normalization and post-processing."""

import time

from app.database.repositories.documents_repository import DocumentsRepository
from app.logging.logger import Log
from app.ocr.base import BaseOcrProvider
from app.ocr.detectors import (
    blend_confidence,
    detect_form_fields,
    detect_language,
    detect_tables,
)
from app.ocr.exceptions import ExtractionFailure, OcrProviderError
from app.ocr.models import OcrMetadata, OcrResult, RawExtraction


class TextExtractor:
    """Produces an OcrResult for a document and records it on the document row.

    Form-like files (PDF, TIFF) go through the structured provider when it is
    configured and able to read them; everything else, and structured
    extractions that come back without any text, go through the general one.
    """

    STRUCTURED_MIME_TYPES = frozenset({"application/pdf", "image/tiff"})

    def __init__(
        self,
        documents: DocumentsRepository,
        general: BaseOcrProvider,
        structured: BaseOcrProvider | None = None,
    ) -> None:
        self._documents = documents
        self._general = general
        self._structured = structured

    def extract(self, document_id: int, file_bytes: bytes, mime_type: str) -> OcrResult:
        """Run OCR for one document.

        Raises:
            ExtractionFailure: when the provider fails; the document is
                marked 'failed' with the provider's message first.
        """
        self._documents.update_status(document_id, "processing", "Extracting text")
        started = time.monotonic()
        try:
            raw = self._recognize(document_id, file_bytes, mime_type)
        except OcrProviderError as exc:
            Log.error(f"OCR failed: {exc}", document_id=document_id, stage="ocr")
            self._documents.update_status(
                document_id, "failed", f"OCR processing failed: {exc}"
            )
            raise ExtractionFailure(str(exc)) from exc

        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = build_ocr_result(raw, elapsed_ms)
        self._documents.save_ocr_result(document_id, result)
        Log.info(
            f"OCR complete for document {document_id}: {len(result.text)} chars, "
            f"confidence {result.confidence:.2f}, provider {raw.provider}"
        )
        return result

    def _recognize(self, document_id: int, file_bytes: bytes, mime_type: str) -> RawExtraction:
        structured = self._structured_for(mime_type)
        if structured is not None:
            raw = structured.recognize(file_bytes, mime_type)
            if raw.text.strip() or not self._general.is_configured():
                return raw
            Log.info(
                f"Structured extraction returned no text for document {document_id}, "
                f"falling back to {self._general.name}"
            )
        return self._general.recognize(file_bytes, mime_type)

    def _structured_for(self, mime_type: str) -> BaseOcrProvider | None:
        provider = self._structured
        if (
            provider is None
            or mime_type not in self.STRUCTURED_MIME_TYPES
            or not provider.is_configured()
            or not provider.supports(mime_type)
        ):
            return None
        return provider


def build_ocr_result(raw: RawExtraction, processing_time_ms: int) -> OcrResult:
    """Normalize a provider extraction and run the table/form-field detectors."""
    text = raw.text
    return OcrResult(
        text=text,
        confidence=blend_confidence(raw.token_confidences, bool(text.strip())),
        blocks=list(raw.blocks),
        tables=[*raw.tables, *detect_tables(raw.blocks, text)],
        form_fields=[*raw.form_fields, *detect_form_fields(text)],
        metadata=OcrMetadata(
            page_count=raw.page_count,
            language=detect_language(text),
            processing_time_ms=processing_time_ms,
            provider=raw.provider,
        ),
    )
