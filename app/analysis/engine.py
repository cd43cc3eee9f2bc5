"""Semantic analysis of OCR output: type, fields, validation, insights, confidence."""

import time
from pathlib import Path

from app.analysis.builders import build_extracted_data, map_form_fields
from app.analysis.exceptions import AnalysisFailure
from app.analysis.insights import derive_insights, derive_recommendations
from app.analysis.models import DOCUMENT_TYPES, AnalysisResult, ExtractedData, GenericData
from app.analysis.schemas import schema_for
from app.analysis.validator import overall_confidence, validate_extracted_data
from app.database.repositories.documents_repository import DocumentsRepository
from app.llm.completer import Completer
from app.llm.exceptions import LlmError
from app.llm.json_reply import parse_json_object
from app.llm.prompt_loader import load_prompt_template
from app.logging.logger import Log
from app.ocr.models import OcrResult

UNKNOWN_TYPE = "Unknown"

_TYPES_BY_LOWER = {t.lower(): t for t in DOCUMENT_TYPES}


class AnalysisEngine:
    """Turns an OcrResult into an AnalysisResult and stores it on the document.

    LLM failures never abort the analysis: type identification falls back to
    'Unknown' and extraction to the raw OCR form fields, and each fallback is
    recorded in AnalysisResult.degraded_steps.
    """

    IDENTIFY_EXCERPT_CHARS = 2000
    EXTRACT_EXCERPT_CHARS = 3000

    def __init__(
        self,
        *,
        completer: Completer,
        documents: DocumentsRepository,
        identify_template_path: Path | None = None,
        extraction_template_path: Path | None = None,
    ) -> None:
        self._completer = completer
        self._documents = documents
        self._identify_template = load_prompt_template(
            "identify_type_prompt.txt", identify_template_path
        )
        self._extraction_template = load_prompt_template(
            "extraction_prompt.txt", extraction_template_path
        )

    def analyze(self, document_id: int, ocr_result: OcrResult) -> AnalysisResult:
        """Analyze one document.

        Raises:
            AnalysisFailure: on any unexpected error (persistence included).
        """
        started = time.monotonic()
        try:
            self._documents.update_status(
                document_id, "analyzing", "Starting AI document analysis"
            )
            degraded: list[str] = []

            document_type = self._identify_type(document_id, ocr_result.text, degraded)
            extracted = self._extract(document_id, document_type, ocr_result, degraded)
            validations = validate_extracted_data(extracted)
            insights = derive_insights(document_type, extracted, validations, tuple(degraded))
            result = AnalysisResult(
                document_type=document_type,
                confidence=overall_confidence(ocr_result.confidence, validations),
                extracted_data=extracted,
                validation_results=validations,
                insights=insights,
                recommendations=derive_recommendations(document_type, insights),
                processing_time_ms=int((time.monotonic() - started) * 1000),
                degraded_steps=tuple(degraded),
            )
            self._documents.save_analysis_result(document_id, result)
        except AnalysisFailure:
            raise
        except Exception as exc:
            raise AnalysisFailure(f"Document analysis failed: {exc}") from exc

        Log.info(
            f"Analysis complete for document {document_id}: {result.document_type}, "
            f"confidence {result.confidence:.2f}, {len(result.insights)} insights"
            + (f", degraded: {', '.join(result.degraded_steps)}" if result.degraded else "")
        )
        return result

    def _identify_type(self, document_id: int, text: str, degraded: list[str]) -> str:
        prompt = self._identify_template.format(
            document_text=text[: self.IDENTIFY_EXCERPT_CHARS]
        )
        try:
            reply = self._completer.complete(prompt, temperature=0.1, max_tokens=50)
        except LlmError as exc:
            Log.warning(f"Type identification failed for document {document_id}: {exc}")
            degraded.append("document_type")
            return UNKNOWN_TYPE
        return normalize_document_type(reply)

    def _extract(
        self,
        document_id: int,
        document_type: str,
        ocr_result: OcrResult,
        degraded: list[str],
    ) -> ExtractedData:
        form_fields = map_form_fields(ocr_result.form_fields)
        prompt = self._extraction_template.format(
            document_type=document_type,
            document_text=ocr_result.text[: self.EXTRACT_EXCERPT_CHARS],
            schema=schema_for(document_type),
        )
        try:
            reply = self._completer.complete(prompt, temperature=0.1, max_tokens=1000)
            raw = parse_json_object(reply)
        except LlmError as exc:
            Log.warning(f"Structured extraction failed for document {document_id}: {exc}")
            degraded.append("extraction")
            return GenericData(form_fields=form_fields)
        return build_extracted_data(document_type, raw, form_fields)


def normalize_document_type(reply: str) -> str:
    """Map a free-text reply onto the fixed type list; anything else is 'Unknown'."""
    lines = reply.strip().splitlines()
    candidate = lines[0].strip().strip("`'\".").strip() if lines else ""
    return _TYPES_BY_LOWER.get(candidate.lower(), UNKNOWN_TYPE)
