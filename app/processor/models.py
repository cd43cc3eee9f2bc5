from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from app.analysis.models import AnalysisResult
from app.autofill.models import AutoFillResult
from app.classification.models import DocumentClassification, ProcessingPlan
from app.ocr.models import OcrResult

Stage = Literal["ocr", "analysis", "autofill"]
Severity = Literal["low", "medium", "high", "critical"]
OverallStatus = Literal["success", "partial", "failed"]


@dataclass(frozen=True)
class ProcessingOptions:
    """Per-run switches. A missing client_id disables auto-fill for the run."""

    skip_ocr: bool = False
    skip_analysis: bool = False
    skip_autofill: bool = False
    client_id: int | None = None


@dataclass(frozen=True)
class BatchItem:
    """One document of a batch; without file_bytes the stored file is loaded."""

    document_id: int
    file_bytes: bytes | None = None
    mime_type: str | None = None
    options: ProcessingOptions | None = None


@dataclass(frozen=True)
class ProcessingError:
    stage: Stage
    message: str
    severity: Severity
    timestamp: datetime


@dataclass(frozen=True)
class ProcessingResult:
    document_id: int
    status: OverallStatus
    confidence: float
    stages_completed: list[str] = field(default_factory=list)
    errors: list[ProcessingError] = field(default_factory=list)
    summary: str = ""
    processing_time_ms: int = 0
    ocr_result: OcrResult | None = None
    classification: DocumentClassification | None = None
    processing_plan: ProcessingPlan | None = None
    analysis_result: AnalysisResult | None = None
    autofill_result: AutoFillResult | None = None


@dataclass(frozen=True)
class ProcessingStatus:
    """What a caller polling a document's progress sees."""

    document_id: int
    status: str
    message: str
    progress: int
    estimated_time_remaining_seconds: int | None = None
