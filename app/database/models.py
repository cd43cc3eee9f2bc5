from dataclasses import dataclass
from datetime import datetime
from typing import Literal

DocumentStatus = Literal[
    "pending", "processing", "ocr_completed", "analyzing", "completed", "failed"
]
RunStatus = Literal["processing", "completed", "failed", "cancelled"]


@dataclass
class DocumentRecord:
    """Represents a row from the documents table (columns the pipeline reads)."""

    id: int
    client_id: int | None
    mime_type: str
    storage_disk: str
    storage_path: str
    processing_status: str
    processing_message: str | None = None
    document_type: str | None = None
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ProcessingRunRecord:
    """Represents a row from the processing_runs table."""

    document_id: int
    status: str
    stage: str | None
    progress: int
    message: str | None = None
    run_token: str | None = None
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
