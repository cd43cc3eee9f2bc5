from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

FormStatus = Literal["draft", "in_progress", "completed", "filed", "amended"]
ValidationStatus = Literal["valid", "invalid", "warning", "pending"]
Actor = Literal["ai", "user", "calculation"]
Resolution = Literal["keep_existing", "use_new", "manual_review"]


@dataclass(frozen=True)
class FormField:
    """Current value of one form field and where it came from."""

    value: Any
    confidence: float
    source_document: int | None = None
    source_field: str | None = None
    is_calculated: bool = False
    requires_review: bool = False
    validation_status: ValidationStatus = "pending"
    last_updated: datetime | None = None
    updated_by: Actor = "ai"


@dataclass(frozen=True)
class StructuredForm:
    """One (client, form type, tax year) form as read from the store.

    version is bumped by every successful merge; a merge computed from a
    stale version is rejected by the store.
    """

    id: int
    client_id: int
    form_type: str
    tax_year: int
    fields: dict[str, FormField] = field(default_factory=dict)
    status: FormStatus = "draft"
    confidence: float = 0.0
    requires_review: bool = True
    validation_status: ValidationStatus = "pending"
    source_documents: list[int] = field(default_factory=list)
    version: int = 0
    auto_fill_summary: str | None = None
    last_auto_fill: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class FormMerge:
    """The complete new state written back by one merge."""

    fields: dict[str, FormField]
    source_documents: list[int]
    status: FormStatus
    confidence: float
    requires_review: bool
    validation_status: ValidationStatus
    auto_fill_summary: str


@dataclass(frozen=True)
class FieldConflict:
    field_name: str
    existing_value: Any
    new_value: Any
    existing_source: str
    new_source: str
    existing_confidence: float
    new_confidence: float
    recommendation: Resolution
    reason: str


@dataclass(frozen=True)
class FormFillResult:
    """Outcome of merging one document into one form."""

    form_id: int
    form_type: str
    fields_added: list[str] = field(default_factory=list)
    fields_updated: list[str] = field(default_factory=list)
    conflicts: list[FieldConflict] = field(default_factory=list)
    confidence: float = 0.0
    requires_review: bool = False
    summary: str = ""


@dataclass(frozen=True)
class AutoFillResult:
    success: bool
    document_id: int
    client_id: int
    form_ids: list[int] = field(default_factory=list)
    fields_added: list[str] = field(default_factory=list)
    fields_updated: list[str] = field(default_factory=list)
    conflicts: list[FieldConflict] = field(default_factory=list)
    confidence: float = 0.0
    requires_review: bool = False
    summary: str = ""
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    processing_time_ms: int = 0
