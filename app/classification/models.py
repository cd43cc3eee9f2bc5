from dataclasses import dataclass, field
from typing import Literal

AutoFillCapability = Literal["full", "partial", "manual"]
TaxImportance = Literal["critical", "high", "medium", "low"]
ProcessingComplexity = Literal["simple", "moderate", "complex"]


@dataclass(frozen=True)
class DocumentTypeDefinition:
    """One entry of the classification taxonomy."""

    type: str
    patterns: tuple[str, ...]
    keywords: tuple[str, ...]
    required_fields: tuple[str, ...]
    auto_fill_capability: AutoFillCapability
    confidence: float
    related_forms: tuple[str, ...]
    processing_complexity: ProcessingComplexity

    @property
    def max_score(self) -> int:
        return len(self.patterns) * 3 + len(self.keywords)


@dataclass(frozen=True)
class TaxonomyCategory:
    category: str
    types: tuple[DocumentTypeDefinition, ...]


@dataclass(frozen=True)
class PatternMatch:
    """Outcome of the deterministic scoring phase."""

    document_type: str
    score: float
    confidence: float
    auto_fill_capability: AutoFillCapability
    related_forms: list[str] = field(default_factory=list)
    required_review: bool = True


@dataclass(frozen=True)
class AiEnhancement:
    """What the LLM pass added. All fields empty when the pass failed."""

    confidence: float | None = None
    sub_type: str | None = None
    tax_importance: TaxImportance | None = None
    estimated_processing_time: int | None = None
    risk_factors: list[str] = field(default_factory=list)
    notes: str = ""


@dataclass(frozen=True)
class DocumentClassification:
    document_type: str
    confidence: float
    auto_fill_capability: AutoFillCapability
    required_review: bool
    tax_importance: TaxImportance
    estimated_processing_time: int
    related_forms: list[str] = field(default_factory=list)
    extractable_fields: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    sub_type: str | None = None


@dataclass(frozen=True)
class ProcessingPlan:
    """Priority and next steps derived from a classification."""

    priority: int
    automation_level: AutoFillCapability
    review_required: bool
    estimated_accuracy: float
    next_steps: list[str] = field(default_factory=list)
