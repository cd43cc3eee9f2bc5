"""Document type classification: taxonomy scoring plus an LLM enhancement pass."""

import json
from pathlib import Path
from typing import Any

from app.classification.models import (
    AiEnhancement,
    DocumentClassification,
    PatternMatch,
    TaxonomyCategory,
)
from app.classification.taxonomy import TAXONOMY, UNKNOWN_TYPE, find_definition
from app.llm.completer import Completer
from app.llm.exceptions import LlmError
from app.llm.json_reply import parse_json_object
from app.llm.prompt_loader import load_prompt_template
from app.logging.logger import Log

PATTERN_WEIGHT = 3
KEYWORD_WEIGHT = 1
SCORE_FLOOR = 0.3
REVIEW_CONFIDENCE_THRESHOLD = 0.8
DEFAULT_TAX_IMPORTANCE = "medium"
DEFAULT_PROCESSING_MINUTES = 15

_TAX_IMPORTANCE = frozenset({"critical", "high", "medium", "low"})


class DocumentClassifier:
    """Assigns a taxonomy document type to OCR text."""

    EXCERPT_CHARS = 2000

    def __init__(
        self,
        completer: Completer | None = None,
        *,
        taxonomy: tuple[TaxonomyCategory, ...] = TAXONOMY,
        prompt_template_path: Path | None = None,
    ) -> None:
        self._completer = completer
        self._taxonomy = taxonomy
        self._prompt_template = load_prompt_template(
            "classification_prompt.txt", prompt_template_path
        )

    def classify(
        self, text: str, metadata: dict[str, Any] | None = None
    ) -> DocumentClassification:
        match = self.classify_by_patterns(text)
        enhancement = self._enhance(text, match, metadata or {})
        classification = self._finalize(match, enhancement)
        Log.info(
            f"Classified document as {classification.document_type} "
            f"(confidence {classification.confidence:.2f}, "
            f"auto-fill {classification.auto_fill_capability})"
        )
        return classification

    def classify_by_patterns(self, text: str) -> PatternMatch:
        """Score every taxonomy type; the best normalized score above the floor wins."""
        normalized = text.lower()
        best = None
        best_score = 0.0
        for category in self._taxonomy:
            for definition in category.types:
                score = sum(
                    PATTERN_WEIGHT for p in definition.patterns if p in normalized
                ) + sum(KEYWORD_WEIGHT for k in definition.keywords if k in normalized)
                normalized_score = score / definition.max_score
                if normalized_score > best_score and normalized_score > SCORE_FLOOR:
                    best_score = normalized_score
                    best = definition

        if best is None:
            return PatternMatch(
                document_type=UNKNOWN_TYPE,
                score=0.0,
                confidence=0.0,
                auto_fill_capability="manual",
                required_review=True,
            )
        return PatternMatch(
            document_type=best.type,
            score=best_score,
            confidence=best_score * best.confidence,
            auto_fill_capability=best.auto_fill_capability,
            related_forms=list(best.related_forms),
            required_review=best.processing_complexity == "complex",
        )

    def _enhance(
        self, text: str, match: PatternMatch, metadata: dict[str, Any]
    ) -> AiEnhancement:
        if self._completer is None:
            return AiEnhancement()
        prompt = self._prompt_template.format(
            text_excerpt=text[: self.EXCERPT_CHARS],
            pattern_match=json.dumps(
                {
                    "documentType": match.document_type,
                    "confidence": round(match.confidence, 4),
                    "autoFillCapability": match.auto_fill_capability,
                    "relatedForms": match.related_forms,
                }
            ),
            metadata=json.dumps(metadata, default=str),
        )
        try:
            reply = self._completer.complete(prompt, temperature=0.1, max_tokens=500)
            data = parse_json_object(reply)
        except LlmError as exc:
            Log.warning(f"Classification enhancement unavailable, using patterns only: {exc}")
            return AiEnhancement()
        return _build_enhancement(data)

    def _finalize(
        self, match: PatternMatch, enhancement: AiEnhancement
    ) -> DocumentClassification:
        confidence = max(match.confidence, enhancement.confidence or 0.0)
        definition = find_definition(match.document_type, self._taxonomy)
        return DocumentClassification(
            document_type=match.document_type,
            confidence=confidence,
            auto_fill_capability=match.auto_fill_capability,
            required_review=match.required_review
            or confidence < REVIEW_CONFIDENCE_THRESHOLD,
            tax_importance=enhancement.tax_importance or DEFAULT_TAX_IMPORTANCE,
            estimated_processing_time=(
                enhancement.estimated_processing_time or DEFAULT_PROCESSING_MINUTES
            ),
            related_forms=match.related_forms,
            extractable_fields=list(definition.required_fields) if definition else [],
            risk_factors=enhancement.risk_factors,
            sub_type=enhancement.sub_type,
        )


def _build_enhancement(data: dict[str, Any]) -> AiEnhancement:
    """Keep only the well-formed parts of the LLM's answer."""
    confidence = _first(data, "confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = None
    else:
        confidence = min(1.0, max(0.0, float(confidence)))

    importance = _first(data, "tax_importance", "taxImportance")
    if isinstance(importance, str) and importance.lower() in _TAX_IMPORTANCE:
        importance = importance.lower()
    else:
        importance = None

    minutes = _first(data, "estimated_processing_time", "estimatedProcessingTime")
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes <= 0:
        minutes = None
    else:
        minutes = int(round(minutes))

    risks = _first(data, "risk_factors", "riskFactors")
    risk_factors = [str(r) for r in risks if r] if isinstance(risks, list) else []

    sub_type = _first(data, "sub_type", "subType")
    notes = _first(data, "notes", "special_considerations")
    return AiEnhancement(
        confidence=confidence,
        sub_type=sub_type if isinstance(sub_type, str) and sub_type else None,
        tax_importance=importance,
        estimated_processing_time=minutes,
        risk_factors=risk_factors,
        notes=notes if isinstance(notes, str) else "",
    )


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None
