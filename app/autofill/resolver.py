"""Merges analyzed document values into the client's structured tax forms."""

import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from app.analysis.models import AnalysisResult, ValidationResult, field_value
from app.autofill.exceptions import AutoFillFailure, FormMergeConflictError
from app.autofill.mappings import field_mapping, target_forms
from app.autofill.models import (
    AutoFillResult,
    FieldConflict,
    FormField,
    FormFillResult,
    FormMerge,
    Resolution,
    StructuredForm,
    ValidationStatus,
)
from app.database.repositories.tax_forms_repository import TaxFormsRepository
from app.logging.logger import Log

USE_NEW_ABOVE = 0.9
KEEP_EXISTING_BELOW = 0.5
REVIEW_BELOW = 0.8


@dataclass
class MergePlan:
    """Fields staged for one form before anything is written."""

    fields: dict[str, FormField]
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    conflicts: list[FieldConflict] = field(default_factory=list)


class AutoFillResolver:
    """Fills every form a document maps to, one optimistic merge per form."""

    def __init__(
        self,
        *,
        tax_forms: TaxFormsRepository,
        tax_year: int | None = None,
        max_attempts: int = 3,
        protect_user_fields: bool = True,
    ) -> None:
        self._tax_forms = tax_forms
        self._tax_year = tax_year
        self._max_attempts = max(1, max_attempts)
        self._protect_user_fields = protect_user_fields

    def auto_fill(
        self, client_id: int, document_id: int, analysis: AnalysisResult
    ) -> AutoFillResult:
        """Merge one document's analysis into its target forms.

        A failure on one form is reported as a warning and the remaining
        forms are still filled.

        Raises:
            AutoFillFailure: when the operation cannot run at all.
        """
        started = time.monotonic()
        warnings: list[str] = []
        try:
            targets = target_forms(analysis)
            if not targets:
                warnings.append("No applicable tax forms found for this document type")
            tax_year = self._tax_year or date.today().year
            results: list[FormFillResult] = []
            for form_type in targets:
                try:
                    results.append(
                        self._fill_form(client_id, form_type, tax_year, document_id, analysis)
                    )
                except Exception as exc:
                    Log.warning(f"Failed to fill {form_type} from document {document_id}: {exc}")
                    warnings.append(f"Failed to fill {form_type}: {exc}")
        except Exception as exc:
            raise AutoFillFailure(f"Auto-fill failed: {exc}") from exc

        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = combine_results(
            results,
            client_id=client_id,
            document_id=document_id,
            targets=len(targets),
            warnings=warnings,
            processing_time_ms=elapsed_ms,
        )
        Log.info(f"Auto-fill for document {document_id}: {result.summary}")
        return result

    def _fill_form(
        self,
        client_id: int,
        form_type: str,
        tax_year: int,
        document_id: int,
        analysis: AnalysisResult,
    ) -> FormFillResult:
        mapping = field_mapping(form_type, analysis.document_type)
        for attempt in range(1, self._max_attempts + 1):
            form = self._tax_forms.get_or_create(client_id, form_type, tax_year)
            plan = plan_merge(
                form,
                mapping,
                analysis,
                document_id,
                now=datetime.now(timezone.utc),
                protect_user_fields=self._protect_user_fields,
            )
            merge = build_form_merge(form, plan, document_id)
            if self._tax_forms.save_merge(form.id, form.version, merge):
                for conflict in plan.conflicts:
                    Log.info(
                        f"Conflict on {form_type}.{conflict.field_name} for document "
                        f"{document_id}: {conflict.reason} -> {conflict.recommendation}"
                    )
                return FormFillResult(
                    form_id=form.id,
                    form_type=form_type,
                    fields_added=plan.added,
                    fields_updated=plan.updated,
                    conflicts=plan.conflicts,
                    confidence=merge.confidence,
                    requires_review=merge.requires_review,
                    summary=form_summary(plan),
                )
            Log.info(
                f"{form_type} form {form.id} changed during merge, retrying "
                f"({attempt}/{self._max_attempts})"
            )
        raise FormMergeConflictError(
            f"{form_type} form kept changing after {self._max_attempts} merge attempts"
        )


def plan_merge(
    form: StructuredForm,
    mapping: dict[str, str],
    analysis: AnalysisResult,
    document_id: int,
    *,
    now: datetime,
    protect_user_fields: bool = True,
) -> MergePlan:
    """Stage adds, provenance refreshes and conflict outcomes for one form."""
    plan = MergePlan(fields=dict(form.fields))
    statuses = _validation_statuses(analysis.validation_results)
    confidence = analysis.confidence

    for form_field, document_field in mapping.items():
        value = field_value(analysis.extracted_data, document_field)
        if value is None:
            continue
        staged = FormField(
            value=value,
            confidence=confidence,
            source_document=document_id,
            source_field=document_field,
            requires_review=confidence < REVIEW_BELOW,
            validation_status=statuses.get(document_field, "pending"),
            last_updated=now,
            updated_by="ai",
        )
        existing = form.fields.get(form_field)
        if existing is None:
            plan.fields[form_field] = staged
            plan.added.append(form_field)
            continue

        protected = protect_user_fields and existing.updated_by == "user"
        if existing.value == value:
            if not protected:
                plan.fields[form_field] = staged
                plan.updated.append(form_field)
            continue

        recommendation = resolve_conflict(confidence, existing, protect_user_fields)
        plan.conflicts.append(
            FieldConflict(
                field_name=form_field,
                existing_value=existing.value,
                new_value=value,
                existing_source=(
                    str(existing.source_document)
                    if existing.source_document is not None
                    else "unknown"
                ),
                new_source=str(document_id),
                existing_confidence=existing.confidence,
                new_confidence=confidence,
                recommendation=recommendation,
                reason=conflict_reason(existing.value, value),
            )
        )
        if recommendation == "use_new":
            plan.fields[form_field] = staged
            plan.updated.append(form_field)
    return plan


def resolve_conflict(
    new_confidence: float, existing: FormField, protect_user_fields: bool = True
) -> Resolution:
    """Confidence rule: > 0.9 use new, < 0.5 keep existing, otherwise review.

    With protect_user_fields a value entered by a person is never replaced
    automatically; what would have been 'use_new' goes to review instead.
    """
    if new_confidence > USE_NEW_ABOVE:
        if protect_user_fields and existing.updated_by == "user":
            return "manual_review"
        return "use_new"
    if new_confidence < KEEP_EXISTING_BELOW:
        return "keep_existing"
    return "manual_review"


def conflict_reason(existing_value: Any, new_value: Any) -> str:
    if _is_number(existing_value) and _is_number(new_value):
        diff = abs(existing_value - new_value)
        largest = max(abs(existing_value), abs(new_value))
        percent = diff / largest * 100 if largest else 0.0
        return f"Values differ by {diff:.2f} ({percent:.1f}%)"
    if existing_value and new_value:
        return f'Different values: "{existing_value}" vs "{new_value}"'
    return "Values do not match"


def build_form_merge(form: StructuredForm, plan: MergePlan, document_id: int) -> FormMerge:
    fields = plan.fields
    confidence = (
        sum(f.confidence for f in fields.values()) / len(fields) if fields else 0.0
    )
    sources = list(form.source_documents)
    if document_id not in sources:
        sources.append(document_id)
    return FormMerge(
        fields=fields,
        source_documents=sources,
        status="in_progress" if form.status == "draft" else form.status,
        confidence=confidence,
        requires_review=confidence < REVIEW_BELOW or bool(plan.conflicts),
        validation_status=_form_validation_status(fields),
        auto_fill_summary=f"Updated from document {document_id}: {form_summary(plan)}",
    )


def form_summary(plan: MergePlan) -> str:
    parts = []
    if plan.added:
        parts.append(f"Added {len(plan.added)} new fields")
    if plan.updated:
        parts.append(f"Updated {len(plan.updated)} existing fields")
    if plan.conflicts:
        parts.append(f"{len(plan.conflicts)} conflicts require review")
    return ", ".join(parts) if parts else "No changes made"


def combine_results(
    results: list[FormFillResult],
    *,
    client_id: int,
    document_id: int,
    targets: int,
    warnings: list[str],
    processing_time_ms: int = 0,
) -> AutoFillResult:
    """Concatenate per-form outcomes; confidence is the mean of the forms'."""
    if not results:
        return AutoFillResult(
            success=targets == 0,
            document_id=document_id,
            client_id=client_id,
            summary="No forms were updated",
            warnings=warnings,
            processing_time_ms=processing_time_ms,
        )

    added = [name for r in results for name in r.fields_added]
    updated = [name for r in results for name in r.fields_updated]
    conflicts = [c for r in results for c in r.conflicts]
    parts = []
    if added:
        parts.append(f"{len(added)} fields added")
    if updated:
        parts.append(f"{len(updated)} fields updated")
    if conflicts:
        parts.append(f"{len(conflicts)} conflicts detected")
    return AutoFillResult(
        success=True,
        document_id=document_id,
        client_id=client_id,
        form_ids=[r.form_id for r in results],
        fields_added=added,
        fields_updated=updated,
        conflicts=conflicts,
        confidence=sum(r.confidence for r in results) / len(results),
        requires_review=any(r.requires_review for r in results),
        summary=", ".join(parts) if parts else "No changes made",
        warnings=warnings,
        processing_time_ms=processing_time_ms,
    )


def _validation_statuses(results: list[ValidationResult]) -> dict[str, ValidationStatus]:
    return {r.field: "valid" if r.is_valid else "invalid" for r in results}


def _form_validation_status(fields: dict[str, FormField]) -> ValidationStatus:
    statuses = {f.validation_status for f in fields.values()}
    if "invalid" in statuses:
        return "invalid"
    if "warning" in statuses:
        return "warning"
    if statuses == {"valid"}:
        return "valid"
    return "pending"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
