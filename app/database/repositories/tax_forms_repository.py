from datetime import datetime
from typing import Any

from psycopg.rows import dict_row

from app.autofill.models import FormField, FormMerge, StructuredForm
from app.database.connection import get_connection
from app.database.serialization import jsonb

_FORM_COLUMNS = """
    id, client_id, form_type, tax_year, fields, status, confidence,
    requires_review, validation_status, source_documents, version,
    auto_fill_summary, last_auto_fill, created_at, updated_at
"""


class TaxFormsRepository:
    """Database operations for the tax_forms table."""

    def get_or_create(self, client_id: int, form_type: str, tax_year: int) -> StructuredForm:
        """Fetch the form for (client, type, year), creating an empty draft first if needed.

        The insert is a no-op when the row already exists, so concurrent
        callers always end up reading the same single form.
        """
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO tax_forms (
                    client_id, form_type, tax_year, fields, status, confidence,
                    requires_review, validation_status, source_documents, version,
                    created_at, updated_at
                )
                VALUES (%s, %s, %s, '{}'::jsonb, 'draft', 0, TRUE, 'pending',
                        '[]'::jsonb, 0, NOW(), NOW())
                ON CONFLICT (client_id, form_type, tax_year) DO NOTHING
                """,
                (client_id, form_type, tax_year),
            )
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_FORM_COLUMNS}
                    FROM tax_forms
                    WHERE client_id = %s AND form_type = %s AND tax_year = %s
                    """,
                    (client_id, form_type, tax_year),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(
                f"tax_forms row for client {client_id} {form_type} {tax_year} vanished"
            )
        return _to_form(row)

    def save_merge(self, form_id: int, expected_version: int, merge: FormMerge) -> bool:
        """Write a merge only if the form is still at expected_version.

        Returns:
            True when the update applied, False when another merge got there first.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE tax_forms
                    SET fields = %s,
                        source_documents = %s,
                        status = %s,
                        confidence = %s,
                        requires_review = %s,
                        validation_status = %s,
                        auto_fill_summary = %s,
                        last_auto_fill = NOW(),
                        version = version + 1,
                        updated_at = NOW()
                    WHERE id = %s AND version = %s
                    """,
                    (
                        jsonb({name: _field_payload(f) for name, f in merge.fields.items()}),
                        jsonb(merge.source_documents),
                        merge.status,
                        merge.confidence,
                        merge.requires_review,
                        merge.validation_status,
                        merge.auto_fill_summary,
                        form_id,
                        expected_version,
                    ),
                )
                applied = cur.rowcount == 1
            conn.commit()
        return applied


def _field_payload(form_field: FormField) -> dict[str, Any]:
    return {
        "value": form_field.value,
        "confidence": form_field.confidence,
        "source_document": form_field.source_document,
        "source_field": form_field.source_field,
        "is_calculated": form_field.is_calculated,
        "requires_review": form_field.requires_review,
        "validation_status": form_field.validation_status,
        "last_updated": form_field.last_updated,
        "updated_by": form_field.updated_by,
    }


def _to_field(raw: dict[str, Any]) -> FormField:
    last_updated = raw.get("last_updated")
    if isinstance(last_updated, str):
        last_updated = datetime.fromisoformat(last_updated)
    return FormField(
        value=raw.get("value"),
        confidence=float(raw.get("confidence") or 0.0),
        source_document=raw.get("source_document"),
        source_field=raw.get("source_field"),
        is_calculated=bool(raw.get("is_calculated", False)),
        requires_review=bool(raw.get("requires_review", False)),
        validation_status=raw.get("validation_status") or "pending",
        last_updated=last_updated,
        updated_by=raw.get("updated_by") or "ai",
    )


def _to_form(row: dict[str, Any]) -> StructuredForm:
    return StructuredForm(
        id=row["id"],
        client_id=row["client_id"],
        form_type=row["form_type"],
        tax_year=row["tax_year"],
        fields={name: _to_field(raw) for name, raw in (row["fields"] or {}).items()},
        status=row["status"],
        confidence=float(row["confidence"] or 0.0),
        requires_review=bool(row["requires_review"]),
        validation_status=row["validation_status"] or "pending",
        source_documents=list(row["source_documents"] or []),
        version=row["version"],
        auto_fill_summary=row["auto_fill_summary"],
        last_auto_fill=row["last_auto_fill"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
