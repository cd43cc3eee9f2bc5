"""Format rules for extracted identifiers and amounts."""

import re

from app.analysis.models import ExtractedData, GenericData, ValidationResult, field_value

ID_CONFIDENCE = 0.95
AMOUNT_CONFIDENCE = 0.9

_SSN = re.compile(r"^\d{3}-\d{2}-\d{4}$")
_EIN = re.compile(r"^\d{2}-\d{7}$")
_SEPARATORS = re.compile(r"[\s-]")

SSN_FIELDS = ("taxpayer_ssn", "spouse_ssn")
EIN_FIELDS = ("business_ein",)
AMOUNT_FIELDS = (
    "wages",
    "tips",
    "federal_tax_withheld",
    "social_security_wages",
    "medicare_wages",
    "non_employee_compensation",
    "other_income",
    "interest_income",
    "dividends",
    "federal_income_tax_withheld",
    "gross_receipts",
    "total_expenses",
    "standard_deduction",
    "amount",
)


def validate_extracted_data(data: ExtractedData) -> list[ValidationResult]:
    """One ValidationResult per present SSN, EIN and amount field.

    Free-form generic data has no known fields and is not validated.
    """
    if isinstance(data, GenericData):
        return []
    results: list[ValidationResult] = []
    for name in SSN_FIELDS:
        value = field_value(data, name)
        if _present(value):
            results.append(_validate_id(name, value, _SSN, "SSN", (3, 5)))
    for name in EIN_FIELDS:
        value = field_value(data, name)
        if _present(value):
            results.append(_validate_id(name, value, _EIN, "EIN", (2,)))
    for name in AMOUNT_FIELDS:
        value = field_value(data, name)
        if _present(value):
            results.append(_validate_amount(name, value))
    return results


def _present(value: object) -> bool:
    return value is not None and value != ""


def _validate_id(
    name: str, value: object, pattern: re.Pattern[str], label: str, cuts: tuple[int, ...]
) -> ValidationResult:
    text = str(value)
    if pattern.match(text):
        return ValidationResult(field=name, is_valid=True, confidence=ID_CONFIDENCE)
    return ValidationResult(
        field=name,
        is_valid=False,
        confidence=ID_CONFIDENCE,
        error_message=f"Invalid {label} format",
        suggested_value=_suggest(text, pattern, cuts),
    )


def _suggest(text: str, pattern: re.Pattern[str], cuts: tuple[int, ...]) -> str | None:
    """Re-hyphenate a nine-digit identifier typed without separators."""
    digits = _SEPARATORS.sub("", text)
    if len(digits) != 9 or not digits.isdigit():
        return None
    parts, start = [], 0
    for cut in cuts:
        parts.append(digits[start:cut])
        start = cut
    parts.append(digits[start:])
    candidate = "-".join(parts)
    return candidate if pattern.match(candidate) else None


def _validate_amount(name: str, value: object) -> ValidationResult:
    valid = isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0
    return ValidationResult(
        field=name,
        is_valid=valid,
        confidence=AMOUNT_CONFIDENCE,
        error_message=None if valid else "Invalid amount format",
    )


def overall_confidence(ocr_confidence: float, results: list[ValidationResult]) -> float:
    """Mean of OCR confidence and the mean validation confidence.

    Invalid fields contribute half their confidence. Without any validated
    field the OCR confidence stands alone.
    """
    if not results:
        return ocr_confidence
    validation_confidence = sum(
        r.confidence if r.is_valid else r.confidence * 0.5 for r in results
    ) / len(results)
    return min(1.0, max(0.0, (ocr_confidence + validation_confidence) / 2))
