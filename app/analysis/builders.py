"""Builds the typed extracted-data variant from the LLM's parsed JSON reply."""

import math
import re
from typing import Any

from app.analysis.models import (
    Address,
    Amount,
    ExpenseData,
    ExtractedData,
    Form1099Data,
    GenericData,
    RawFormField,
    TaxReturnData,
    W2Data,
)
from app.analysis.schemas import EXPENSE_TYPES, FORM_1099_TYPES, TAX_RETURN_TYPES, W2_TYPES
from app.ocr.models import DetectedFormField

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_AMOUNT_NOISE = re.compile(r"[\s$,]")


def map_form_fields(form_fields: list[DetectedFormField]) -> dict[str, RawFormField]:
    """Echo OCR form-field guesses keyed by name."""
    return {
        f.name: RawFormField(value=f.value, confidence=f.confidence, type=f.field_type)
        for f in form_fields
    }


def build_extracted_data(
    document_type: str, raw: dict[str, Any], form_fields: dict[str, RawFormField]
) -> ExtractedData:
    """Build the variant for the document type. Never raises on odd values.

    Unknown keys are dropped, strings are trimmed, amounts that cannot be read
    as numbers are kept verbatim.
    """
    data = _normalize_keys(raw)
    if document_type in W2_TYPES:
        return _build_w2(data, form_fields)
    if document_type in FORM_1099_TYPES:
        return _build_1099(data, form_fields)
    if document_type in TAX_RETURN_TYPES:
        return _build_tax_return(data, form_fields)
    if document_type in EXPENSE_TYPES:
        return _build_expense(data, form_fields)
    return _build_generic(data, form_fields)


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        snake = _CAMEL_BOUNDARY.sub("_", str(key)).lower()
        normalized[snake] = value
    return normalized


def _build_w2(data: dict[str, Any], form_fields: dict[str, RawFormField]) -> W2Data:
    return W2Data(
        taxpayer_name=_text(data.get("taxpayer_name")),
        taxpayer_ssn=_text(data.get("taxpayer_ssn")),
        business_name=_text(data.get("business_name")),
        business_ein=_text(data.get("business_ein")),
        wages=_amount(data.get("wages")),
        tips=_amount(data.get("tips")),
        federal_tax_withheld=_amount(data.get("federal_tax_withheld")),
        social_security_wages=_amount(data.get("social_security_wages")),
        medicare_wages=_amount(data.get("medicare_wages")),
        address=_address(data.get("address")),
        form_fields=form_fields,
    )


def _build_1099(data: dict[str, Any], form_fields: dict[str, RawFormField]) -> Form1099Data:
    return Form1099Data(
        taxpayer_name=_text(data.get("taxpayer_name")),
        taxpayer_ssn=_text(data.get("taxpayer_ssn")),
        business_name=_text(data.get("business_name")),
        business_ein=_text(data.get("business_ein")),
        non_employee_compensation=_amount(data.get("non_employee_compensation")),
        other_income=_amount(data.get("other_income")),
        interest_income=_amount(data.get("interest_income")),
        dividends=_amount(data.get("dividends")),
        federal_income_tax_withheld=_amount(data.get("federal_income_tax_withheld")),
        form_fields=form_fields,
    )


def _build_tax_return(
    data: dict[str, Any], form_fields: dict[str, RawFormField]
) -> TaxReturnData:
    return TaxReturnData(
        taxpayer_name=_text(data.get("taxpayer_name")),
        taxpayer_ssn=_text(data.get("taxpayer_ssn")),
        spouse_name=_text(data.get("spouse_name")),
        spouse_ssn=_text(data.get("spouse_ssn")),
        address=_address(data.get("address")),
        wages=_amount(data.get("wages")),
        business_name=_text(data.get("business_name")),
        business_ein=_text(data.get("business_ein")),
        gross_receipts=_amount(data.get("gross_receipts")),
        total_expenses=_amount(data.get("total_expenses")),
        net_profit=_amount(data.get("net_profit")),
        capital_gains=_amount(data.get("capital_gains")),
        standard_deduction=_amount(data.get("standard_deduction")),
        itemized_deductions=_amount_map(data.get("itemized_deductions")),
        tax_credits=_amount_map(data.get("tax_credits")),
        form_fields=form_fields,
    )


def _build_expense(data: dict[str, Any], form_fields: dict[str, RawFormField]) -> ExpenseData:
    return ExpenseData(
        business_name=_text(data.get("business_name")),
        amount=_amount(data.get("amount")),
        date=_text(data.get("date")),
        category=_text(data.get("category")),
        description=_text(data.get("description")),
        form_fields=form_fields,
    )


def _build_generic(data: dict[str, Any], form_fields: dict[str, RawFormField]) -> GenericData:
    fields = data.get("extracted_fields")
    if not isinstance(fields, dict):
        fields = {k: v for k, v in data.items() if k != "form_fields"}
    return GenericData(fields=dict(fields), form_fields=form_fields)


def _text(raw: Any) -> str | None:
    if raw is None or isinstance(raw, (dict, list)):
        return None
    text = str(raw).strip()
    return text or None


def _amount(raw: Any) -> Amount | None:
    if raw is None or isinstance(raw, (dict, list)):
        return None
    if isinstance(raw, bool):
        return str(raw)
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else str(raw)
    text = str(raw).strip()
    if not text:
        return None
    try:
        number = float(_AMOUNT_NOISE.sub("", text))
    except ValueError:
        return text
    return number if math.isfinite(number) else text


def _amount_map(raw: Any) -> dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    amounts = {}
    for name, value in raw.items():
        amount = _amount(value)
        if isinstance(amount, float):
            amounts[str(name)] = amount
    return amounts


def _address(raw: Any) -> Address | None:
    if not isinstance(raw, dict):
        return None
    data = _normalize_keys(raw)
    address = Address(
        street=_text(data.get("street")) or "",
        city=_text(data.get("city")) or "",
        state=_text(data.get("state")) or "",
        zip_code=_text(data.get("zip_code")) or "",
    )
    return address if any((address.street, address.city, address.state, address.zip_code)) else None
