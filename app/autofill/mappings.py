"""Which forms a document feeds, and which document field lands in which form line."""

from app.analysis.models import AnalysisResult, field_value

BUSINESS_EXPENSE_CATEGORIES = (
    "office supplies",
    "travel",
    "meals",
    "equipment",
    "software",
    "advertising",
    "professional services",
)

# form type -> document type -> {form field: extracted field}
FIELD_MAPPINGS: dict[str, dict[str, dict[str, str]]] = {
    "Form-1040": {
        "W-2": {
            "taxpayer_name": "taxpayer_name",
            "taxpayer_ssn": "taxpayer_ssn",
            "line_1a": "wages",
            "line_1b": "tips",
            "line_25a": "federal_tax_withheld",
            "line_25b": "social_security_wages",
            "line_25c": "medicare_wages",
        },
        "1099-NEC": {
            "schedule_c_line_1": "non_employee_compensation",
            "line_25a": "federal_income_tax_withheld",
        },
        "1099-MISC": {
            "line_8a": "other_income",
            "line_25a": "federal_income_tax_withheld",
        },
        "1099-INT": {
            "line_2b": "interest_income",
            "line_25a": "federal_income_tax_withheld",
        },
        "1099-DIV": {
            "line_3b": "dividends",
            "line_25a": "federal_income_tax_withheld",
        },
        "Schedule-C": {
            "schedule_1_line_3": "net_profit",
        },
    },
    "Schedule-C": {
        "Schedule-C": {
            "business_name": "business_name",
            "business_ein": "business_ein",
            "line_1": "gross_receipts",
            "line_28": "total_expenses",
            "line_31": "net_profit",
        },
        "Receipt": {
            "line_27a": "amount",
        },
        "Invoice": {
            "line_1": "amount",
        },
    },
}

_INCOME_DOCUMENTS = frozenset({"W-2", "1099-NEC", "1099-MISC", "1099-INT", "1099-DIV"})
_EXPENSE_DOCUMENTS = frozenset({"Receipt", "Invoice"})


def field_mapping(form_type: str, document_type: str) -> dict[str, str]:
    return FIELD_MAPPINGS.get(form_type, {}).get(document_type, {})


def target_forms(analysis: AnalysisResult) -> list[str]:
    """Form types the analyzed document contributes to, in fill order."""
    document_type = analysis.document_type
    if document_type in _INCOME_DOCUMENTS:
        return ["Form-1040"]
    if document_type == "Schedule-C":
        return ["Schedule-C", "Form-1040"]
    if document_type in _EXPENSE_DOCUMENTS and is_business_expense(analysis):
        return ["Schedule-C"]
    return []


def is_business_expense(analysis: AnalysisResult) -> bool:
    category = field_value(analysis.extracted_data, "category")
    if not isinstance(category, str):
        return False
    category = category.lower()
    return any(candidate in category for candidate in BUSINESS_EXPENSE_CATEGORIES)
