from dataclasses import dataclass, field
from typing import Any, Literal, get_args

DocumentType = Literal[
    "W-2",
    "1099-MISC",
    "1099-NEC",
    "1099-INT",
    "1099-DIV",
    "1040",
    "Schedule-C",
    "Schedule-D",
    "Receipt",
    "Invoice",
    "Bank-Statement",
    "Unknown",
]
DOCUMENT_TYPES: tuple[str, ...] = get_args(DocumentType)

InsightType = Literal[
    "tax_optimization", "compliance_issue", "data_quality", "missing_information"
]
Impact = Literal["low", "medium", "high", "critical"]

# Parseable amounts become floats; anything else is kept verbatim so the
# validator can flag it.
Amount = float | str


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class RawFormField:
    """An OCR form-field guess echoed into the extracted data."""

    value: str
    confidence: float
    type: str


@dataclass(frozen=True)
class W2Data:
    """Wage and tax statement."""

    kind: str = "w2"
    taxpayer_name: str | None = None
    taxpayer_ssn: str | None = None
    business_name: str | None = None
    business_ein: str | None = None
    wages: Amount | None = None
    tips: Amount | None = None
    federal_tax_withheld: Amount | None = None
    social_security_wages: Amount | None = None
    medicare_wages: Amount | None = None
    address: Address | None = None
    form_fields: dict[str, RawFormField] = field(default_factory=dict)


@dataclass(frozen=True)
class Form1099Data:
    """Any of the 1099-NEC/MISC/INT/DIV information returns."""

    kind: str = "form_1099"
    taxpayer_name: str | None = None
    taxpayer_ssn: str | None = None
    business_name: str | None = None
    business_ein: str | None = None
    non_employee_compensation: Amount | None = None
    other_income: Amount | None = None
    interest_income: Amount | None = None
    dividends: Amount | None = None
    federal_income_tax_withheld: Amount | None = None
    form_fields: dict[str, RawFormField] = field(default_factory=dict)


@dataclass(frozen=True)
class TaxReturnData:
    """Form 1040 and its Schedule C / Schedule D attachments."""

    kind: str = "tax_return"
    taxpayer_name: str | None = None
    taxpayer_ssn: str | None = None
    spouse_name: str | None = None
    spouse_ssn: str | None = None
    address: Address | None = None
    wages: Amount | None = None
    business_name: str | None = None
    business_ein: str | None = None
    gross_receipts: Amount | None = None
    total_expenses: Amount | None = None
    net_profit: Amount | None = None
    capital_gains: Amount | None = None
    standard_deduction: Amount | None = None
    itemized_deductions: dict[str, float] = field(default_factory=dict)
    tax_credits: dict[str, float] = field(default_factory=dict)
    form_fields: dict[str, RawFormField] = field(default_factory=dict)


@dataclass(frozen=True)
class ExpenseData:
    """Receipts and invoices."""

    kind: str = "expense"
    business_name: str | None = None
    amount: Amount | None = None
    date: str | None = None
    category: str | None = None
    description: str | None = None
    form_fields: dict[str, RawFormField] = field(default_factory=dict)


@dataclass(frozen=True)
class GenericData:
    """Best-effort key/value pairs for types without a dedicated schema."""

    kind: str = "generic"
    fields: dict[str, Any] = field(default_factory=dict)
    form_fields: dict[str, RawFormField] = field(default_factory=dict)


ExtractedData = W2Data | Form1099Data | TaxReturnData | ExpenseData | GenericData


def field_value(data: ExtractedData, name: str) -> Any:
    """Value of a named extracted field, None when the variant has no such field."""
    if isinstance(data, GenericData):
        return data.fields.get(name)
    return getattr(data, name, None)


@dataclass(frozen=True)
class ValidationResult:
    field: str
    is_valid: bool
    confidence: float
    error_message: str | None = None
    suggested_value: str | None = None


@dataclass(frozen=True)
class Insight:
    type: InsightType
    title: str
    description: str
    impact: Impact
    action_required: bool


@dataclass(frozen=True)
class AnalysisResult:
    """Output of the semantic analysis stage.

    degraded_steps names every sub-step that fell back to a default instead
    of a model-derived answer ("document_type", "extraction").
    """

    document_type: str
    confidence: float
    extracted_data: ExtractedData
    validation_results: list[ValidationResult] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    processing_time_ms: int = 0
    degraded_steps: tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_steps)
