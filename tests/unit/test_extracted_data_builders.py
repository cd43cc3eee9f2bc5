from app.analysis.builders import build_extracted_data, map_form_fields
from app.analysis.models import (
    Address,
    ExpenseData,
    Form1099Data,
    GenericData,
    RawFormField,
    TaxReturnData,
    W2Data,
)
from app.ocr.models import DetectedFormField


class TestMapFormFields:
    def test_keys_by_name(self) -> None:
        mapped = map_form_fields(
            [DetectedFormField(name="SSN_1", value="123-45-6789", field_type="text", confidence=0.85)]
        )
        assert mapped == {"SSN_1": RawFormField(value="123-45-6789", confidence=0.85, type="text")}


class TestBuildExtractedData:
    def test_w2_from_camel_case_reply(self) -> None:
        raw = {
            "taxpayerName": " Jane Doe ",
            "taxpayerSSN": "123-45-6789",
            "wages": "$60,000.00",
            "federalTaxWithheld": 8000,
            "address": {"street": "1 Main St", "city": "Springfield", "zipCode": "12345"},
            "unexpected": "dropped",
        }
        data = build_extracted_data("W-2", raw, {})

        assert isinstance(data, W2Data)
        assert data.taxpayer_name == "Jane Doe"
        assert data.wages == 60000.0
        assert data.federal_tax_withheld == 8000.0
        assert data.address == Address(street="1 Main St", city="Springfield", zip_code="12345")

    def test_unparseable_amount_kept_verbatim(self) -> None:
        data = build_extracted_data("W-2", {"wages": "sixty thousand"}, {})
        assert data.wages == "sixty thousand"

    def test_non_finite_amount_kept_as_text(self) -> None:
        data = build_extracted_data("W-2", {"wages": "inf"}, {})
        assert data.wages == "inf"

    def test_missing_values_are_none(self) -> None:
        data = build_extracted_data("W-2", {"wages": None, "tips": "", "address": "n/a"}, {})
        assert data.wages is None
        assert data.tips is None
        assert data.address is None

    def test_1099_variant(self) -> None:
        data = build_extracted_data(
            "1099-NEC", {"nonEmployeeCompensation": "12,500", "businessEin": "12-3456789"}, {}
        )
        assert isinstance(data, Form1099Data)
        assert data.non_employee_compensation == 12500.0
        assert data.business_ein == "12-3456789"

    def test_tax_return_variant_keeps_numeric_maps(self) -> None:
        data = build_extracted_data(
            "Schedule-C",
            {"grossReceipts": 90000, "itemizedDeductions": {"mortgage": "1,200", "gifts": "lots"}},
            {},
        )
        assert isinstance(data, TaxReturnData)
        assert data.gross_receipts == 90000.0
        assert data.itemized_deductions == {"mortgage": 1200.0}

    def test_expense_variant(self) -> None:
        data = build_extracted_data(
            "Receipt", {"businessName": "Coffee Shop", "amount": 4.5, "date": "2024-01-02"}, {}
        )
        assert isinstance(data, ExpenseData)
        assert data.amount == 4.5
        assert data.date == "2024-01-02"

    def test_unknown_type_uses_generic_fields(self) -> None:
        form_fields = {"Date_1": RawFormField(value="01/02/2024", confidence=0.85, type="date")}
        data = build_extracted_data(
            "Bank-Statement", {"extractedFields": {"balance": "100"}}, form_fields
        )
        assert isinstance(data, GenericData)
        assert data.fields == {"balance": "100"}
        assert data.form_fields == form_fields

    def test_generic_without_wrapper_keeps_all_keys(self) -> None:
        data = build_extracted_data("Unknown", {"accountNumber": "42"}, {})
        assert isinstance(data, GenericData)
        assert data.fields == {"account_number": "42"}
