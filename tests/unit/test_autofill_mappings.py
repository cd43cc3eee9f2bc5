from app.analysis.models import AnalysisResult, ExpenseData, ExtractedData, W2Data
from app.autofill.mappings import field_mapping, is_business_expense, target_forms


def _analysis(document_type: str, data: ExtractedData | None = None) -> AnalysisResult:
    return AnalysisResult(
        document_type=document_type, confidence=0.9, extracted_data=data or W2Data()
    )


class TestTargetForms:
    def test_income_documents_feed_form_1040(self) -> None:
        for document_type in ("W-2", "1099-NEC", "1099-MISC", "1099-INT", "1099-DIV"):
            assert target_forms(_analysis(document_type)) == ["Form-1040"]

    def test_schedule_c_feeds_itself_then_1040(self) -> None:
        assert target_forms(_analysis("Schedule-C")) == ["Schedule-C", "Form-1040"]

    def test_business_receipt_feeds_schedule_c(self) -> None:
        data = ExpenseData(amount=120.0, category="Office Supplies")
        assert target_forms(_analysis("Receipt", data)) == ["Schedule-C"]

    def test_personal_receipt_feeds_nothing(self) -> None:
        data = ExpenseData(amount=30.0, category="groceries")
        assert target_forms(_analysis("Receipt", data)) == []

    def test_unknown_feeds_nothing(self) -> None:
        assert target_forms(_analysis("Unknown")) == []


class TestFieldMapping:
    def test_w2_into_form_1040(self) -> None:
        mapping = field_mapping("Form-1040", "W-2")
        assert mapping["line_1a"] == "wages"
        assert mapping["line_25a"] == "federal_tax_withheld"

    def test_interest_income_line(self) -> None:
        assert field_mapping("Form-1040", "1099-INT")["line_2b"] == "interest_income"

    def test_unknown_pair_is_empty(self) -> None:
        assert field_mapping("Form-1040", "Receipt") == {}
        assert field_mapping("Schedule-E", "W-2") == {}


class TestIsBusinessExpense:
    def test_category_substring_match(self) -> None:
        assert is_business_expense(_analysis("Receipt", ExpenseData(category="Business travel")))

    def test_missing_category(self) -> None:
        assert not is_business_expense(_analysis("Receipt", ExpenseData()))
