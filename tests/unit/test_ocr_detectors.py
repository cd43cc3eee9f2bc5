import pytest

from app.ocr.detectors import (
    DEFAULT_TOKEN_CONFIDENCE,
    blend_confidence,
    detect_form_fields,
    detect_language,
    detect_tables,
)
from app.ocr.models import BoundingBox, TextBlock


class TestBlendConfidence:
    def test_mean_of_token_confidences(self) -> None:
        assert blend_confidence([0.5, 1.0], has_text=True) == pytest.approx(0.75)

    def test_defaults_when_provider_reports_none(self) -> None:
        assert blend_confidence([], has_text=True) == DEFAULT_TOKEN_CONFIDENCE

    def test_zero_without_text(self) -> None:
        assert blend_confidence([0.99], has_text=False) == 0.0

    def test_clamped_to_unit_interval(self) -> None:
        assert blend_confidence([1.4, 1.2], has_text=True) == 1.0
        assert blend_confidence([-0.5], has_text=True) == 0.0


class TestDetectTables:
    def test_finds_consistent_columns(self) -> None:
        block = TextBlock(
            text="Item    Amount\nCoffee    4.50\nLunch    12.00",
            confidence=0.9,
        )
        tables = detect_tables([block], block.text)
        assert len(tables) == 1
        assert tables[0].headers == ["Item", "Amount"]
        assert tables[0].rows == [["Coffee", "4.50"], ["Lunch", "12.00"]]
        assert 0.0 <= tables[0].confidence <= 1.0

    def test_falls_back_to_full_text_without_blocks(self) -> None:
        text = "Box\tValue\n1\t60000.00\n2\t8000.00"
        tables = detect_tables([], text)
        assert len(tables) == 1
        assert tables[0].headers == ["Box", "Value"]

    def test_single_line_is_not_a_table(self) -> None:
        assert detect_tables([], "Total    42.00") == []

    def test_plain_prose_has_no_tables(self) -> None:
        text = "The quick brown fox jumps over the lazy dog.\nIt was a sunny day."
        assert detect_tables([], text) == []


class TestDetectFormFields:
    def test_detects_ssn_ein_and_amount(self) -> None:
        text = (
            "Social Security Number: 123-45-6789\n"
            "Employer ID Number: 12-3456789\n"
            "Wages $60,000.00"
        )
        fields = {f.name: f for f in detect_form_fields(text)}

        assert fields["SSN_1"].value == "123-45-6789"
        assert fields["EIN_1"].value == "12-3456789"
        assert fields["Amount_1"].value == "60,000.00"
        assert fields["Amount_1"].field_type == "number"

    def test_detects_dates_and_names(self) -> None:
        fields = {f.name: f for f in detect_form_fields("Employee: Jane Doe\nDate 03/15/2024")}
        assert fields["Name_1"].value == "Jane Doe"
        assert fields["Date_1"].value == "03/15/2024"
        assert fields["Date_1"].field_type == "date"

    def test_no_fields_for_plain_prose(self) -> None:
        assert detect_form_fields("The quick brown fox jumps over the lazy dog") == []

    def test_confidences_within_bounds(self) -> None:
        for form_field in detect_form_fields("SSN 123456789 paid $12.50 on 2024-01-31"):
            assert 0.0 <= form_field.confidence <= 1.0
            assert form_field.bounding_box == BoundingBox()


class TestDetectLanguage:
    def test_english_text(self) -> None:
        assert detect_language("Statement of the wages and the tax paid for the year") == "en"

    def test_empty_text(self) -> None:
        assert detect_language("   ") == "unknown"

    def test_numbers_only(self) -> None:
        assert detect_language("123 456 789") == "unknown"


class TestBoundingBox:
    def test_from_points_never_negative(self) -> None:
        box = BoundingBox.from_points([(-5.0, -3.0), (10.0, 20.0)])
        assert box.x == 0.0
        assert box.y == 0.0
        assert box.width == 15.0
        assert box.height == 23.0

    def test_from_points_with_one_point_is_empty(self) -> None:
        assert BoundingBox.from_points([(4.0, 4.0)]) == BoundingBox()
