import json
from unittest.mock import MagicMock

import pytest

from app.analysis.engine import AnalysisEngine, normalize_document_type
from app.analysis.exceptions import AnalysisFailure
from app.analysis.models import GenericData, W2Data
from app.llm.exceptions import LlmNetworkError
from app.ocr.models import DetectedFormField, OcrResult

_W2_REPLY = json.dumps(
    {
        "taxpayerName": "Jane Doe",
        "taxpayerSSN": "123-45-6789",
        "wages": 60000,
        "federalTaxWithheld": 8000,
    }
)


def _ocr_result() -> OcrResult:
    return OcrResult(
        text="Form W-2 Wage and Tax Statement\nWages 60000.00",
        confidence=0.9,
        form_fields=[
            DetectedFormField(name="Amount_1", value="60000.00", field_type="number", confidence=0.85)
        ],
    )


def _engine(completer: MagicMock, documents: MagicMock | None = None) -> AnalysisEngine:
    return AnalysisEngine(completer=completer, documents=documents or MagicMock())


class TestAnalysisEngine:
    def test_full_analysis(self) -> None:
        completer = MagicMock()
        completer.complete.side_effect = ["W-2", _W2_REPLY]
        documents = MagicMock()

        result = _engine(completer, documents).analyze(3, _ocr_result())

        assert result.document_type == "W-2"
        assert isinstance(result.extracted_data, W2Data)
        assert result.extracted_data.wages == 60000.0
        assert result.extracted_data.form_fields["Amount_1"].value == "60000.00"
        assert all(r.is_valid for r in result.validation_results)
        assert "tax_optimization" in [i.type for i in result.insights]
        assert "Verify all amounts match the original W-2 form" in result.recommendations
        assert result.degraded is False
        expected_validation = (0.95 + 0.9 + 0.9) / 3
        assert result.confidence == pytest.approx((0.9 + expected_validation) / 2)
        documents.update_status.assert_called_once_with(
            3, "analyzing", "Starting AI document analysis"
        )
        documents.save_analysis_result.assert_called_once_with(3, result)

    def test_extraction_prompt_names_type_and_schema(self) -> None:
        completer = MagicMock()
        completer.complete.side_effect = ["W-2", _W2_REPLY]

        _engine(completer).analyze(3, _ocr_result())

        extraction_prompt = completer.complete.call_args_list[1].args[0]
        assert "W-2 document" in extraction_prompt
        assert "federal_tax_withheld" in extraction_prompt

    def test_llm_outage_degrades_instead_of_failing(self) -> None:
        completer = MagicMock()
        completer.complete.side_effect = LlmNetworkError("down")

        result = _engine(completer).analyze(3, _ocr_result())

        assert result.document_type == "Unknown"
        assert isinstance(result.extracted_data, GenericData)
        assert "Amount_1" in result.extracted_data.form_fields
        assert result.degraded_steps == ("document_type", "extraction")
        assert result.confidence == 0.9
        assert result.insights[0].title == "Automatic Analysis Incomplete"

    def test_unparseable_extraction_reply_degrades(self) -> None:
        completer = MagicMock()
        completer.complete.side_effect = ["W-2", "Sorry, I cannot help with that."]

        result = _engine(completer).analyze(3, _ocr_result())

        assert result.document_type == "W-2"
        assert isinstance(result.extracted_data, GenericData)
        assert result.degraded_steps == ("extraction",)

    def test_persistence_failure_raises_analysis_failure(self) -> None:
        completer = MagicMock()
        completer.complete.side_effect = ["W-2", _W2_REPLY]
        documents = MagicMock()
        documents.save_analysis_result.side_effect = RuntimeError("db down")

        with pytest.raises(AnalysisFailure, match="db down"):
            _engine(completer, documents).analyze(3, _ocr_result())


class TestNormalizeDocumentType:
    @pytest.mark.parametrize(
        ("reply", "expected"),
        [
            ("W-2", "W-2"),
            ("  w-2\n", "W-2"),
            ("`Schedule-C`", "Schedule-C"),
            ("1099-INT.", "1099-INT"),
            ("bank-statement", "Bank-Statement"),
            ("Receipt\nBecause it lists a vendor.", "Receipt"),
            ("A W-2 form", "Unknown"),
            ("", "Unknown"),
        ],
    )
    def test_maps_reply_to_known_type(self, reply: str, expected: str) -> None:
        assert normalize_document_type(reply) == expected
