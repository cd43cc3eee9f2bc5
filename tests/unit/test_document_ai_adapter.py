import json

import httpx
import pytest

from app.ocr.document_ai_adapter import DocumentAiAdapter
from app.ocr.exceptions import OcrProviderError

_TEXT = "Employee Name: Jane Doe\nWages 60000.00\n"


def _document() -> dict:
    return {
        "document": {
            "text": _TEXT,
            "pages": [
                {
                    "blocks": [
                        {
                            "layout": {
                                "confidence": 0.97,
                                "textAnchor": {"textSegments": [{"endIndex": 24}]},
                                "boundingPoly": {
                                    "vertices": [{"x": 5, "y": 5}, {"x": 200, "y": 5}, {"x": 200, "y": 30}]
                                },
                            }
                        }
                    ],
                    "tokens": [
                        {"layout": {"confidence": 0.99}},
                        {"layout": {"confidence": 0.95}},
                        {"layout": {}},
                    ],
                    "formFields": [
                        {
                            "fieldName": {"textAnchor": {"textSegments": [{"endIndex": 14}]}},
                            "fieldValue": {
                                "confidence": 0.93,
                                "textAnchor": {"textSegments": [{"startIndex": 15, "endIndex": 23}]},
                            },
                        },
                        {
                            "fieldName": {"textAnchor": {"textSegments": [{"startIndex": 24, "endIndex": 29}]}},
                            "fieldValue": {},
                        },
                    ],
                }
            ],
        }
    }


def _adapter(handler, **overrides) -> DocumentAiAdapter:  # type: ignore[no-untyped-def]
    params = {
        "project_id": "proj",
        "location": "us",
        "processor_id": "proc-1",
        "access_token": "token-1",
        "timeout_seconds": 5,
    }
    params.update(overrides)
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return DocumentAiAdapter(http_client=client, **params)


class TestDocumentAiAdapter:
    def test_posts_to_processor_endpoint_with_bearer_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_document())

        _adapter(handler).recognize(b"%PDF", "application/pdf")

        request = seen[0]
        assert str(request.url) == (
            "https://us-documentai.googleapis.com/v1/projects/proj/locations/us/processors/proc-1:process"
        )
        assert request.headers["Authorization"] == "Bearer token-1"
        assert json.loads(request.content)["rawDocument"]["mimeType"] == "application/pdf"

    def test_parses_blocks_tokens_and_form_fields(self) -> None:
        result = _adapter(lambda request: httpx.Response(200, json=_document())).recognize(
            b"%PDF", "application/pdf"
        )

        assert result.text == _TEXT
        assert result.provider == "google_document_ai"
        assert result.page_count == 1
        assert result.token_confidences == [0.99, 0.95]
        assert result.blocks[0].text == "Employee Name: Jane Doe"
        assert result.blocks[0].confidence == 0.97
        assert result.blocks[0].bounding_box.width == 195.0
        assert len(result.form_fields) == 1
        form_field = result.form_fields[0]
        assert form_field.name == "Employee Name"
        assert form_field.value == "Jane Doe"
        assert form_field.confidence == 0.93

    def test_not_configured_without_processor(self) -> None:
        adapter = _adapter(lambda request: httpx.Response(200), processor_id="")
        assert adapter.is_configured() is False
        with pytest.raises(OcrProviderError, match="not configured"):
            adapter.recognize(b"%PDF", "application/pdf")

    def test_http_error(self) -> None:
        adapter = _adapter(lambda request: httpx.Response(403))
        with pytest.raises(OcrProviderError, match="403"):
            adapter.recognize(b"%PDF", "application/pdf")

    def test_response_without_document(self) -> None:
        adapter = _adapter(lambda request: httpx.Response(200, json={}))
        with pytest.raises(OcrProviderError, match="no document"):
            adapter.recognize(b"%PDF", "application/pdf")

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(OcrProviderError, match="timed out"):
            _adapter(handler).recognize(b"%PDF", "application/pdf")
