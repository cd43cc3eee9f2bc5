import base64
from typing import Any

import httpx

from app.ocr.base import BaseOcrProvider
from app.ocr.exceptions import OcrProviderError
from app.ocr.models import BoundingBox, DetectedFormField, RawExtraction, TextBlock


class DocumentAiAdapter(BaseOcrProvider):
    """Structured extraction through a Google Document AI form processor."""

    name = "google_document_ai"

    def __init__(
        self,
        *,
        project_id: str,
        location: str,
        processor_id: str,
        access_token: str,
        timeout_seconds: int,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._project_id = project_id
        self._location = location
        self._processor_id = processor_id
        self._access_token = access_token
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def is_configured(self) -> bool:
        return all(
            (self._project_id, self._location, self._processor_id, self._access_token)
        )

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self._location}-documentai.googleapis.com/v1/projects/"
            f"{self._project_id}/locations/{self._location}/processors/"
            f"{self._processor_id}:process"
        )

    def recognize(self, file_bytes: bytes, mime_type: str) -> RawExtraction:
        if not self.is_configured():
            raise OcrProviderError("Google Document AI is not configured")
        body = {
            "rawDocument": {
                "content": base64.b64encode(file_bytes).decode("ascii"),
                "mimeType": mime_type,
            }
        }
        try:
            response = self._client.post(
                self.endpoint,
                json=body,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise OcrProviderError(f"Document AI request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise OcrProviderError(
                f"Document AI error: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise OcrProviderError(f"Document AI network error: {exc}") from exc

        document = response.json().get("document")
        if document is None:
            raise OcrProviderError("Document AI response has no document")
        return self._parse_document(document)

    def _parse_document(self, document: dict[str, Any]) -> RawExtraction:
        text = document.get("text", "")
        pages = document.get("pages") or []
        blocks: list[TextBlock] = []
        token_confidences: list[float] = []
        form_fields: list[DetectedFormField] = []

        for page in pages:
            for block in page.get("blocks") or []:
                layout = block.get("layout") or {}
                blocks.append(
                    TextBlock(
                        text=_anchor_text(text, layout).strip(),
                        confidence=float(layout.get("confidence", 0.9)),
                        bounding_box=_bounding_box(layout.get("boundingPoly")),
                        block_type="paragraph",
                    )
                )
            for token in page.get("tokens") or []:
                confidence = (token.get("layout") or {}).get("confidence")
                if confidence is not None:
                    token_confidences.append(float(confidence))
            for form_field in page.get("formFields") or []:
                name_layout = form_field.get("fieldName") or {}
                value_layout = form_field.get("fieldValue") or {}
                name = _anchor_text(text, name_layout).strip().rstrip(":")
                value = _anchor_text(text, value_layout).strip()
                if not name or not value:
                    continue
                form_fields.append(
                    DetectedFormField(
                        name=name,
                        value=value,
                        field_type="text",
                        confidence=float(value_layout.get("confidence", 0.85)),
                        bounding_box=_bounding_box(value_layout.get("boundingPoly")),
                    )
                )

        return RawExtraction(
            text=text,
            provider=self.name,
            page_count=max(len(pages), 1),
            blocks=blocks,
            token_confidences=token_confidences,
            form_fields=form_fields,
        )


def _anchor_text(text: str, layout: dict[str, Any]) -> str:
    anchor = layout.get("textAnchor") or {}
    parts = []
    for segment in anchor.get("textSegments") or []:
        start = int(segment.get("startIndex", 0))
        end = int(segment.get("endIndex", 0))
        parts.append(text[start:end])
    return "".join(parts)


def _bounding_box(poly: dict[str, Any] | None) -> BoundingBox:
    if not poly:
        return BoundingBox()
    vertices = poly.get("vertices") or poly.get("normalizedVertices") or []
    return BoundingBox.from_points(
        [(float(v.get("x", 0)), float(v.get("y", 0))) for v in vertices]
    )
