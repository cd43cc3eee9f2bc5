import base64
from typing import Any

import httpx

from app.ocr.base import BaseOcrProvider
from app.ocr.exceptions import OcrProviderError
from app.ocr.models import BoundingBox, RawExtraction, TextBlock


class GoogleVisionAdapter(BaseOcrProvider):
    """General-purpose OCR through the Google Cloud Vision REST API."""

    name = "google_vision"
    BASE_URL = "https://vision.googleapis.com/v1"
    # Vision only accepts these through files:annotate
    FILE_MIME_TYPES = frozenset({"application/pdf", "image/tiff", "image/gif"})

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def recognize(self, file_bytes: bytes, mime_type: str) -> RawExtraction:
        if not self._api_key:
            raise OcrProviderError("Google Vision API key not configured")

        content = base64.b64encode(file_bytes).decode("ascii")
        if mime_type in self.FILE_MIME_TYPES:
            data = self._post(
                "files:annotate",
                {
                    "requests": [{
                        "inputConfig": {"content": content, "mimeType": mime_type},
                        "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
                    }]
                },
            )
            file_response = self._first_response(data)
            annotations = file_response.get("responses") or []
        else:
            data = self._post(
                "images:annotate",
                {
                    "requests": [{
                        "image": {"content": content},
                        "features": [
                            {"type": "TEXT_DETECTION", "maxResults": 1},
                            {"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1},
                        ],
                        "imageContext": {"languageHints": ["en"]},
                    }]
                },
            )
            annotations = [self._first_response(data)]

        return self._parse_annotations(annotations)

    def _post(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.BASE_URL}/{method}"
        try:
            response = self._client.post(url, params={"key": self._api_key}, json=body)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise OcrProviderError(f"Google Vision request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise OcrProviderError(
                f"Google Vision API error: {exc.response.status_code} "
                f"{exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise OcrProviderError(f"Google Vision network error: {exc}") from exc
        return response.json()

    @staticmethod
    def _first_response(data: dict[str, Any]) -> dict[str, Any]:
        responses = data.get("responses") or []
        if not responses:
            raise OcrProviderError("Google Vision returned no responses")
        first = responses[0]
        error = first.get("error")
        if error:
            raise OcrProviderError(f"Vision API error: {error.get('message', error)}")
        return first

    def _parse_annotations(self, annotations: list[dict[str, Any]]) -> RawExtraction:
        texts: list[str] = []
        blocks: list[TextBlock] = []
        token_confidences: list[float] = []
        page_count = 0

        for annotation in annotations:
            if annotation.get("error"):
                raise OcrProviderError(
                    f"Vision API error: {annotation['error'].get('message')}"
                )
            full = annotation.get("fullTextAnnotation")
            if not full:
                continue
            texts.append(full.get("text", ""))
            pages = full.get("pages") or []
            page_count += len(pages) or 1
            for page in pages:
                for block in page.get("blocks") or []:
                    block_text, symbol_confidences, word_confidences = _walk_block(block)
                    token_confidences.extend(word_confidences)
                    blocks.append(
                        TextBlock(
                            text=block_text,
                            confidence=_block_confidence(block, symbol_confidences),
                            bounding_box=_bounding_box(block.get("boundingBox")),
                            block_type="paragraph",
                        )
                    )

        return RawExtraction(
            text="\n".join(t for t in texts if t),
            provider=self.name,
            page_count=max(page_count, 1),
            blocks=blocks,
            token_confidences=token_confidences,
        )


def _walk_block(block: dict[str, Any]) -> tuple[str, list[float], list[float]]:
    paragraphs: list[str] = []
    symbol_confidences: list[float] = []
    word_confidences: list[float] = []
    for paragraph in block.get("paragraphs") or []:
        words: list[str] = []
        for word in paragraph.get("words") or []:
            symbols = word.get("symbols") or []
            words.append("".join(s.get("text", "") for s in symbols))
            symbol_confidences.extend(
                float(s["confidence"]) for s in symbols if "confidence" in s
            )
            if "confidence" in word:
                word_confidences.append(float(word["confidence"]))
        paragraphs.append(" ".join(words))
    return "\n".join(paragraphs), symbol_confidences, word_confidences


def _block_confidence(block: dict[str, Any], symbol_confidences: list[float]) -> float:
    if "confidence" in block:
        return float(block["confidence"])
    if symbol_confidences:
        return sum(symbol_confidences) / len(symbol_confidences)
    return 0.9


def _bounding_box(raw: dict[str, Any] | None) -> BoundingBox:
    if not raw:
        return BoundingBox()
    vertices = raw.get("vertices") or raw.get("normalizedVertices") or []
    if len(vertices) < 4:
        return BoundingBox()
    return BoundingBox.from_points(
        [(float(v.get("x", 0)), float(v.get("y", 0))) for v in vertices]
    )
