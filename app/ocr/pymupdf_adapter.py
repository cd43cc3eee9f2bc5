import pymupdf

from app.ocr.base import BaseOcrProvider
from app.ocr.detectors import DEFAULT_TOKEN_CONFIDENCE
from app.ocr.exceptions import OcrProviderError
from app.ocr.models import BoundingBox, RawExtraction, TextBlock

# get_text("blocks") tuple: (x0, y0, x1, y1, text, block_no, block_type)
_TEXT_BLOCK = 0


class PyMuPdfAdapter(BaseOcrProvider):
    """Reads the embedded text layer of a PDF with PyMuPDF."""

    name = "pymupdf"

    def supports(self, mime_type: str) -> bool:
        return mime_type == "application/pdf"

    def recognize(self, file_bytes: bytes, mime_type: str) -> RawExtraction:
        if not self.supports(mime_type):
            raise OcrProviderError(f"pymupdf cannot read {mime_type}")
        try:
            with pymupdf.open(stream=file_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                texts: list[str] = []
                blocks: list[TextBlock] = []
                for page in doc:
                    texts.append(page.get_text())
                    for x0, y0, x1, y1, text, _, block_type in page.get_text("blocks"):
                        if block_type != _TEXT_BLOCK or not text.strip():
                            continue
                        blocks.append(
                            TextBlock(
                                text=text.strip(),
                                confidence=DEFAULT_TOKEN_CONFIDENCE,
                                bounding_box=BoundingBox.from_edges(x0, y0, x1, y1),
                            )
                        )
                page_count = doc.page_count
        except OcrProviderError:
            raise
        except Exception as exc:
            raise OcrProviderError(f"pymupdf extraction failed: {exc}") from exc

        return RawExtraction(
            text="\n".join(texts).strip(),
            provider=self.name,
            page_count=max(page_count, 1),
            blocks=blocks,
        )
