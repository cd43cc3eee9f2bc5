import io

import pdfplumber

from app.ocr.base import BaseOcrProvider
from app.ocr.detectors import DEFAULT_TOKEN_CONFIDENCE, TABLE_CONFIDENCE
from app.ocr.exceptions import OcrProviderError
from app.ocr.models import BoundingBox, RawExtraction, TableData, TextBlock


class PdfPlumberAdapter(BaseOcrProvider):
    """Reads the embedded text layer and ruled tables of a PDF with pdfplumber."""

    name = "pdfplumber"

    def supports(self, mime_type: str) -> bool:
        return mime_type == "application/pdf"

    def recognize(self, file_bytes: bytes, mime_type: str) -> RawExtraction:
        if not self.supports(mime_type):
            raise OcrProviderError(f"pdfplumber cannot read {mime_type}")
        try:
            with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
                texts: list[str] = []
                blocks: list[TextBlock] = []
                tables: list[TableData] = []
                for page in pdf.pages:
                    texts.append(page.extract_text() or "")
                    for line in page.extract_text_lines():
                        blocks.append(
                            TextBlock(
                                text=line["text"],
                                confidence=DEFAULT_TOKEN_CONFIDENCE,
                                bounding_box=BoundingBox.from_edges(
                                    line["x0"], line["top"], line["x1"], line["bottom"]
                                ),
                                block_type="line",
                            )
                        )
                    tables.extend(_to_table(raw) for raw in page.extract_tables() if len(raw) > 1)
                page_count = len(pdf.pages)
        except OcrProviderError:
            raise
        except Exception as exc:
            raise OcrProviderError(f"pdfplumber extraction failed: {exc}") from exc

        return RawExtraction(
            text="\n".join(texts).strip(),
            provider=self.name,
            page_count=max(page_count, 1),
            blocks=blocks,
            tables=tables,
        )


def _to_table(raw: list[list[str | None]]) -> TableData:
    rows = [[(cell or "").strip() for cell in row] for row in raw]
    return TableData(headers=rows[0], rows=rows[1:], confidence=TABLE_CONFIDENCE)
