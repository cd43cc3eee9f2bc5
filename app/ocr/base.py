from abc import ABC, abstractmethod

from app.ocr.models import RawExtraction


class BaseOcrProvider(ABC):
    """Contract for all OCR / text-layer provider adapters."""

    name: str = "base"

    def is_configured(self) -> bool:
        """Whether credentials/config needed for a call are present."""
        return True

    def supports(self, mime_type: str) -> bool:
        """Whether the adapter can read documents of this MIME type."""
        return True

    @abstractmethod
    def recognize(self, file_bytes: bytes, mime_type: str) -> RawExtraction:
        """Extract raw text and layout from a document.

        Args:
            file_bytes: Raw file content.
            mime_type: MIME type reported at upload time.

        Returns:
            RawExtraction with text, blocks and whatever confidences the
            provider reports.

        Raises:
            OcrProviderError: on any provider failure.
        """
