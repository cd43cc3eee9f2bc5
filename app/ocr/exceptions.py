class OcrProviderError(Exception):
    """Raised by a provider adapter when the OCR call or its response is unusable."""


class ExtractionFailure(Exception):
    """Raised by the text extraction stage when no OCR result could be produced."""
