from app.config.settings import Settings
from app.ocr.base import BaseOcrProvider
from app.ocr.document_ai_adapter import DocumentAiAdapter
from app.ocr.pdfplumber_adapter import PdfPlumberAdapter
from app.ocr.pymupdf_adapter import PyMuPdfAdapter
from app.ocr.vision_adapter import GoogleVisionAdapter


class OcrProviderFactory:
    """Creates the general and structured OCR providers based on settings."""

    GENERAL_ENGINES = ("google_vision",)
    STRUCTURED_ENGINES = ("document_ai", "pdfplumber", "pymupdf")

    @classmethod
    def create_general(cls, settings: Settings) -> BaseOcrProvider:
        engine = settings.ocr_general_engine.lower()
        if engine == "google_vision":
            return GoogleVisionAdapter(
                api_key=settings.google_vision_api_key,
                timeout_seconds=settings.ocr_timeout_seconds,
            )
        raise ValueError(
            f"Unknown general OCR engine '{engine}'. Choose from: {list(cls.GENERAL_ENGINES)}"
        )

    @classmethod
    def create_structured(cls, settings: Settings) -> BaseOcrProvider:
        engine = settings.ocr_structured_engine.lower()
        if engine == "document_ai":
            return DocumentAiAdapter(
                project_id=settings.google_document_ai_project_id,
                location=settings.google_document_ai_location,
                processor_id=settings.google_document_ai_processor_id,
                access_token=settings.google_document_ai_access_token,
                timeout_seconds=settings.ocr_timeout_seconds,
            )
        if engine == "pdfplumber":
            return PdfPlumberAdapter()
        if engine == "pymupdf":
            return PyMuPdfAdapter()
        raise ValueError(
            f"Unknown structured OCR engine '{engine}'. "
            f"Choose from: {list(cls.STRUCTURED_ENGINES)}"
        )
