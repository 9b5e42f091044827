from enum import Enum

from app.config.settings import Settings
from app.pdf.base import BasePdfExtractor
from app.pdf.pdfplumber_adapter import PdfPlumberAdapter
from app.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfEngine(str, Enum):
    PDFPLUMBER = "pdfplumber"
    PYMUPDF = "pymupdf"


_ADAPTERS: dict[PdfEngine, type[BasePdfExtractor]] = {
    PdfEngine.PDFPLUMBER: PdfPlumberAdapter,
    PdfEngine.PYMUPDF: PyMuPdfAdapter,
}


class PdfExtractorFactory:
    """Builds the text extractor the application detector scans with."""

    @staticmethod
    def create(settings: Settings) -> BasePdfExtractor:
        try:
            engine = PdfEngine(settings.pdf_engine.strip().lower())
        except ValueError:
            choices = [e.value for e in PdfEngine]
            raise ValueError(
                f"Unknown PDF engine '{settings.pdf_engine}'. Choose from: {choices}"
            ) from None
        return _ADAPTERS[engine](max_pages=settings.detection_max_pages)
