from kra_automation.config.settings import Settings
from kra_automation.pdf.base import BasePdfExtractor
from kra_automation.pdf.pdfplumber_adapter import PdfPlumberAdapter
from kra_automation.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the PDF engine named by `pdf_engine`."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
