from abc import ABC, abstractmethod


class BasePdfExtractor(ABC):
    """Contract for PDF text extraction adapters used to check downloaded certificates."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Return the text of every page joined by newlines.

        Raises:
            PdfExtractionError: if the bytes are not a readable PDF.
        """
