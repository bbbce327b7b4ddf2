import pymupdf

from kra_automation.pdf.base import BasePdfExtractor
from kra_automation.pdf.exceptions import PdfExtractionError


class PyMuPdfAdapter(BasePdfExtractor):
    def extract(self, pdf_bytes: bytes) -> str:
        if not pdf_bytes:
            raise PdfExtractionError("PDF is empty")
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf could not read certificate: {exc}") from exc
        return "\n".join(pages).strip()
