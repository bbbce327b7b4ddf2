import io

import pdfplumber

from kra_automation.pdf.base import BasePdfExtractor
from kra_automation.pdf.exceptions import PdfExtractionError


class PdfPlumberAdapter(BasePdfExtractor):
    def extract(self, pdf_bytes: bytes) -> str:
        if not pdf_bytes:
            raise PdfExtractionError("PDF is empty")
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber could not read certificate: {exc}") from exc
        return "\n".join(pages).strip()
