from pathlib import Path

from kra_automation.logging.logger import Log
from kra_automation.pdf.base import BasePdfExtractor
from kra_automation.pdf.exceptions import PdfExtractionError
from kra_automation.tasks.exceptions import DocumentVerificationError


class CertificateVerifier:
    """Checks a downloaded certificate before it is uploaded."""

    def __init__(self, extractor: BasePdfExtractor) -> None:
        self._extractor = extractor

    def verify(self, path: Path, expected_pin: str | None = None) -> str:
        """Return the certificate text.

        Raises:
            DocumentVerificationError: empty file, unreadable PDF, or no text.
        """
        data = path.read_bytes()
        if not data:
            raise DocumentVerificationError(f"Downloaded file is empty: {path}")
        try:
            text = self._extractor.extract(data)
        except PdfExtractionError as exc:
            raise DocumentVerificationError(f"Certificate is not a readable PDF: {path}") from exc
        if not text:
            raise DocumentVerificationError(f"Certificate has no text: {path}")
        if expected_pin and expected_pin.upper() not in text.upper():
            Log.warning(f"Certificate {path.name} does not mention PIN {expected_pin}")
        return text
