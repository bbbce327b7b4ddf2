import io

import pytesseract
from PIL import Image

from kra_automation.captcha.base import BaseOcrEngine
from kra_automation.captcha.exceptions import OcrEngineError
from kra_automation.config.settings import Settings


class TesseractOcrEngine(BaseOcrEngine):
    """Reads captcha images with the Tesseract binary through pytesseract."""

    def __init__(self, language: str = "eng", tesseract_cmd: str = "") -> None:
        self._language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    @classmethod
    def from_settings(cls, settings: Settings) -> "TesseractOcrEngine":
        return cls(language=settings.ocr_language, tesseract_cmd=settings.ocr_tesseract_cmd)

    def image_to_text(self, image_bytes: bytes) -> str:
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                # single text line
                return pytesseract.image_to_string(
                    image.convert("L"), lang=self._language, config="--psm 7"
                )
        except Exception as exc:
            raise OcrEngineError(f"tesseract failed: {exc}") from exc
