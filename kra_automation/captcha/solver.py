from kra_automation.captcha.base import BaseOcrEngine
from kra_automation.captcha.parser import parse_arithmetic
from kra_automation.logging.logger import Log


class CaptchaSolver:
    """Turns a captcha image into the integer answer the portal expects."""

    def __init__(self, ocr: BaseOcrEngine, noise_chars: int = 2) -> None:
        self._ocr = ocr
        self._noise_chars = noise_chars

    def solve(self, image_bytes: bytes) -> int:
        """Raises UnparseableCaptchaError or OcrEngineError; callers own the retry budget."""
        text = self._ocr.image_to_text(image_bytes)
        answer = parse_arithmetic(text, self._noise_chars)
        Log.debug(f"Captcha read as {text.strip()!r} -> {answer}")
        return answer
