class CaptchaError(Exception):
    """Base exception for captcha solving failures."""


class UnparseableCaptchaError(CaptchaError):
    """Raised when OCR text cannot be read as a supported arithmetic challenge."""


class OcrEngineError(CaptchaError):
    """Raised when the OCR engine itself fails to process an image."""
