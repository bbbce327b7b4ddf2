from kra_automation.captcha.base import BaseOcrEngine
from kra_automation.captcha.exceptions import CaptchaError, UnparseableCaptchaError
from kra_automation.captcha.solver import CaptchaSolver

__all__ = ["BaseOcrEngine", "CaptchaError", "CaptchaSolver", "UnparseableCaptchaError"]
