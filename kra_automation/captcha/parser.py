import re

from kra_automation.captcha.exceptions import UnparseableCaptchaError

_DIGITS = re.compile(r"\d+")
_UNSUPPORTED = re.compile(r"\d\s*[*/x×÷X]\s*\d")


def strip_noise(text: str, noise_chars: int) -> str:
    """Trim whitespace and up to `noise_chars` trailing non-digit characters.

    The captcha font leaves one or two stray glyphs after the expression;
    digits are never removed.
    """
    cleaned = text.strip(" \t\r\n\f\v")
    removed = 0
    while cleaned and removed < noise_chars and not cleaned[-1].isdigit():
        cleaned = cleaned[:-1].rstrip()
        removed += 1
    return cleaned


def parse_arithmetic(text: str, noise_chars: int = 2) -> int:
    """Evaluate an OCR'd `a + b` or `a - b` challenge.

    Raises:
        UnparseableCaptchaError: fewer than two numbers, or an operator other
            than `+` and `-`.
    """
    cleaned = strip_noise(text, noise_chars)
    numbers = _DIGITS.findall(cleaned)
    if len(numbers) < 2:
        raise UnparseableCaptchaError(f"Expected two numbers in captcha text {text!r}")

    if _UNSUPPORTED.search(cleaned):
        raise UnparseableCaptchaError(f"Unsupported operator in captcha text {text!r}")

    first, second = int(numbers[0]), int(numbers[1])
    if "+" in cleaned:
        return first + second
    if "-" in cleaned:
        return first - second
    raise UnparseableCaptchaError(f"No supported operator in captcha text {text!r}")
