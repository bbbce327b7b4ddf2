from dataclasses import dataclass
from enum import Enum


class LoginOutcome(str, Enum):
    """Terminal classification of one login attempt."""

    SUCCESS = "Success"
    WRONG_CAPTCHA = "WrongCaptcha"
    INVALID_CREDENTIALS = "InvalidCredentials"
    PASSWORD_EXPIRED = "PasswordExpired"
    ACCOUNT_LOCKED = "AccountLocked"
    TIMEOUT = "Timeout"
    UNKNOWN_ERROR = "UnknownError"


class SessionState(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    AWAITING_CAPTCHA = "AwaitingCaptcha"
    SUBMITTED = "Submitted"
    AUTHENTICATED = "Authenticated"
    CAPTCHA_REJECTED = "CaptchaRejected"
    CREDENTIALS_INVALID = "CredentialsInvalid"
    PASSWORD_EXPIRED = "PasswordExpired"
    ACCOUNT_LOCKED = "AccountLocked"
    TIMED_OUT = "TimedOut"
    FAILED = "Failed"


OUTCOME_STATES: dict[LoginOutcome, SessionState] = {
    LoginOutcome.SUCCESS: SessionState.AUTHENTICATED,
    LoginOutcome.WRONG_CAPTCHA: SessionState.CAPTCHA_REJECTED,
    LoginOutcome.INVALID_CREDENTIALS: SessionState.CREDENTIALS_INVALID,
    LoginOutcome.PASSWORD_EXPIRED: SessionState.PASSWORD_EXPIRED,
    LoginOutcome.ACCOUNT_LOCKED: SessionState.ACCOUNT_LOCKED,
    LoginOutcome.TIMEOUT: SessionState.TIMED_OUT,
    LoginOutcome.UNKNOWN_ERROR: SessionState.FAILED,
}


@dataclass(frozen=True)
class FeatureEntry:
    """How to reach one portal feature from the authenticated landing page.

    `menu_selectors` are top menu items to hover, tried in order because the
    menu position of a feature differs between account types. `marker_selector`
    is the submenu element that proves the menu opened; None means hovering the
    first candidate is enough. `open_script` is the page function that renders
    the feature form, and `form_marker` an element of that form whose
    visibility proves the feature was reached.
    """

    name: str
    menu_selectors: tuple[str, ...]
    open_script: str
    marker_selector: str | None = None
    form_marker: str | None = None


PIN_CERTIFICATE = FeatureEntry(
    name="PIN certificate reprint",
    menu_selectors=(
        "#ddtopmenubar > ul > li:nth-child(3) > a",
        "#ddtopmenubar > ul > li:nth-child(4) > a",
        "#ddtopmenubar > ul > li:nth-child(2) > a",
    ),
    marker_selector="#Returns > li:nth-child(4)",
    open_script="showReprintCertificate()",
    form_marker="#applicantType",
)

TCC_REPRINT = FeatureEntry(
    name="TCC reprint",
    menu_selectors=(
        "#ddtopmenubar > ul > li:nth-child(8) > a",
        "#ddtopmenubar > ul > li:nth-child(9) > a",
    ),
    open_script="showReprintTCC()",
    form_marker='input[value="Consult"], button:has-text("Consult")',
)

GENERAL_LEDGER = FeatureEntry(
    name="General ledger",
    menu_selectors=(
        "#ddtopmenubar > ul > li:nth-child(12) > a",
        "#ddtopmenubar > ul > li:nth-child(11) > a",
    ),
    marker_selector="#My\\ Ledger",
    open_script="showGeneralLedgerForm()",
    form_marker="#cmbTaxType",
)

E_RETURNS = FeatureEntry(
    name="e-Returns",
    menu_selectors=(
        "#ddtopmenubar > ul > li:nth-child(2) > a",
        "#ddtopmenubar > ul > li:nth-child(3) > a",
        "#ddtopmenubar > ul > li:nth-child(4) > a",
    ),
    marker_selector="#Returns > li:nth-child(3)",
    open_script="showEReturns()",
    form_marker="#regType",
)

LIABILITY_PAYMENT = FeatureEntry(
    name="Payment registration",
    menu_selectors=(
        "#ddtopmenubar > ul > li:nth-child(6) > a",
        "#ddtopmenubar > ul > li:nth-child(7) > a",
    ),
    open_script="showPaymentRegForm()",
    form_marker="#openPayRegForm",
)
