class PortalError(Exception):
    """Base exception for all portal automation errors."""


class BrowserLaunchError(PortalError):
    """Raised when no configured browser channel can be launched."""


class NavigationError(PortalError):
    """Raised when a page step fails after its retry budget is spent."""


class FeatureNotFoundError(NavigationError):
    """Raised when every entry-point strategy for a portal feature fails."""


class CaptchaExhaustedError(PortalError):
    """Raised when a secondary form rejects every captcha answer within its budget."""


class DownloadError(PortalError):
    """Raised when an expected file download never arrives or is empty."""
