class TaskError(Exception):
    """Base exception for extraction task failures."""


class DocumentVerificationError(TaskError):
    """Raised when a downloaded document is empty or unreadable."""


class UnknownFeatureError(TaskError):
    """Raised when no task is registered for a feature name."""


class MissingCredentialsError(TaskError):
    """Raised when a portal step needs a PIN or password the company does not have."""
