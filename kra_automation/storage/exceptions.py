class StorageError(Exception):
    """Base exception for document storage failures."""


class UploadError(StorageError):
    """Raised when a document cannot be written to storage."""
