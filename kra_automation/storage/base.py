import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True)
class StoredDocument:
    path: str
    url: str


def storage_name(text: str) -> str:
    """Lowercase with every character outside [a-z0-9] replaced by '_'."""
    return re.sub(r"[^a-z0-9]", "_", text.lower())


def document_path(company_name: str, feature: str, filename: str, epoch_ms: int | None = None) -> str:
    """Remote path: company-documents/<company>/<feature>/<file>_<epoch>.<ext>."""
    pure = PurePosixPath(filename)
    stem = re.sub(r"[^a-zA-Z0-9]", "_", pure.stem)
    stamp = epoch_ms if epoch_ms is not None else int(time.time() * 1000)
    return (
        f"company-documents/{storage_name(company_name)}/{storage_name(feature)}/"
        f"{stem}_{stamp}{pure.suffix.lower()}"
    )


class BaseDocumentStore(ABC):
    """Contract for all document storage backends."""

    @abstractmethod
    def upload(self, data: bytes, remote_path: str, content_type: str) -> StoredDocument:
        """Store `data` at `remote_path` and return where it can be fetched.

        Raises:
            UploadError: if the backend rejects the write.
        """
