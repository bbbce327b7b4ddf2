from pathlib import Path

from kra_automation.storage.base import BaseDocumentStore, StoredDocument
from kra_automation.storage.exceptions import UploadError


class LocalDocumentStore(BaseDocumentStore):
    """Writes documents under a local directory; used for development and tests."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def upload(self, data: bytes, remote_path: str, content_type: str) -> StoredDocument:
        target = (self._root / remote_path).resolve()
        if not target.is_relative_to(self._root.resolve()):
            raise UploadError(f"Path escapes storage root: {remote_path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise UploadError(f"Cannot write {target}: {exc}") from exc
        return StoredDocument(path=remote_path, url=target.as_uri())
