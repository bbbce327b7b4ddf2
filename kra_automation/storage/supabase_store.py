from supabase import Client, create_client

from kra_automation.config.settings import Settings
from kra_automation.storage.base import BaseDocumentStore, StoredDocument
from kra_automation.storage.exceptions import StorageError, UploadError


class SupabaseDocumentStore(BaseDocumentStore):
    """Uploads to a Supabase storage bucket and returns the public URL."""

    def __init__(self, client: Client, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseDocumentStore":
        if not settings.supabase_url or not settings.supabase_key:
            raise StorageError("SUPABASE_URL and SUPABASE_KEY must be set for supabase storage")
        return cls(create_client(settings.supabase_url, settings.supabase_key), settings.storage_bucket)

    def upload(self, data: bytes, remote_path: str, content_type: str) -> StoredDocument:
        bucket = self._client.storage.from_(self._bucket)
        try:
            bucket.upload(
                remote_path,
                data,
                {"content-type": content_type, "upsert": "false"},
            )
            url = bucket.get_public_url(remote_path)
        except Exception as exc:
            raise UploadError(f"Upload of {remote_path} failed: {exc}") from exc
        return StoredDocument(path=remote_path, url=url)
