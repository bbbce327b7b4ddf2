from pathlib import Path

from kra_automation.config.settings import Settings
from kra_automation.storage.base import BaseDocumentStore
from kra_automation.storage.local_store import LocalDocumentStore
from kra_automation.storage.supabase_store import SupabaseDocumentStore


class DocumentStoreFactory:
    """Creates the storage backend named by `storage_backend`."""

    BACKENDS = ("supabase", "local")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentStore:
        backend = settings.storage_backend.lower()
        if backend == "supabase":
            return SupabaseDocumentStore.from_settings(settings)
        if backend == "local":
            return LocalDocumentStore(Path(settings.local_storage_root))
        raise ValueError(f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}")
