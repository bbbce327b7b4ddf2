from datetime import date
from typing import Any

from kra_automation.database.repositories.company_repository import CompanyRepository
from kra_automation.database.repositories.document_registry import DocumentRegistry
from kra_automation.database.repositories.extraction_repository import ExtractionRepository
from kra_automation.logging.logger import Log
from kra_automation.storage.base import BaseDocumentStore, document_path
from kra_automation.storage.exceptions import StorageError
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.models import DocumentBlob, ExtractionResult


class ResultSink:
    """Writes one company's result: documents, date-keyed history, and status."""

    def __init__(
        self,
        company_repo: CompanyRepository,
        extraction_repo: ExtractionRepository,
        registry: DocumentRegistry,
        store: BaseDocumentStore,
    ) -> None:
        self._company_repo = company_repo
        self._extraction_repo = extraction_repo
        self._registry = registry
        self._store = store

    def persist(
        self, task: BaseExtractionTask, result: ExtractionResult, run_date: date
    ) -> dict[str, Any]:
        """Upload documents, then upsert the record under the ISO run date.

        A failed upload is recorded in the record and does not stop the other
        documents or the history write. Returns the stored record.
        """
        company = result.company
        record = result.to_record()
        for blob in result.documents:
            record[blob.kind] = self._upload(task, result, blob, record)

        self._extraction_repo.upsert_extraction(
            task.table,
            company.key,
            company.company_name,
            run_date.isoformat(),
            record,
        )
        if task.updates_company_status:
            self._company_repo.update_status(company.id, result.status.value)
        Log.info(f"Persisted {task.feature} result for {company.company_name}: {result.status.value}")
        return record

    def _upload(
        self,
        task: BaseExtractionTask,
        result: ExtractionResult,
        blob: DocumentBlob,
        record: dict[str, Any],
    ) -> str | None:
        company = result.company
        remote_path = document_path(company.company_name, task.feature, blob.path.name)
        try:
            stored = self._store.upload(blob.path.read_bytes(), remote_path, blob.content_type)
        except (StorageError, OSError) as exc:
            Log.error(f"Upload of {blob.path.name} for {company.company_name} failed: {exc}")
            record.setdefault("upload_errors", []).append(f"{blob.kind}: {exc}")
            return None

        if blob.document_id:
            self._registry.register(company.id, blob.document_id, stored.path)
        return stored.url
