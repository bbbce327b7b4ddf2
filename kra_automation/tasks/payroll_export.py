from datetime import date

from playwright.sync_api import Page

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.exceptions import DownloadError
from kra_automation.portal.factory import SessionFactory
from kra_automation.portal.wingu import PAYROLL_DOCUMENTS, WinguSession, match_company
from kra_automation.tasks.base import BaseExtractionTask, safe_filename
from kra_automation.tasks.models import CompanyStatus, DocumentBlob, ExtractionResult


class PayrollExportTask(BaseExtractionTask):
    """Downloads the monthly statutory exports from the payroll portal.

    Uses the shared payroll service account, so company credentials are not
    required. A failed document is recorded and the remaining ones are still
    attempted.
    """

    feature = "payroll_export"
    table = "company_payroll_records"
    progress_table = "PayrollExport_AutomationProgress"
    report_columns = tuple(
        (f"{document.name} Status", f"{document.field}_status") for document in PAYROLL_DOCUMENTS
    )

    def check_preconditions(self, company: CompanyRecord) -> ExtractionResult | None:
        if not (self._settings.wingu_email and self._settings.wingu_password):
            return ExtractionResult.failure(
                company, self.feature, "Payroll portal credentials are not configured"
            )
        return None

    def open_session(self, page: Page, sessions: SessionFactory) -> WinguSession:
        return sessions.wingu(page)

    def run(self, company: CompanyRecord, session: WinguSession) -> ExtractionResult:
        session.login()
        match = match_company(company.company_name, session.list_companies())
        if match is None:
            return ExtractionResult.success(company, self.feature, CompanyStatus.COMPANY_NOT_FOUND)

        admin = session.open_company_admin(match)
        month = date.today().strftime("%Y-%m")
        directory = self._download_dir(company) / month
        payload: dict[str, object] = {"payroll_company": match.name, "month": month}
        documents: list[DocumentBlob] = []
        failures: list[str] = []

        for document in PAYROLL_DOCUMENTS:
            filename = f"{safe_filename(match.name)}_{document.name.replace(' ', '_')}.{document.extension}"
            try:
                path = session.download_export(admin, document, directory, filename)
            except DownloadError as exc:
                Log.warning(f"{company.company_name}: {document.name} failed: {exc}")
                payload[f"{document.field}_status"] = "failed"
                failures.append(f"{document.name}: {exc}")
                continue
            payload[f"{document.field}_status"] = "completed"
            documents.append(self._blob(path, document.field))

        if failures:
            payload["failed_documents"] = failures
        if not documents:
            return ExtractionResult.failure(
                company, self.feature, "; ".join(failures), payload=payload
            )
        return ExtractionResult.success(
            company, self.feature, CompanyStatus.COMPLETED, payload, documents
        )
