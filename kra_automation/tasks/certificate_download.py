from pathlib import Path

from kra_automation.config.settings import Settings
from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.pdf.factory import PdfExtractorFactory
from kra_automation.portal.models import PIN_CERTIFICATE, TCC_REPRINT
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import BaseExtractionTask, safe_filename
from kra_automation.tasks.models import CompanyStatus, DocumentBlob, ExtractionResult
from kra_automation.tasks.verification import CertificateVerifier

TCC_FIELDS = (
    "serial_no",
    "pin",
    "taxpayer_name",
    "status",
    "certificate_date",
    "expiry_date",
    "certificate_serial_no",
)


def parse_tcc_rows(rows: list[list[str]]) -> list[dict[str, str]]:
    """Turn the TCC reprint table into records; short rows are skipped."""
    return [
        dict(zip(TCC_FIELDS, (cell.strip() for cell in row)))
        for row in rows
        if len(row) >= len(TCC_FIELDS)
    ]


class _CertificateTask(BaseExtractionTask):
    def __init__(self, settings: Settings, verifier: CertificateVerifier | None = None) -> None:
        super().__init__(settings)
        self._verifier = verifier or CertificateVerifier(PdfExtractorFactory.create(settings))

    def _pdf_path(self, company: CompanyRecord, label: str) -> Path:
        name = f"{safe_filename(company.company_name)} - {label} - DWN- {self._stamp()}.pdf"
        return self._download_dir(company) / name


class PinCertificateTask(_CertificateTask):
    """Downloads the PIN registration certificate."""

    feature = "pin_certificate"
    table = "PINCertificates"
    progress_table = "PINCertificates_AutomationProgress"
    report_columns = (("Certificate", "pdf_link"),)

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed

        page = session.page
        selectors = session.selectors
        session.navigate_to(PIN_CERTIFICATE)
        target = self._pdf_path(company, "KRA PIN CERT")

        def _request() -> None:
            page.locator(selectors.applicant_type_select).select_option("taxpayer")
            page.click(selectors.submit_button)

        with session.auto_confirm_dialogs():
            path = session.expect_download(_request, target.parent, target.name)
        self._verifier.verify(path, company.kra_pin)

        self._finish(session)
        document = self._blob(path, "pdf_link", self._settings.kra_pin_certificate_document_id or None)
        return ExtractionResult.success(
            company, self.feature, CompanyStatus.COMPLETED, documents=[document]
        )


class TccTask(_CertificateTask):
    """Scrapes the tax compliance certificate table and downloads the latest certificate."""

    feature = "tcc"
    table = "TaxComplianceCertificates"
    progress_table = "TaxComplianceCertificates_AutomationProgress"
    report_columns = (
        ("Certificate Status", "certificate_status"),
        ("Expiry Date", "expiry_date"),
        ("Certificate", "pdf_link"),
        ("Screenshot", "screenshot_link"),
    )

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed

        page = session.page
        selectors = session.selectors
        session.navigate_to(TCC_REPRINT)

        with session.auto_confirm_dialogs():
            page.get_by_role("button", name=selectors.consult_button_name).click()
            rows = [
                [cell.inner_text() for cell in row.query_selector_all("td")]
                for row in page.query_selector_all(selectors.tcc_table_rows)
            ]
            certificates = parse_tcc_rows(rows)
            Log.info(f"{company.company_name}: {len(certificates)} TCC rows")

            documents: list[DocumentBlob] = []
            status = CompanyStatus.NO_DOCUMENT
            if page.query_selector(selectors.tcc_download_link) is not None:
                target = self._pdf_path(company, "TCC CERT")
                path = session.expect_download(
                    lambda: page.click(selectors.tcc_download_link), target.parent, target.name
                )
                self._verifier.verify(path, company.kra_pin)
                documents.append(self._blob(path, "pdf_link"))
                status = CompanyStatus.COMPLETED
            else:
                Log.info(f"{company.company_name}: no TCC download link")

        screenshot = self._download_dir(company) / f"{company.id}_TCC_screenshot.png"
        screenshot.parent.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(screenshot), full_page=True)
        documents.append(self._blob(screenshot, "screenshot_link", self._settings.tcc_document_id or None))

        latest = certificates[0] if certificates else {}
        payload = {
            "certificates": certificates,
            "certificate_status": latest.get("status", ""),
            "expiry_date": latest.get("expiry_date", ""),
        }
        self._finish(session)
        return ExtractionResult.success(company, self.feature, status, payload, documents)
