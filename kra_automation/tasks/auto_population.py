import zipfile
from datetime import date
from pathlib import Path, PurePosixPath

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.models import E_RETURNS
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import BaseExtractionTask, safe_filename
from kra_automation.tasks.models import CompanyStatus, ExtractionResult, require_credentials

VAT_RETURN_TYPE = "Value Added Tax (VAT)"


def previous_month(today: date) -> date:
    """First day of the month before `today`."""
    if today.month == 1:
        return date(today.year - 1, 12, 1)
    return date(today.year, today.month - 1, 1)


def member_path(target_dir: Path, filename: str) -> Path | None:
    """Where an archive member lands under `target_dir`.

    Folders inside the archive are kept. Root and `..` parts are dropped and
    unsafe characters replaced, so nothing is written outside `target_dir`.
    None when no usable part is left.
    """
    parts = [
        safe_filename(part)
        for part in PurePosixPath(filename.replace("\\", "/")).parts
        if part != "/"
    ]
    parts = [part for part in parts if part not in ("", ".", "..")]
    if not parts:
        return None
    return target_dir.joinpath(*parts)


def unpack_archive(archive: Path, target_dir: Path) -> list[Path]:
    """Extract an archive, descending into nested zip members.

    Nested archives are replaced by their contents.
    """
    extracted: list[Path] = []
    target_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive) as bundle:
        for member in bundle.infolist():
            if member.is_dir():
                continue
            path = member_path(target_dir, member.filename)
            if path is None:
                Log.warning(f"Skipping archive member with unusable name: {member.filename!r}")
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(bundle.read(member))
            if path.name.lower().endswith(".zip"):
                extracted.extend(unpack_archive(path, path.parent / path.stem))
                path.unlink()
            else:
                extracted.append(path)
    return extracted


class AutoPopulationTask(BaseExtractionTask):
    """Downloads the VAT return template pre-filled with last month's invoices."""

    feature = "auto_population"
    table = "Autopopulate"
    progress_table = "AutoPopulation_AutomationProgress"
    report_columns = (("Period", "period"), ("Files", "file_count"), ("Archive", "archive_link"))

    def check_preconditions(self, company: CompanyRecord) -> ExtractionResult | None:
        missing = super().check_preconditions(company)
        if missing is not None:
            return missing
        pin, _password = require_credentials(company)
        if not pin.strip().upper().startswith("P"):
            return ExtractionResult.success(company, self.feature, CompanyStatus.INDIVIDUAL_PIN)
        return None

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed

        page = session.page
        selectors = session.selectors
        period = previous_month(date.today())
        payload = {"period": period.strftime("%Y-%m")}

        session.navigate_to(E_RETURNS)
        try:
            page.locator(selectors.return_type_select).select_option(VAT_RETURN_TYPE, timeout=500)
        except PlaywrightError:
            Log.info(f"{company.company_name}: no VAT obligation")
            self._finish(session)
            return ExtractionResult.success(company, self.feature, CompanyStatus.NO_VAT, payload)
        page.evaluate(selectors.select_tax_type_script)

        directory = self._download_dir(company)
        archive_name = (
            f"{safe_filename(company.company_name)}-{self._stamp()}"
            f"-AUTO-POPULATE-For-{period.strftime('%B')}.zip"
        )
        with session.auto_confirm_dialogs():
            page.locator(selectors.auto_population_button).click()
            try:
                page.wait_for_selector(selectors.e_returns_header, state="visible", timeout=1000)
                already_filed = True
            except PlaywrightTimeoutError:
                already_filed = False
            if already_filed:
                self._finish(session)
                return ExtractionResult.success(
                    company,
                    self.feature,
                    CompanyStatus.SKIPPED,
                    {**payload, "reason": "e-Returns header present"},
                )
            archive = session.expect_download(
                lambda: page.click(selectors.submit_button), directory, archive_name
            )

        members = unpack_archive(archive, directory / archive.stem)
        Log.info(f"{company.company_name}: unpacked {len(members)} files")
        documents = [self._blob(archive, "archive_link")]
        documents.extend(self._blob(member, f"file_{index}") for index, member in enumerate(members))
        payload["files"] = [member.relative_to(directory / archive.stem).as_posix() for member in members]
        payload["file_count"] = len(members)

        self._finish(session)
        return ExtractionResult.success(
            company, self.feature, CompanyStatus.COMPLETED, payload, documents
        )
