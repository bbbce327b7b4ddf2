import mimetypes
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from playwright.sync_api import Page

from kra_automation.config.settings import Settings
from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.factory import SessionFactory
from kra_automation.portal.models import LoginOutcome
from kra_automation.portal.session import PortalSession
from kra_automation.portal.wingu import WinguSession
from kra_automation.tasks.models import (
    CompanyStatus,
    DocumentBlob,
    ExtractionResult,
    missing_credentials_status,
    require_credentials,
)

Session = PortalSession | WinguSession

LOGIN_STATUS: dict[LoginOutcome, CompanyStatus] = {
    LoginOutcome.SUCCESS: CompanyStatus.VALID,
    LoginOutcome.INVALID_CREDENTIALS: CompanyStatus.INVALID,
    LoginOutcome.PASSWORD_EXPIRED: CompanyStatus.PASSWORD_EXPIRED,
    LoginOutcome.ACCOUNT_LOCKED: CompanyStatus.LOCKED,
    LoginOutcome.WRONG_CAPTCHA: CompanyStatus.ERROR,
    LoginOutcome.TIMEOUT: CompanyStatus.ERROR,
    LoginOutcome.UNKNOWN_ERROR: CompanyStatus.ERROR,
}


def safe_filename(text: str) -> str:
    """Replace characters that are not allowed in file names."""
    return re.sub(r'[<>:"/\\|?*]', "_", text).strip()


class BaseExtractionTask(ABC):
    """One portal feature run for one company.

    Subclasses set `feature`, the history `table` and `progress_table`, and
    `report_columns` as (header, payload key) pairs.
    """

    feature: str = ""
    table: str = ""
    progress_table: str = ""
    updates_company_status: bool = False
    report_columns: tuple[tuple[str, str], ...] = ()

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def check_preconditions(self, company: CompanyRecord) -> ExtractionResult | None:
        """Return a terminal result when the company cannot be processed at all.

        Runs before any browser is started.
        """
        status = missing_credentials_status(company)
        if status is None:
            return None
        return ExtractionResult.success(company, self.feature, status)

    def open_session(self, page: Page, sessions: SessionFactory) -> Session:
        return sessions.kra(page)

    @abstractmethod
    def run(self, company: CompanyRecord, session: Any) -> ExtractionResult:
        """Perform the feature for one company on an unauthenticated session."""

    def report_row(self, result: ExtractionResult) -> list[Any]:
        return [result.payload.get(key, "") for _header, key in self.report_columns]

    def _login(
        self, company: CompanyRecord, session: PortalSession
    ) -> ExtractionResult | None:
        """Log in; on any outcome other than success return the failure result."""
        pin, password = require_credentials(company)
        outcome = session.login(pin, password)
        if outcome is LoginOutcome.SUCCESS:
            return None
        return ExtractionResult.failure(
            company,
            self.feature,
            f"Login failed: {outcome.value}",
            status=LOGIN_STATUS[outcome],
            payload={"login_outcome": outcome.value},
        )

    def _download_dir(self, company: CompanyRecord) -> Path:
        return Path(self._settings.download_root) / self.feature / safe_filename(
            company.company_name
        )

    def _stamp(self) -> str:
        return datetime.now().strftime("%d-%m-%Y_%H-%M-%S")

    def _blob(self, path: Path, kind: str, document_id: str | None = None) -> DocumentBlob:
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return DocumentBlob(path=path, kind=kind, content_type=content_type, document_id=document_id)

    def _finish(self, session: PortalSession) -> None:
        if not session.logout():
            Log.warning(f"{self.feature}: logout not confirmed, page will be discarded")
