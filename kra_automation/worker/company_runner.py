from datetime import date

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.browser import BrowserFactory
from kra_automation.portal.factory import SessionFactory
from kra_automation.sink.result_sink import ResultSink
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.models import ExtractionResult


class CompanyRunner:
    """Runs one task for one company and always produces exactly one result."""

    def __init__(
        self,
        task: BaseExtractionTask,
        browsers: BrowserFactory,
        sessions: SessionFactory,
        sink: ResultSink,
    ) -> None:
        self._task = task
        self._browsers = browsers
        self._sessions = sessions
        self._sink = sink

    def run(self, company: CompanyRecord, run_date: date) -> ExtractionResult:
        Log.info(f"Processing {company.company_name} ({self._task.feature})")
        result = self._task.check_preconditions(company)
        if result is not None:
            Log.info(f"Skipping {company.company_name}: {result.status.value}")
        else:
            result = self._run_in_browser(company)

        try:
            self._sink.persist(self._task, result, run_date)
        except Exception as exc:
            Log.exception(f"Could not persist result for {company.company_name}: {exc}")
        return result

    def _run_in_browser(self, company: CompanyRecord) -> ExtractionResult:
        """The page and its browser are closed before this returns, on every path."""
        try:
            with self._browsers.open_page() as page:
                session = self._task.open_session(page, self._sessions)
                result = self._task.run(company, session)
        except Exception as exc:
            Log.exception(f"{self._task.feature} failed for {company.company_name}: {exc}")
            return ExtractionResult.failure(
                company, self._task.feature, str(exc) or type(exc).__name__
            )
        Log.info(f"{company.company_name}: {result.status.value}")
        return result
