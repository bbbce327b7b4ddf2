from datetime import date

from kra_automation.config.settings import Settings
from kra_automation.database.models import CompanySelection
from kra_automation.database.repositories.company_repository import CompanyRepository
from kra_automation.database.repositories.progress_repository import ProgressRepository
from kra_automation.logging.logger import Log
from kra_automation.reporting.report_writer import BatchReport
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.worker.company_runner import CompanyRunner
from kra_automation.worker.state import BatchProgress, BatchRunState


class BatchOrchestrator:
    """Processes a selection of companies one after another.

    Stop requests are honoured between companies; a company in flight always
    runs to completion.
    """

    def __init__(
        self,
        task: BaseExtractionTask,
        runner: CompanyRunner,
        company_repo: CompanyRepository,
        progress_repo: ProgressRepository,
        settings: Settings,
    ) -> None:
        self._task = task
        self._runner = runner
        self._company_repo = company_repo
        self._progress_repo = progress_repo
        self._settings = settings
        self._state = BatchRunState()

    @property
    def feature(self) -> str:
        return self._task.feature

    def progress(self) -> BatchProgress:
        return self._state.snapshot()

    def stop(self) -> None:
        Log.info(f"Stop requested for {self._task.feature}")
        self._state.request_stop()

    def run(self, selection: CompanySelection) -> BatchReport:
        """Process the selection. A stop that arrives while companies are fetched still applies."""
        self._state.reset()
        companies = sorted(self._company_repo.fetch(selection), key=lambda company: company.id)
        report = BatchReport.create(
            self._settings.report_root,
            self._task.feature,
            [header for header, _key in self._task.report_columns],
        )
        Log.info(f"Starting {self._task.feature} for {len(companies)} companies ({selection.mode})")
        self._state.start(len(companies))
        self._save_progress("Running")
        run_date = date.today()

        try:
            for company in companies:
                if self._state.stop_requested:
                    Log.info(f"{self._task.feature} stopped before {company.company_name}")
                    break
                self._state.begin_company(company.company_name)
                result = self._runner.run(company, run_date)
                report.append(
                    company.company_name,
                    company.kra_pin,
                    result.status,
                    self._task.report_row(result),
                    result.error,
                )
                self._state.advance(company.company_name, result.status.value)
                self._save_progress("Running")
        finally:
            final_status = self._final_status()
            self._state.finish()
            self._save_progress(final_status)
            report.flush()

        progress = self._state.snapshot()
        Log.info(
            f"{self._task.feature} {final_status.lower()}: "
            f"{progress.processed}/{progress.total} companies, report at {report.path}"
        )
        return report

    def _final_status(self) -> str:
        progress = self._state.snapshot()
        if progress.processed >= progress.total:
            return "Completed"
        if progress.stop_requested:
            return "Stopped"
        return "Failed"

    def _save_progress(self, status: str) -> None:
        progress = self._state.snapshot()
        try:
            self._progress_repo.save(
                self._task.progress_table,
                progress.percent,
                status,
                progress.current_company_name,
                progress.logs,
            )
        except Exception as exc:
            Log.warning(f"Could not save progress for {self._task.feature}: {exc}")
