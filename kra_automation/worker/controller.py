import threading
from collections.abc import Callable

from kra_automation.database.models import CompanySelection, ExtractionHistory
from kra_automation.database.repositories.extraction_repository import ExtractionRepository
from kra_automation.logging.logger import Log
from kra_automation.tasks.exceptions import UnknownFeatureError
from kra_automation.tasks.factory import TaskFactory
from kra_automation.worker.exceptions import AutomationAlreadyRunningError
from kra_automation.worker.orchestrator import BatchOrchestrator
from kra_automation.worker.state import BatchProgress


class AutomationController:
    """start/stop/progress/reports for every feature, one background thread per run.

    Different features may run at the same time; each has its own orchestrator
    and therefore its own run state.
    """

    def __init__(
        self,
        build: Callable[[str], BatchOrchestrator],
        extraction_repo: ExtractionRepository,
    ) -> None:
        self._build = build
        self._extraction_repo = extraction_repo
        self._lock = threading.Lock()
        self._orchestrators: dict[str, BatchOrchestrator] = {}
        self._threads: dict[str, threading.Thread] = {}

    def start(self, feature: str, selection: CompanySelection) -> None:
        """Raises AutomationAlreadyRunningError if `feature` is already running."""
        with self._lock:
            thread = self._threads.get(feature)
            if thread is not None and thread.is_alive():
                raise AutomationAlreadyRunningError(f"{feature} is already running")
            orchestrator = self._build(feature)
            thread = threading.Thread(
                target=self._run,
                args=(orchestrator, selection),
                name=f"automation-{feature}",
                daemon=True,
            )
            self._orchestrators[feature] = orchestrator
            self._threads[feature] = thread
            thread.start()
        Log.info(f"Started {feature}")

    def _run(self, orchestrator: BatchOrchestrator, selection: CompanySelection) -> None:
        try:
            orchestrator.run(selection)
        except Exception as exc:
            Log.exception(f"{orchestrator.feature} run aborted: {exc}")

    def stop(self, feature: str) -> bool:
        """Request a stop at the next company boundary. False when nothing is running."""
        with self._lock:
            orchestrator = self._orchestrators.get(feature)
            thread = self._threads.get(feature)
        if orchestrator is None or thread is None or not thread.is_alive():
            return False
        orchestrator.stop()
        return True

    def progress(self, feature: str) -> BatchProgress:
        with self._lock:
            orchestrator = self._orchestrators.get(feature)
        if orchestrator is None:
            return BatchProgress()
        return orchestrator.progress()

    def wait(self, feature: str, timeout: float | None = None) -> None:
        with self._lock:
            thread = self._threads.get(feature)
        if thread is not None:
            thread.join(timeout)

    def get_reports(self, feature: str) -> list[ExtractionHistory]:
        task_cls = TaskFactory.TASKS.get(feature)
        if task_cls is None:
            raise UnknownFeatureError(f"Unknown feature '{feature}'")
        return self._extraction_repo.list_reports(task_cls.table)
