import signal
from types import FrameType

from kra_automation.config.settings import Settings
from kra_automation.database.connection import close_pool, init_pool
from kra_automation.logging.logger import Log
from kra_automation.worker.builder import build_orchestrator, selection_from_settings
from kra_automation.worker.orchestrator import BatchOrchestrator


def _install_stop_handler(orchestrator: BatchOrchestrator) -> None:
    """First Ctrl-C stops after the current company; a second one aborts."""

    def _handle(signum: int, frame: FrameType | None) -> None:
        Log.info("Interrupt received, stopping after the current company (Ctrl-C again to abort)")
        orchestrator.stop()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _handle)


def main() -> None:
    """Entry point: initialize pool -> build the feature's orchestrator -> run one batch."""
    settings = Settings()
    Log.configure(settings.log_level, settings.worker_id)
    init_pool(settings)

    try:
        orchestrator = build_orchestrator(settings, settings.automation_feature)
        selection = selection_from_settings(settings)
        _install_stop_handler(orchestrator)
        Log.info(f"Worker {settings.worker_id} running {settings.automation_feature}")
        orchestrator.run(selection)
    except KeyboardInterrupt:
        Log.info("Worker aborted")
    finally:
        close_pool()


if __name__ == "__main__":
    main()
