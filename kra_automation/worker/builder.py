from kra_automation.captcha.solver import CaptchaSolver
from kra_automation.captcha.tesseract_engine import TesseractOcrEngine
from kra_automation.config.settings import Settings
from kra_automation.database.models import CompanySelection
from kra_automation.database.repositories.company_repository import CompanyRepository
from kra_automation.database.repositories.document_registry import DocumentRegistry
from kra_automation.database.repositories.extraction_repository import ExtractionRepository
from kra_automation.database.repositories.progress_repository import ProgressRepository
from kra_automation.portal.browser import BrowserFactory
from kra_automation.portal.factory import SessionFactory
from kra_automation.sink.result_sink import ResultSink
from kra_automation.storage.factory import DocumentStoreFactory
from kra_automation.tasks.factory import TaskFactory
from kra_automation.worker.company_runner import CompanyRunner
from kra_automation.worker.orchestrator import BatchOrchestrator


def build_orchestrator(settings: Settings, feature: str) -> BatchOrchestrator:
    """Build a BatchOrchestrator for one feature with all required adapters."""
    task = TaskFactory.create(feature, settings)
    solver = CaptchaSolver(
        TesseractOcrEngine.from_settings(settings), noise_chars=settings.captcha_noise_chars
    )
    company_repo = CompanyRepository(settings.company_table)
    sink = ResultSink(
        company_repo=company_repo,
        extraction_repo=ExtractionRepository(),
        registry=DocumentRegistry(),
        store=DocumentStoreFactory.create(settings),
    )
    runner = CompanyRunner(
        task=task,
        browsers=BrowserFactory(settings),
        sessions=SessionFactory(solver, settings),
        sink=sink,
    )
    return BatchOrchestrator(
        task=task,
        runner=runner,
        company_repo=company_repo,
        progress_repo=ProgressRepository(),
        settings=settings,
    )


def selection_from_settings(settings: Settings) -> CompanySelection:
    """Translate `run_option` and the shard settings into a selection."""
    option = settings.run_option.lower()
    if option == "all":
        return CompanySelection.everything()
    if option == "selected":
        return CompanySelection.explicit(settings.selected_ids)
    if option == "range":
        return CompanySelection.shard(settings.worker_start_index, settings.worker_batch_size)
    raise ValueError(f"Unknown run option '{settings.run_option}'. Choose from: all, selected, range")
