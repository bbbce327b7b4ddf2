from kra_automation.config.settings import Settings
from kra_automation.tasks.auto_population import AutoPopulationTask
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.certificate_download import PinCertificateTask, TccTask
from kra_automation.tasks.exceptions import UnknownFeatureError
from kra_automation.tasks.ledger_extraction import LedgerExtractionTask
from kra_automation.tasks.liability_extraction import LiabilityExtractionTask
from kra_automation.tasks.password_validation import PasswordValidationTask
from kra_automation.tasks.payroll_export import PayrollExportTask
from kra_automation.tasks.pin_obligations import PinObligationsTask


class TaskFactory:
    """Creates the extraction task registered for a feature name."""

    TASKS: dict[str, type[BaseExtractionTask]] = {
        PasswordValidationTask.feature: PasswordValidationTask,
        PinObligationsTask.feature: PinObligationsTask,
        PinCertificateTask.feature: PinCertificateTask,
        TccTask.feature: TccTask,
        LedgerExtractionTask.feature: LedgerExtractionTask,
        LiabilityExtractionTask.feature: LiabilityExtractionTask,
        AutoPopulationTask.feature: AutoPopulationTask,
        PayrollExportTask.feature: PayrollExportTask,
    }

    @classmethod
    def create(cls, feature: str, settings: Settings) -> BaseExtractionTask:
        task_cls = cls.TASKS.get(feature.lower())
        if task_cls is None:
            raise UnknownFeatureError(
                f"Unknown feature '{feature}'. Choose from: {list(cls.TASKS)}"
            )
        return task_cls(settings)
