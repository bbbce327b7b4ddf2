from kra_automation.database.models import CompanyRecord
from kra_automation.portal.models import LoginOutcome
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import LOGIN_STATUS, BaseExtractionTask
from kra_automation.tasks.models import CompanyStatus, ExtractionResult, require_credentials


class PasswordValidationTask(BaseExtractionTask):
    """Checks that the stored credentials still open the portal."""

    feature = "password_validation"
    table = "PasswordChecker"
    progress_table = "PasswordChecker_AutomationProgress"
    updates_company_status = True
    report_columns = (("Login Outcome", "login_outcome"),)

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        pin, password = require_credentials(company)
        outcome = session.login(pin, password)
        status = LOGIN_STATUS[outcome]
        payload = {"login_outcome": outcome.value}

        if outcome is LoginOutcome.SUCCESS:
            self._finish(session)
        if status is CompanyStatus.ERROR:
            return ExtractionResult.failure(
                company, self.feature, f"Login ended with {outcome.value}", payload=payload
            )
        return ExtractionResult.success(company, self.feature, status, payload)
