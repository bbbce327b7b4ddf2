import re

from playwright.sync_api import Page

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.models import GENERAL_LEDGER
from kra_automation.portal.selectors import PortalSelectors
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.models import CompanyStatus, ExtractionResult, require_credentials

LEDGER_PAGE_SIZE = "20000"
VALID_PIN_PREFIXES = ("P", "A")

_ENLARGE_PAGE_SIZE = """
([selector, size]) => {
    document.querySelectorAll(selector).forEach(select => {
        Array.from(select.options).forEach(option => { option.value = size; });
    });
}
"""

_GRID_ROWS = """
(selector) => {
    const table = document.querySelector(selector);
    if (!table) return [];
    return Array.from(table.querySelectorAll('tr:not(.ui-jqgrid-labels)'))
        .map(row => Array.from(row.querySelectorAll('td')).map(cell => cell.textContent.trim()));
}
"""

LEDGER_FIELDS = (
    "sr_no",
    "tax_obligation",
    "tax_period",
    "transaction_date",
    "reference_number",
    "particulars",
    "transaction_type",
    "debit",
    "credit",
)


def _amount(value: str) -> str:
    return re.sub(r"[^0-9.\-]", "", value) or "0"


def normalize_ledger_rows(rows: list[list[str]]) -> list[dict[str, str]]:
    """Convert grid rows into ledger entries.

    The first grid cell is the row selector and is dropped. Blank rows and
    rows too short to hold every field are skipped; amounts keep only digits,
    sign and decimal point.
    """
    entries = []
    for row in rows:
        if not any(cell.strip() for cell in row):
            continue
        if len(row) < len(LEDGER_FIELDS) + 1:
            Log.debug(f"Skipping short ledger row: {row}")
            continue
        entry = dict(zip(LEDGER_FIELDS, (cell.strip() for cell in row[1:])))
        entry["debit"] = _amount(entry["debit"])
        entry["credit"] = _amount(entry["credit"])
        entries.append(entry)
    return entries


class LedgerExtractionTask(BaseExtractionTask):
    """Reads the full general ledger in a single grid page."""

    feature = "ledger"
    table = "ledger_extractions"
    progress_table = "Ledger_AutomationProgress"
    report_columns = (("Ledger Rows", "row_count"),)

    def check_preconditions(self, company: CompanyRecord) -> ExtractionResult | None:
        missing = super().check_preconditions(company)
        if missing is not None:
            return missing
        pin, _password = require_credentials(company)
        if not pin.strip().upper().startswith(VALID_PIN_PREFIXES):
            return ExtractionResult.success(
                company,
                self.feature,
                CompanyStatus.INVALID_PIN,
                {"reason": f"PIN {pin} does not start with P or A"},
            )
        return None

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed

        page = session.page
        session.navigate_to(GENERAL_LEDGER)
        self._show_all_rows(page, session.selectors)
        page.wait_for_selector(session.selectors.ledger_grid, state="visible")
        entries = normalize_ledger_rows(page.evaluate(_GRID_ROWS, session.selectors.ledger_grid))
        Log.info(f"{company.company_name}: {len(entries)} ledger rows")

        self._finish(session)
        status = CompanyStatus.COMPLETED if entries else CompanyStatus.NO_RECORDS
        payload = {"ledger_data": entries, "row_count": len(entries)}
        return ExtractionResult.success(company, self.feature, status, payload)

    def _show_all_rows(self, page: Page, selectors: PortalSelectors) -> None:
        """Group by obligation and make the grid's page size large enough to avoid paging."""
        page.locator(selectors.ledger_tax_type_select).select_option("ALL")
        page.click(selectors.ledger_show_button)
        page.locator(selectors.ledger_group_select).select_option("Tax Obligation")
        page.wait_for_load_state("load")
        page.locator(selectors.ledger_tax_type_select).select_option("ALL")

        page.evaluate(_ENLARGE_PAGE_SIZE, [selectors.ledger_page_size_selects, LEDGER_PAGE_SIZE])
        for select in page.query_selector_all(selectors.ledger_page_size_selects):
            select.select_option(LEDGER_PAGE_SIZE)
        page.wait_for_timeout(2500)
