from typing import Any

from playwright.sync_api import Page

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.models import LIABILITY_PAYMENT
from kra_automation.portal.selectors import PortalSelectors
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.models import CompanyStatus, ExtractionResult

# (payload key, tax head, tax sub-head) as offered by the payment registration form
LIABILITY_HEADS = (
    ("income_tax", "IT", "4"),
    ("vat", "VAT", "9"),
    ("paye", "IT", "7"),
)
SELF_ASSESSMENT = "SAT"

_LIABILITY_TABLE = """
(selector) => {
    const table = document.querySelector(selector);
    if (!table) return null;
    const headers = Array.from(table.querySelectorAll('thead th')).map(th => th.innerText.trim());
    const rows = Array.from(table.querySelectorAll('tbody tr')).map(row =>
        Array.from(row.querySelectorAll('td')).map(td => {
            const input = td.querySelector('input[type="text"]');
            return input ? input.value.trim() : td.innerText.trim();
        }));
    return {headers, rows};
}
"""


def liability_entries(table: dict[str, Any] | None) -> list[dict[str, str]]:
    """Key each liability row by the table headers.

    Blank rows are dropped. A row whose width differs from the header row is
    keyed by column position instead.
    """
    if not table:
        return []
    headers = list(table.get("headers") or [])
    entries = []
    for row in table.get("rows") or []:
        if not any(cell.strip() for cell in row):
            continue
        names = headers if len(headers) == len(row) else [f"column_{i}" for i in range(1, len(row) + 1)]
        entries.append(dict(zip(names, row)))
    return entries


class LiabilityExtractionTask(BaseExtractionTask):
    """Reads outstanding income tax, VAT and PAYE liabilities from payment registration."""

    feature = "liabilities"
    table = "liability_extractions"
    progress_table = "Liabilities_AutomationProgress"
    report_columns = (
        ("Income Tax", "income_tax_count"),
        ("VAT", "vat_count"),
        ("PAYE", "paye_count"),
    )

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed

        page = session.page
        selectors = session.selectors
        session.navigate_to(LIABILITY_PAYMENT)
        with session.auto_confirm_dialogs():
            page.click(selectors.payment_registration_button)
            page.wait_for_selector(selectors.tax_head_select, state="visible")
            liabilities = {
                key: self._read_liabilities(page, selectors, head, sub_head)
                for key, head, sub_head in LIABILITY_HEADS
            }

        payload: dict[str, Any] = {"liability_data": liabilities}
        for key, entries in liabilities.items():
            payload[f"{key}_count"] = len(entries)
        Log.info(
            f"{company.company_name}: liabilities "
            + ", ".join(f"{key}={len(entries)}" for key, entries in liabilities.items())
        )

        self._finish(session)
        found = any(liabilities.values())
        status = CompanyStatus.COMPLETED if found else CompanyStatus.NO_RECORDS
        return ExtractionResult.success(company, self.feature, status, payload)

    def _read_liabilities(
        self, page: Page, selectors: PortalSelectors, head: str, sub_head: str
    ) -> list[dict[str, str]]:
        page.locator(selectors.tax_head_select).select_option(head)
        page.wait_for_load_state("load")
        option = f'{selectors.tax_sub_head_select} option[value="{sub_head}"]'
        if page.locator(option).count() == 0:
            Log.debug(f"No sub-head {sub_head} under {head}, obligation not registered")
            return []
        page.locator(selectors.tax_sub_head_select).select_option(sub_head)
        page.locator(selectors.payment_type_select).select_option(SELF_ASSESSMENT)
        page.wait_for_timeout(1000)
        return liability_entries(page.evaluate(_LIABILITY_TABLE, selectors.liability_table))
