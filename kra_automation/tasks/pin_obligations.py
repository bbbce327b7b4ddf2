from typing import Any

from kra_automation.database.models import CompanyRecord
from kra_automation.logging.logger import Log
from kra_automation.portal.session import PortalSession
from kra_automation.tasks.base import BaseExtractionTask
from kra_automation.tasks.models import CompanyStatus, ExtractionResult, require_credentials

NO_OBLIGATION = "No obligation"
UNKNOWN = "Unknown"

# Obligation name as shown by the PIN checker -> record key prefix.
OBLIGATIONS: dict[str, str] = {
    "Income Tax - Company": "income_tax_company",
    "Value Added Tax (VAT)": "vat",
    "Income Tax - PAYE": "paye",
    "Income Tax - Rent Income (MRI)": "rent_income_mri",
    "Income Tax - Resident Individual": "resident_individual",
    "Income Tax - Turnover Tax": "turnover_tax",
}

_SCRAPE_SCRIPT = """
(tableSelector) => {
    const result = {taxpayer: {}, obligations: [], invoicing: {}, vatCompliance: null};
    const main = document.querySelector(tableSelector);
    if (!main) return result;

    const pairs = (row, target) => {
        if (!row) return;
        const table = row.querySelector('table');
        if (!table) return;
        table.querySelectorAll('tr').forEach(tr => {
            const cells = tr.querySelectorAll('td.textAlignLeft');
            for (let i = 0; i + 1 < cells.length; i += 2) {
                target[cells[i].textContent.trim().replace(':', '')] = cells[i + 1].textContent.trim();
            }
        });
    };

    pairs(main.querySelector('tr:nth-child(3)'), result.taxpayer);
    pairs(main.querySelector('tr:nth-child(7)'), result.invoicing);

    const obligationRow = main.querySelector('tr:nth-child(5)');
    const obligationTable = obligationRow && obligationRow.querySelector('table.tab3');
    if (obligationTable) {
        Array.from(obligationTable.querySelectorAll('tr')).slice(1).forEach(tr => {
            result.obligations.push(Array.from(tr.querySelectorAll('td')).map(td => td.textContent.trim()));
        });
    }

    const vatCell = main.querySelector('tbody > tr:nth-child(8) > td');
    const vatStatus = vatCell && vatCell.querySelector('table td.textAlignLeft');
    if (vatStatus) result.vatCompliance = vatStatus.textContent.trim();
    return result;
}
"""


def organize_obligations(rows: list[list[str]]) -> dict[str, dict[str, str]]:
    """Map scraped obligation rows onto the known obligation types.

    Every known type is present in the result. Types missing from the table
    carry the literal "No obligation" in all three fields; rows for unknown
    types are ignored. A blank effective-to date means the obligation is
    still running and is recorded as "Active".
    """
    organized = {
        prefix: {
            "status": NO_OBLIGATION,
            "effective_from": NO_OBLIGATION,
            "effective_to": NO_OBLIGATION,
        }
        for prefix in OBLIGATIONS.values()
    }
    for row in rows:
        cells = [cell.strip() for cell in row]
        if len(cells) < 3:
            continue
        prefix = OBLIGATIONS.get(cells[0])
        if prefix is None:
            continue
        effective_to = cells[3] if len(cells) > 3 and cells[3] else "Active"
        organized[prefix] = {
            "status": cells[1],
            "effective_from": cells[2],
            "effective_to": effective_to,
        }
    return organized


def flatten_obligations(organized: dict[str, dict[str, str]]) -> dict[str, str]:
    return {
        f"{prefix}_{field}": value
        for prefix, fields in organized.items()
        for field, value in fields.items()
    }


def _report_columns() -> tuple[tuple[str, str], ...]:
    columns: list[tuple[str, str]] = [
        ("PIN Status", "pin_status"),
        ("iTax Status", "itax_status"),
    ]
    for name, prefix in OBLIGATIONS.items():
        columns.append((f"{name} Current Status", f"{prefix}_status"))
        columns.append((f"{name} Effective From Date", f"{prefix}_effective_from"))
        columns.append((f"{name} Effective To Date", f"{prefix}_effective_to"))
    columns.extend(
        [
            ("eTIMS Registration", "etims_registration"),
            ("TIMS Registration", "tims_registration"),
            ("VAT Compliance", "vat_compliance"),
        ]
    )
    return tuple(columns)


class PinObligationsTask(BaseExtractionTask):
    """Reads taxpayer, obligation and invoicing details from the PIN checker."""

    feature = "pin_obligations"
    table = "PinCheckerDetails"
    progress_table = "PinCheckerDetails_AutomationProgress"
    report_columns = _report_columns()

    def run(self, company: CompanyRecord, session: PortalSession) -> ExtractionResult:
        failed = self._login(company, session)
        if failed is not None:
            return failed
        pin, _password = require_credentials(company)

        session.lookup_pin(pin)
        page = session.page
        session.click_with_retry(
            lambda: page.get_by_role(
                "group", name=session.selectors.obligation_group_name
            ).click(timeout=2000),
            "Obligation Details",
        )
        scraped = page.evaluate(_SCRAPE_SCRIPT, session.selectors.pin_checker_main_table)
        payload = build_payload(scraped)
        Log.info(f"{company.company_name}: PIN status {payload['pin_status']}")

        self._finish(session)
        return ExtractionResult.success(company, self.feature, CompanyStatus.COMPLETED, payload)


def build_payload(scraped: dict[str, Any]) -> dict[str, str]:
    taxpayer = scraped.get("taxpayer") or {}
    invoicing = scraped.get("invoicing") or {}
    payload = {
        "pin_status": taxpayer.get("PIN Status") or UNKNOWN,
        "itax_status": taxpayer.get("iTax Status") or UNKNOWN,
        "etims_registration": invoicing.get("eTIMS Registration") or UNKNOWN,
        "tims_registration": invoicing.get("TIMS Registration") or UNKNOWN,
        "vat_compliance": scraped.get("vatCompliance") or UNKNOWN,
    }
    payload.update(flatten_obligations(organize_obligations(scraped.get("obligations") or [])))
    return payload
