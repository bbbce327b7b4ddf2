from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from kra_automation.logging.logger import Log
from kra_automation.tasks.models import CompanyStatus

STATUS_COLOURS: dict[CompanyStatus, str] = {
    CompanyStatus.VALID: "FF90EE90",
    CompanyStatus.COMPLETED: "FF90EE90",
    CompanyStatus.INVALID: "FFFF7474",
    CompanyStatus.ERROR: "FFFF7474",
    CompanyStatus.PASSWORD_EXPIRED: "FFFFC0CB",
    CompanyStatus.LOCKED: "FFFFA500",
    CompanyStatus.PIN_MISSING: "FFFFFF00",
    CompanyStatus.PASSWORD_MISSING: "FFFFFF00",
    CompanyStatus.PIN_AND_PASSWORD_MISSING: "FFFFFF00",
    CompanyStatus.INVALID_PIN: "FFFFFF00",
    CompanyStatus.INDIVIDUAL_PIN: "FFFFFF00",
    CompanyStatus.NO_VAT: "FFFF7474",
    CompanyStatus.NO_DOCUMENT: "FFD3D3D3",
    CompanyStatus.NO_RECORDS: "FFD3D3D3",
    CompanyStatus.SKIPPED: "FFD3D3D3",
    CompanyStatus.COMPANY_NOT_FOUND: "FFD3D3D3",
}
HEADER_FILL = "FFADD8E6"

BASE_COLUMNS = ["#", "Company Name", "KRA PIN", "Status"]


class BatchReport:
    """Per-run spreadsheet; rewritten to disk after every row so a crash loses nothing."""

    def __init__(self, path: Path, extra_columns: list[str]) -> None:
        self._path = path
        self._workbook = Workbook()
        self._sheet = self._workbook.active
        self._sheet.title = "Results"
        self._rows = 0
        self._unsaved = False

        headers = BASE_COLUMNS + extra_columns + ["Error"]
        self._sheet.append(headers)
        for cell in self._sheet[1]:
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color=HEADER_FILL, end_color=HEADER_FILL, fill_type="solid")
        self._save()

    @classmethod
    def create(cls, report_root: str, feature: str, extra_columns: list[str]) -> "BatchReport":
        stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        return cls(Path(report_root) / f"{feature}_{stamp}.xlsx", extra_columns)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def row_count(self) -> int:
        return self._rows

    def append(
        self,
        company_name: str,
        pin: str | None,
        status: CompanyStatus,
        values: list[Any],
        error: str | None = None,
    ) -> None:
        self._rows += 1
        row = [self._rows, company_name, pin or "", status.value]
        row.extend(_cell(value) for value in values)
        row.append(error or "")
        self._sheet.append(row)

        colour = STATUS_COLOURS.get(status)
        if colour:
            status_cell = self._sheet.cell(row=self._rows + 1, column=BASE_COLUMNS.index("Status") + 1)
            status_cell.fill = PatternFill(start_color=colour, end_color=colour, fill_type="solid")
        self._save()

    def flush(self) -> bool:
        """Write any rows a failed save left in memory. Returns True when the file is current."""
        if self._unsaved:
            self._save()
        return not self._unsaved

    def _save(self) -> None:
        """Write the whole workbook; on failure the rows stay in memory for the next save."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._workbook.save(self._path)
        except OSError as exc:
            self._unsaved = True
            Log.warning(f"Could not write report {self._path}, will retry on next row: {exc}")
            return
        self._unsaved = False


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return str(value)
    return value
