import re
from dataclasses import dataclass
from pathlib import Path
from re import Pattern

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from kra_automation.config.settings import Settings
from kra_automation.logging.logger import Log
from kra_automation.portal.exceptions import DownloadError, NavigationError
from kra_automation.portal.selectors import WinguSelectors


@dataclass(frozen=True)
class WinguCompany:
    name: str
    admin_url: str


@dataclass(frozen=True)
class PayrollDocument:
    """One statutory export offered under the payroll admin's Export menu."""

    name: str
    submenu_link: str | Pattern[str]
    download_link: str
    extension: str
    field: str


PAYROLL_DOCUMENTS: tuple[PayrollDocument, ...] = (
    PayrollDocument(
        name="Housing Levy",
        submenu_link="Export Payroll Data to Housing Levy Upload Data File",
        download_link="Download Housing Levy format",
        extension="csv",
        field="housing_levy_file",
    ),
    PayrollDocument(
        name="PAYE",
        submenu_link=re.compile("Export Payroll Data to iTax"),
        download_link="Download KRA format CSV File",
        extension="csv",
        field="paye_file",
    ),
    PayrollDocument(
        name="SHIF",
        submenu_link="SHA - SHIF Payroll Template",
        download_link="Download SHIF format excel",
        extension="xlsx",
        field="shif_file",
    ),
    PayrollDocument(
        name="NSSF",
        submenu_link="NSSF Payroll Template Online",
        download_link="Download NSSF format excel",
        extension="xlsx",
        field="nssf_file",
    ),
)


def match_company(name: str, companies: list[WinguCompany]) -> WinguCompany | None:
    """Case-insensitive containment match in either direction; first hit wins."""
    wanted = name.strip().lower()
    if not wanted:
        return None
    for company in companies:
        candidate = company.name.strip().lower()
        if candidate and (candidate in wanted or wanted in candidate):
            return company
    return None


class WinguSession:
    """Drives the WinguApps payroll portal with the configured service account."""

    def __init__(
        self,
        page: Page,
        settings: Settings,
        selectors: WinguSelectors | None = None,
    ) -> None:
        self._page = page
        self._settings = settings
        self._selectors = selectors or WinguSelectors()

    def login(self) -> None:
        """Raises NavigationError if the portal rejects the service account."""
        page = self._page
        try:
            page.goto(self._settings.wingu_login_url, wait_until="networkidle")
            page.get_by_placeholder(self._selectors.email_placeholder).fill(
                self._settings.wingu_email
            )
            page.get_by_placeholder(self._selectors.password_placeholder).fill(
                self._settings.wingu_password
            )
            page.get_by_role("button", name=self._selectors.login_button_name).click()
            page.wait_for_load_state("networkidle")
        except PlaywrightError as exc:
            raise NavigationError(f"Payroll portal login failed: {exc}") from exc

    def list_companies(self) -> list[WinguCompany]:
        """Companies listed on the subscriptions tab with their admin URLs."""
        page = self._page
        page.goto(self._settings.wingu_dashboard_url, wait_until="networkidle")
        companies: list[WinguCompany] = []
        for row in page.query_selector_all(self._selectors.subscription_rows):
            names = row.query_selector_all("td strong")
            link = row.query_selector(self._selectors.admin_link)
            if len(names) < 2 or link is None:
                continue
            href = link.get_attribute("href")
            if not href:
                continue
            companies.append(WinguCompany(name=names[1].inner_text().strip(), admin_url=href))
        Log.info(f"Found {len(companies)} companies in the payroll portal")
        return companies

    def open_company_admin(self, company: WinguCompany) -> Page:
        """Open the company's payroll admin in a new tab of the same context."""
        admin = self._page.context.new_page()
        admin.goto(company.admin_url, wait_until="networkidle")
        if admin.query_selector(self._selectors.admin_login_button) is not None:
            Log.info(f"Logging in to payroll admin for {company.name}")
            admin.get_by_placeholder(self._selectors.admin_username_placeholder).fill(
                self._settings.wingu_payroll_username
            )
            admin.get_by_placeholder(self._selectors.password_placeholder).fill(
                self._settings.wingu_payroll_password
            )
            admin.get_by_role("button", name=self._selectors.admin_login_button_name).click()
            admin.wait_for_load_state("networkidle")
        return admin

    def download_export(
        self,
        admin: Page,
        document: PayrollDocument,
        target_dir: Path,
        filename: str,
    ) -> Path:
        """Raises DownloadError when the export cannot be fetched."""
        try:
            admin.get_by_role("link", name=self._selectors.export_menu_link).click()
            admin.wait_for_load_state("networkidle")
            admin.get_by_role("link", name=document.submenu_link).click()
            admin.wait_for_load_state("networkidle")
            with admin.expect_download(
                timeout=self._settings.download_timeout_ms
            ) as download_info:
                admin.get_by_role("link", name=document.download_link).click()
            target = target_dir / filename
            target.parent.mkdir(parents=True, exist_ok=True)
            download_info.value.save_as(target)
        except PlaywrightError as exc:
            raise DownloadError(f"{document.name} export failed: {exc}") from exc

        if target.stat().st_size == 0:
            raise DownloadError(f"{document.name} export is empty")
        return target
