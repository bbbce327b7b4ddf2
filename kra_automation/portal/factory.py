from playwright.sync_api import Page

from kra_automation.captcha.solver import CaptchaSolver
from kra_automation.config.settings import Settings
from kra_automation.portal.selectors import PortalSelectors
from kra_automation.portal.session import PortalSession
from kra_automation.portal.wingu import WinguSession


class SessionFactory:
    """Binds a page to the portal session a task needs."""

    def __init__(
        self,
        solver: CaptchaSolver,
        settings: Settings,
        selectors: PortalSelectors | None = None,
    ) -> None:
        self._solver = solver
        self._settings = settings
        self._selectors = selectors or PortalSelectors()

    def kra(self, page: Page) -> PortalSession:
        return PortalSession(page, self._solver, self._settings, self._selectors)

    def wingu(self, page: Page) -> WinguSession:
        return WinguSession(page, self._settings)
