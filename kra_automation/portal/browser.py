from collections.abc import Generator
from contextlib import contextmanager

from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from kra_automation.config.settings import Settings
from kra_automation.logging.logger import Log
from kra_automation.portal.exceptions import BrowserLaunchError


class BrowserFactory:
    """Creates one isolated browser page per unit of work."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @contextmanager
    def open_page(self) -> Generator[Page, None, None]:
        """Yield a fresh page; its context, browser and driver are always closed on exit."""
        playwright = sync_playwright().start()
        try:
            browser = self._launch(playwright)
            try:
                context = browser.new_context(accept_downloads=True)
                try:
                    page = context.new_page()
                    page.set_default_navigation_timeout(self._settings.navigation_timeout_ms)
                    page.set_default_timeout(self._settings.default_timeout_ms)
                    yield page
                finally:
                    context.close()
            finally:
                browser.close()
        finally:
            playwright.stop()
            Log.debug("Browser resources released")

    def _launch(self, playwright: Playwright) -> Browser:
        """Try each configured channel in order; an empty channel means bundled chromium."""
        last_error: PlaywrightError | None = None
        for channel in self._settings.channel_candidates:
            try:
                if channel is None:
                    return playwright.chromium.launch(headless=self._settings.browser_headless)
                return playwright.chromium.launch(
                    headless=self._settings.browser_headless, channel=channel
                )
            except PlaywrightError as exc:
                Log.warning(f"Could not launch browser channel {channel or 'chromium'}: {exc}")
                last_error = exc
        raise BrowserLaunchError("No browser channel could be launched") from last_error
