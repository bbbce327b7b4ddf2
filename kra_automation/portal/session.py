from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path

from playwright.sync_api import Dialog, Page
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from kra_automation.captcha.exceptions import CaptchaError
from kra_automation.captcha.solver import CaptchaSolver
from kra_automation.config.settings import Settings
from kra_automation.logging.logger import Log
from kra_automation.portal.exceptions import (
    CaptchaExhaustedError,
    DownloadError,
    NavigationError,
)
from kra_automation.portal.models import (
    OUTCOME_STATES,
    FeatureEntry,
    LoginOutcome,
    SessionState,
)
from kra_automation.portal.navigation import FeatureLocator
from kra_automation.portal.selectors import PortalSelectors


class PortalSession:
    """Drives one iTax page for a single company.

    The session never owns the browser: the page is created and torn down by
    the caller, so a session is discarded together with its page.
    """

    def __init__(
        self,
        page: Page,
        solver: CaptchaSolver,
        settings: Settings,
        selectors: PortalSelectors | None = None,
        locator: FeatureLocator | None = None,
    ) -> None:
        self._page = page
        self._solver = solver
        self._settings = settings
        self._selectors = selectors or PortalSelectors()
        self._locator = locator or FeatureLocator()
        self._state = SessionState.UNAUTHENTICATED

    @property
    def page(self) -> Page:
        return self._page

    @property
    def selectors(self) -> PortalSelectors:
        return self._selectors

    @property
    def state(self) -> SessionState:
        return self._state

    def login(self, pin: str, password: str) -> LoginOutcome:
        """Log in, retrying only on captcha rejection.

        Returns the first non-captcha outcome, or WRONG_CAPTCHA once
        `max_login_attempts` fresh challenges have all been rejected.
        """
        max_attempts = self._settings.max_login_attempts
        outcome = LoginOutcome.WRONG_CAPTCHA
        for attempt in range(1, max_attempts + 1):
            Log.info(f"Login attempt {attempt}/{max_attempts} for {pin}")
            outcome = self._attempt_login(pin, password)
            self._state = OUTCOME_STATES[outcome]
            if outcome is not LoginOutcome.WRONG_CAPTCHA:
                Log.info(f"Login outcome for {pin}: {outcome.value}")
                return outcome
            Log.warning(f"Captcha rejected for {pin} (attempt {attempt}/{max_attempts})")
        Log.error(f"Captcha rejected {max_attempts} times for {pin}, giving up")
        return outcome

    def _attempt_login(self, pin: str, password: str) -> LoginOutcome:
        try:
            answer = self._fill_login_form(pin, password)
            if answer is None:
                return LoginOutcome.WRONG_CAPTCHA
            self._page.locator(self._selectors.captcha_input).fill(str(answer))
            self._page.locator(self._selectors.login_button).click()
        except PlaywrightTimeoutError as exc:
            Log.error(f"Login form timed out for {pin}: {exc}")
            return LoginOutcome.TIMEOUT
        except PlaywrightError as exc:
            Log.error(f"Login form failed for {pin}: {exc}")
            return LoginOutcome.UNKNOWN_ERROR

        self._state = SessionState.SUBMITTED
        return self._await_outcome()

    def _fill_login_form(self, pin: str, password: str) -> int | None:
        """Fill credentials and solve the captcha, reloading for a new challenge on OCR failure."""
        attempts = self._settings.captcha_ocr_attempts
        for attempt in range(1, attempts + 1):
            self._state = SessionState.UNAUTHENTICATED
            self._page.goto(self._settings.kra_portal_url)
            self._page.locator(self._selectors.pin_input).click()
            self._page.locator(self._selectors.pin_input).fill(pin)
            self._page.evaluate(self._selectors.pin_precheck_script)
            self._page.locator(self._selectors.password_input).fill(password)

            self._state = SessionState.AWAITING_CAPTCHA
            image = self._page.locator(self._selectors.captcha_image).screenshot()
            try:
                return self._solver.solve(image)
            except CaptchaError as exc:
                Log.warning(f"Captcha unreadable (OCR attempt {attempt}/{attempts}): {exc}")
        return None

    def _await_outcome(self) -> LoginOutcome:
        """Poll the outcome banners until one is visible or the budget runs out.

        Failure banners are checked before the success marker so a page that
        shows both is never classified as a success.
        """
        detectors = [
            (LoginOutcome.WRONG_CAPTCHA, self._selectors.wrong_captcha_banner),
            (LoginOutcome.INVALID_CREDENTIALS, self._selectors.invalid_login_banner),
            (LoginOutcome.PASSWORD_EXPIRED, self._selectors.password_expired_banner),
            (LoginOutcome.ACCOUNT_LOCKED, self._selectors.account_locked_banner),
            (LoginOutcome.SUCCESS, self._selectors.success_marker),
        ]
        poll_ms = self._settings.login_outcome_poll_ms
        polls = max(1, self._settings.login_outcome_timeout_ms // poll_ms)
        for _ in range(polls):
            for outcome, selector in detectors:
                if self._is_visible(selector):
                    return outcome
            self._page.wait_for_timeout(poll_ms)
        return LoginOutcome.TIMEOUT

    def _is_visible(self, selector: str) -> bool:
        try:
            return self._page.locator(selector).first.is_visible()
        except PlaywrightError as exc:
            # The page may be mid-navigation after submit.
            Log.debug(f"Visibility check for {selector} failed: {exc}")
            return False

    def _wait_visible(self, selector: str, timeout_ms: int) -> bool:
        try:
            self._page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True

    def navigate_to(self, entry: FeatureEntry) -> None:
        """Raises FeatureNotFoundError when no entry-point strategy reaches the feature."""
        self._locator.locate(self._page, entry)

    @contextmanager
    def auto_confirm_dialogs(self) -> Generator[None, None, None]:
        """Accept every native alert/confirm raised while the block runs."""

        def _accept(dialog: Dialog) -> None:
            Log.debug(f"Accepting {dialog.type} dialog: {dialog.message}")
            dialog.accept()

        self._page.on("dialog", _accept)
        try:
            yield
        finally:
            self._page.remove_listener("dialog", _accept)

    def expect_download(
        self,
        trigger: Callable[[], None],
        target_dir: Path,
        filename: str | None = None,
    ) -> Path:
        """Run `trigger` and save the download it starts.

        Raises:
            DownloadError: no download within the timeout, or an empty file.
        """
        try:
            with self._page.expect_download(
                timeout=self._settings.download_timeout_ms
            ) as download_info:
                trigger()
            download = download_info.value
            target = target_dir / (filename or download.suggested_filename)
            target.parent.mkdir(parents=True, exist_ok=True)
            download.save_as(target)
        except PlaywrightError as exc:
            raise DownloadError(f"Download failed: {exc}") from exc

        if not target.exists() or target.stat().st_size == 0:
            raise DownloadError(f"Downloaded file is empty: {target}")
        Log.info(f"Saved download to {target}")
        return target

    def click_with_retry(self, action: Callable[[], None], description: str) -> None:
        """Retry a flaky click up to `click_retry_attempts` times.

        Raises:
            NavigationError: if every attempt fails.
        """
        attempts = self._settings.click_retry_attempts
        for attempt in range(1, attempts + 1):
            try:
                action()
                return
            except PlaywrightError as exc:
                Log.warning(f"Click on {description} failed (attempt {attempt}/{attempts}): {exc}")
                self._page.wait_for_timeout(500)
        raise NavigationError(f"Failed to click {description} after {attempts} attempts")

    def lookup_pin(self, pin: str) -> None:
        """Submit the PIN checker form, which carries its own captcha.

        Raises:
            CaptchaExhaustedError: if `pin_lookup_attempts` answers are all rejected.
        """
        page = self._page
        attempts = self._settings.pin_lookup_attempts
        for attempt in range(1, attempts + 1):
            if not self._is_visible(self._selectors.pin_checker_input):
                page.evaluate(self._selectors.pin_checker_script)
                page.wait_for_timeout(1000)

            image = page.locator(self._selectors.captcha_image).screenshot()
            try:
                answer = self._solver.solve(image)
            except CaptchaError as exc:
                Log.warning(f"PIN checker captcha unreadable (attempt {attempt}/{attempts}): {exc}")
                page.reload()
                continue

            page.locator(self._selectors.captcha_input).fill(str(answer))
            page.locator(self._selectors.pin_checker_input).fill(pin)
            page.get_by_role("button", name=self._selectors.consult_button_name).click()
            if not self._wait_visible(self._selectors.pin_checker_wrong_captcha, 1000):
                return
            Log.warning(f"PIN checker rejected captcha (attempt {attempt}/{attempts})")
        raise CaptchaExhaustedError(f"PIN checker captcha rejected {attempts} times for {pin}")

    def logout(self) -> bool:
        """Best-effort logout.

        Returns False when the logged-out marker never appears; the caller
        should then treat the page as unusable.
        """
        try:
            self._page.evaluate(self._selectors.logout_script)
        except PlaywrightError as exc:
            Log.warning(f"Logout script failed: {exc}")
            return False
        if not self._wait_visible(self._selectors.logged_out_marker, 5000):
            Log.warning("Logout marker not shown, session may still be open")
            return False
        self._state = SessionState.UNAUTHENTICATED
        return True
