from itertools import chain, repeat
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from kra_automation.captcha.exceptions import UnparseableCaptchaError
from kra_automation.portal.exceptions import (
    CaptchaExhaustedError,
    DownloadError,
    NavigationError,
)
from kra_automation.portal.models import LoginOutcome, SessionState
from kra_automation.portal.selectors import PortalSelectors
from kra_automation.portal.session import PortalSession

SELECTORS = PortalSelectors()


def _settings(**overrides: Any) -> MagicMock:
    values = {
        "kra_portal_url": "https://itax.example/",
        "max_login_attempts": 3,
        "captcha_ocr_attempts": 3,
        "pin_lookup_attempts": 4,
        "click_retry_attempts": 3,
        "login_outcome_timeout_ms": 1000,
        "login_outcome_poll_ms": 250,
        "download_timeout_ms": 1000,
    }
    values.update(overrides)
    return MagicMock(**values)


def _page(visibility: dict[str, Any] | None = None) -> tuple[MagicMock, dict[str, MagicMock]]:
    """Page whose locator(selector).first.is_visible() follows `visibility`.

    Values are a bool or an iterable of bools consumed one check at a time.
    """
    visibility = visibility or {}
    page = MagicMock()
    locators: dict[str, MagicMock] = {}

    def _locator(selector: str) -> MagicMock:
        if selector not in locators:
            locator = MagicMock()
            state = visibility.get(selector, False)
            if isinstance(state, bool):
                locator.first.is_visible.return_value = state
            else:
                locator.first.is_visible.side_effect = state
            locators[selector] = locator
        return locators[selector]

    page.locator.side_effect = _locator
    return page, locators


def _session(page: MagicMock, solver: MagicMock | None = None, **settings: Any) -> PortalSession:
    if solver is None:
        solver = MagicMock()
        solver.solve.return_value = 12
    return PortalSession(page, solver, _settings(**settings), SELECTORS, locator=MagicMock())


class TestLoginOutcomes:
    def test_success(self) -> None:
        page, locators = _page({SELECTORS.success_marker: True})
        session = _session(page)

        outcome = session.login("P051234567A", "secret")

        assert outcome is LoginOutcome.SUCCESS
        assert session.state is SessionState.AUTHENTICATED
        locators[SELECTORS.pin_input].fill.assert_called_once_with("P051234567A")
        locators[SELECTORS.password_input].fill.assert_called_once_with("secret")
        locators[SELECTORS.captcha_input].fill.assert_called_once_with("12")
        locators[SELECTORS.login_button].click.assert_called_once()
        page.evaluate.assert_called_once_with(SELECTORS.pin_precheck_script)

    @pytest.mark.parametrize(
        ("banner", "expected", "state"),
        [
            (SELECTORS.invalid_login_banner, LoginOutcome.INVALID_CREDENTIALS, SessionState.CREDENTIALS_INVALID),
            (SELECTORS.password_expired_banner, LoginOutcome.PASSWORD_EXPIRED, SessionState.PASSWORD_EXPIRED),
            (SELECTORS.account_locked_banner, LoginOutcome.ACCOUNT_LOCKED, SessionState.ACCOUNT_LOCKED),
        ],
    )
    def test_terminal_failures_are_not_retried(
        self, banner: str, expected: LoginOutcome, state: SessionState
    ) -> None:
        page, _locators = _page({banner: True})
        session = _session(page)

        assert session.login("P051234567A", "secret") is expected
        assert session.state is state
        assert page.goto.call_count == 1

    def test_failure_banner_wins_over_success_marker(self) -> None:
        page, _locators = _page(
            {SELECTORS.success_marker: True, SELECTORS.password_expired_banner: True}
        )
        session = _session(page)

        assert session.login("P051234567A", "secret") is LoginOutcome.PASSWORD_EXPIRED

    def test_timeout_when_nothing_appears(self) -> None:
        page, _locators = _page()
        session = _session(page)

        outcome = session.login("P051234567A", "secret")

        assert outcome is LoginOutcome.TIMEOUT
        assert session.state is SessionState.TIMED_OUT
        # 1000ms budget polled every 250ms
        assert page.wait_for_timeout.call_count == 4
        assert page.goto.call_count == 1

    def test_page_timeout_is_timeout(self) -> None:
        page, _locators = _page()
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")
        session = _session(page)

        assert session.login("P051234567A", "secret") is LoginOutcome.TIMEOUT
        assert session.state is SessionState.TIMED_OUT
        assert page.goto.call_count == 1

    def test_playwright_error_is_unknown_error(self) -> None:
        page, _locators = _page()
        page.goto.side_effect = PlaywrightError("net::ERR_CONNECTION_RESET")
        session = _session(page)

        assert session.login("P051234567A", "secret") is LoginOutcome.UNKNOWN_ERROR
        assert page.goto.call_count == 1


class TestCaptchaRetry:
    def test_retries_with_fresh_challenge_then_succeeds(self) -> None:
        page, _locators = _page(
            {
                SELECTORS.wrong_captcha_banner: chain([True], repeat(False)),
                SELECTORS.success_marker: True,
            }
        )
        solver = MagicMock()
        solver.solve.return_value = 3
        session = _session(page, solver)

        assert session.login("P051234567A", "secret") is LoginOutcome.SUCCESS
        assert page.goto.call_count == 2
        assert solver.solve.call_count == 2

    def test_rejection_is_bounded(self) -> None:
        page, locators = _page({SELECTORS.wrong_captcha_banner: True})
        session = _session(page, max_login_attempts=3)

        outcome = session.login("P051234567A", "secret")

        assert outcome is LoginOutcome.WRONG_CAPTCHA
        assert session.state is SessionState.CAPTCHA_REJECTED
        assert page.goto.call_count == 3
        assert locators[SELECTORS.login_button].click.call_count == 3

    def test_unreadable_captcha_reloads_and_counts_as_rejection(self) -> None:
        page, locators = _page()
        solver = MagicMock()
        solver.solve.side_effect = UnparseableCaptchaError("17")
        session = _session(page, solver, max_login_attempts=2, captcha_ocr_attempts=3)

        outcome = session.login("P051234567A", "secret")

        assert outcome is LoginOutcome.WRONG_CAPTCHA
        assert solver.solve.call_count == 6
        assert page.goto.call_count == 6
        locators[SELECTORS.login_button].click.assert_not_called()

    def test_unreadable_captcha_recovers_on_next_challenge(self) -> None:
        page, _locators = _page({SELECTORS.success_marker: True})
        solver = MagicMock()
        solver.solve.side_effect = [UnparseableCaptchaError("?"), 9]
        session = _session(page, solver)

        assert session.login("P051234567A", "secret") is LoginOutcome.SUCCESS
        assert page.goto.call_count == 2


class TestDialogs:
    def test_accepts_dialogs_while_active(self) -> None:
        page, _locators = _page()
        session = _session(page)

        with session.auto_confirm_dialogs():
            event, handler = page.on.call_args[0]
            dialog = MagicMock()
            handler(dialog)

        assert event == "dialog"
        dialog.accept.assert_called_once()
        page.remove_listener.assert_called_once_with("dialog", handler)

    def test_listener_removed_on_error(self) -> None:
        page, _locators = _page()
        session = _session(page)

        with pytest.raises(RuntimeError):
            with session.auto_confirm_dialogs():
                raise RuntimeError("boom")

        page.remove_listener.assert_called_once()


class TestExpectDownload:
    def test_saves_download(self, tmp_path: Path) -> None:
        page, _locators = _page()
        download = page.expect_download.return_value.__enter__.return_value.value
        download.save_as.side_effect = lambda target: Path(target).write_bytes(b"%PDF-1.4")
        trigger = MagicMock()
        session = _session(page)

        path = session.expect_download(trigger, tmp_path / "out", "cert.pdf")

        trigger.assert_called_once()
        assert path == tmp_path / "out" / "cert.pdf"
        assert path.read_bytes() == b"%PDF-1.4"

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        page, _locators = _page()
        download = page.expect_download.return_value.__enter__.return_value.value
        download.save_as.side_effect = lambda target: Path(target).write_bytes(b"")
        session = _session(page)

        with pytest.raises(DownloadError, match="empty"):
            session.expect_download(MagicMock(), tmp_path, "cert.pdf")

    def test_timeout_raises_download_error(self, tmp_path: Path) -> None:
        page, _locators = _page()
        page.expect_download.return_value.__enter__.side_effect = PlaywrightTimeoutError("timeout")
        session = _session(page)

        with pytest.raises(DownloadError):
            session.expect_download(MagicMock(), tmp_path, "cert.pdf")


class TestClickWithRetry:
    def test_retries_until_success(self) -> None:
        page, _locators = _page()
        action = MagicMock(side_effect=[PlaywrightError("detached"), None])
        session = _session(page)

        session.click_with_retry(action, "Obligation Details")

        assert action.call_count == 2

    def test_bounded(self) -> None:
        page, _locators = _page()
        action = MagicMock(side_effect=PlaywrightError("detached"))
        session = _session(page, click_retry_attempts=3)

        with pytest.raises(NavigationError):
            session.click_with_retry(action, "Obligation Details")
        assert action.call_count == 3


class TestLookupPin:
    def test_submits_pin_once_accepted(self) -> None:
        page, locators = _page({SELECTORS.pin_checker_input: True})
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("no banner")
        session = _session(page)

        session.lookup_pin("P051234567A")

        locators[SELECTORS.pin_checker_input].fill.assert_called_once_with("P051234567A")
        page.get_by_role.assert_called_with("button", name="Consult")
        page.evaluate.assert_not_called()

    def test_opens_pin_checker_when_form_hidden(self) -> None:
        page, _locators = _page({SELECTORS.pin_checker_input: False})
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("no banner")
        session = _session(page)

        session.lookup_pin("P051234567A")

        page.evaluate.assert_called_once_with(SELECTORS.pin_checker_script)

    def test_rejections_are_bounded(self) -> None:
        page, _locators = _page({SELECTORS.pin_checker_input: True})
        session = _session(page, pin_lookup_attempts=4)

        with pytest.raises(CaptchaExhaustedError):
            session.lookup_pin("P051234567A")
        assert page.get_by_role.return_value.click.call_count == 4


class TestLogout:
    def test_confirmed(self) -> None:
        page, _locators = _page()
        session = _session(page)

        assert session.logout() is True
        page.evaluate.assert_called_once_with(SELECTORS.logout_script)
        assert session.state is SessionState.UNAUTHENTICATED

    def test_marker_missing(self) -> None:
        page, _locators = _page()
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("still logged in")
        session = _session(page)

        assert session.logout() is False

    def test_script_failure(self) -> None:
        page, _locators = _page()
        page.evaluate.side_effect = PlaywrightError("logOutUser is not defined")
        session = _session(page)

        assert session.logout() is False


class TestNavigateTo:
    def test_delegates_to_locator(self) -> None:
        page, _locators = _page()
        locator = MagicMock()
        session = PortalSession(page, MagicMock(), _settings(), SELECTORS, locator=locator)
        entry = MagicMock()

        session.navigate_to(entry)

        locator.locate.assert_called_once_with(page, entry)
