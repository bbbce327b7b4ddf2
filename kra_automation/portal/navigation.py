from abc import ABC, abstractmethod

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from kra_automation.logging.logger import Log
from kra_automation.portal.exceptions import FeatureNotFoundError
from kra_automation.portal.models import FeatureEntry


class EntryPointStrategy(ABC):
    """One way of opening a portal feature from the authenticated landing page."""

    name: str = "base"

    @abstractmethod
    def open(self, page: Page, entry: FeatureEntry) -> bool:
        """Try to open the feature. Return False when this strategy cannot reach it."""


class MenuHoverStrategy(EntryPointStrategy):
    """Hover each candidate top-menu item until the feature's submenu marker shows up."""

    name = "menu-hover"

    def __init__(self, marker_timeout_ms: int = 1000) -> None:
        self._marker_timeout_ms = marker_timeout_ms

    def open(self, page: Page, entry: FeatureEntry) -> bool:
        for selector in entry.menu_selectors:
            if not self._hover(page, selector):
                continue
            if entry.marker_selector is None or self._marker_visible(page, entry.marker_selector):
                page.evaluate(entry.open_script)
                return True
            Log.debug(f"Menu item {selector} did not reveal {entry.name}")
        return False

    def _hover(self, page: Page, selector: str) -> bool:
        element = page.query_selector(selector)
        if element is None:
            return False
        box = element.bounding_box()
        if box is None:
            return False
        page.mouse.move(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
        return True

    def _marker_visible(self, page: Page, marker_selector: str) -> bool:
        try:
            page.wait_for_selector(marker_selector, timeout=self._marker_timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True


class ReloadThenHoverStrategy(MenuHoverStrategy):
    """Same as MenuHoverStrategy after a reload, for menus that failed to initialise."""

    name = "reload-hover"

    def open(self, page: Page, entry: FeatureEntry) -> bool:
        page.reload()
        return super().open(page, entry)


class DirectScriptStrategy(EntryPointStrategy):
    """Call the feature's page function without touching the menu."""

    name = "direct-script"

    def open(self, page: Page, entry: FeatureEntry) -> bool:
        try:
            page.evaluate(entry.open_script)
        except PlaywrightError as exc:
            Log.debug(f"{entry.open_script} unavailable: {exc}")
            return False
        return True


def default_strategies() -> list[EntryPointStrategy]:
    return [MenuHoverStrategy(), ReloadThenHoverStrategy(), DirectScriptStrategy()]


class FeatureLocator:
    """Runs entry-point strategies in order; the first whose feature form renders wins."""

    def __init__(
        self,
        strategies: list[EntryPointStrategy] | None = None,
        form_timeout_ms: int = 5000,
    ) -> None:
        self._strategies = strategies if strategies is not None else default_strategies()
        self._form_timeout_ms = form_timeout_ms

    def locate(self, page: Page, entry: FeatureEntry) -> str:
        """Open `entry` and return the name of the strategy that reached it.

        A strategy only counts once `entry.form_marker` is visible; otherwise
        the next strategy is tried.

        Raises:
            FeatureNotFoundError: if every strategy fails.
        """
        for strategy in self._strategies:
            try:
                opened = strategy.open(page, entry) and self._form_rendered(page, entry)
            except PlaywrightError as exc:
                Log.warning(f"Strategy {strategy.name} failed for {entry.name}: {exc}")
                continue
            if opened:
                Log.info(f"Opened {entry.name} via {strategy.name}")
                return strategy.name
        raise FeatureNotFoundError(f"Could not reach {entry.name}")

    def _form_rendered(self, page: Page, entry: FeatureEntry) -> bool:
        if entry.form_marker is None:
            return True
        try:
            page.wait_for_selector(entry.form_marker, state="visible", timeout=self._form_timeout_ms)
        except PlaywrightTimeoutError:
            Log.warning(f"{entry.name} form did not render")
            return False
        return True
