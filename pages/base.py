"""Base page object with explicit waits built on the condition library."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import conditions
from waits import ConditionPoller, Predicate

if TYPE_CHECKING:
    from playwright.sync_api import Locator, Page

    from browser import BrowserSession


class BasePage:
    """Common waits and safe interactions shared by every page object.

    ``timeout`` arguments are in seconds; ``None`` means the poller's default.
    """

    url_path: str = ""

    def __init__(
        self,
        session: BrowserSession,
        poller: Optional[ConditionPoller] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.poller = poller or ConditionPoller()
        self.logger = logger or logging.getLogger(f"harness.pages.{type(self).__name__}")

    @property
    def page(self) -> Page:
        self.session._ensure_started()
        return self.session.page

    def open(self, base_url: str = "") -> "BasePage":
        """Navigate to ``base_url`` + this page's path and wait for the document."""
        url = f"{base_url.rstrip('/')}/{self.url_path.lstrip('/')}" if self.url_path else base_url
        self.session.goto(url, timeout=self.poller.page_load_timeout * 1000)
        self.wait_for_page_load()
        return self

    def wait(self, predicate: Predicate, timeout: Optional[float] = None) -> Any:
        return self.poller.wait_until(self.page, predicate, timeout=timeout)

    # ─────────────────────────────────────────────────────────────────────────
    # Waits
    # ─────────────────────────────────────────────────────────────────────────

    def wait_for_visible(self, selector: str, timeout: Optional[float] = None) -> Locator:
        return self.wait(conditions.visible(selector), timeout)

    def wait_for_clickable(self, selector: str, timeout: Optional[float] = None) -> Locator:
        return self.wait(conditions.clickable(selector), timeout)

    def wait_for_present(self, selector: str, timeout: Optional[float] = None) -> Locator:
        return self.wait(conditions.present(selector), timeout)

    def wait_for_invisible(self, selector: str, timeout: Optional[float] = None) -> bool:
        return self.wait(conditions.invisible(selector), timeout)

    def wait_for_text(self, selector: str, text: str, timeout: Optional[float] = None) -> Locator:
        return self.wait(conditions.text_contains(selector, text), timeout)

    def wait_for_all_visible(self, selector: str, timeout: Optional[float] = None) -> List[Locator]:
        return self.wait(conditions.all_visible(selector), timeout)

    def wait_for_selected(self, selector: str, timeout: Optional[float] = None) -> Locator:
        return self.wait(conditions.selected(selector), timeout)

    def wait_for_attribute_contains(
        self, selector: str, name: str, value: str, timeout: Optional[float] = None
    ) -> Locator:
        return self.wait(conditions.attribute_contains(selector, name, value), timeout)

    def wait_for_url_contains(self, fragment: str, timeout: Optional[float] = None) -> str:
        return self.wait(conditions.url_contains(fragment), timeout)

    def wait_for_title_contains(self, fragment: str, timeout: Optional[float] = None) -> str:
        return self.wait(conditions.title_contains(fragment), timeout)

    def wait_for_page_load(self, timeout: Optional[float] = None) -> bool:
        return self.wait(conditions.document_ready(), timeout or self.poller.page_load_timeout)

    # ─────────────────────────────────────────────────────────────────────────
    # Safe interactions
    # ─────────────────────────────────────────────────────────────────────────

    def safe_click(self, selector: str, timeout: Optional[float] = None) -> None:
        """Wait until the element is clickable, then click it."""
        self.wait_for_clickable(selector, timeout).click()

    def safe_send_keys(self, selector: str, text: str, timeout: Optional[float] = None) -> None:
        """Wait until the element is visible, clear it and type ``text``."""
        self.wait_for_visible(selector, timeout).fill(text)

    def safe_get_text(self, selector: str, timeout: Optional[float] = None) -> str:
        return self.wait_for_visible(selector, timeout).inner_text().strip()

    def is_present(self, selector: str) -> bool:
        """True if at least one element matches right now; never waits."""
        return self.page.locator(selector).count() > 0

    def get_page_title(self, expected: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """Current title, optionally after waiting for it to contain ``expected``."""
        if expected:
            return self.wait_for_title_contains(expected, timeout)
        return self.page.title()

    def is_displayed(self, selector: str, timeout: Optional[float] = None) -> bool:
        """True if the element becomes visible within the short timeout."""
        try:
            self.wait_for_visible(selector, timeout or self.poller.short_timeout)
        except TimeoutError:
            return False
        return True

    def upload_file(
        self,
        selector: str,
        file_paths: Sequence[str | Path],
        wait_for_attribute: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Attach local files to a file input once it is present.

        Relative paths resolve against the working directory. With
        ``wait_for_attribute``, also wait until the input carries that
        attribute (pages that mark the field once the browser accepted it).
        """
        paths = [Path(p).resolve() for p in file_paths]
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            raise FileNotFoundError(f"Upload file(s) not found: {', '.join(missing)}")
        self.logger.info(f"Uploading {', '.join(str(p) for p in paths)}")
        self.wait_for_present(selector, timeout).set_input_files([str(p) for p in paths])
        if wait_for_attribute:
            self.wait(conditions.attribute_present(selector, wait_for_attribute), timeout)
