"""Browser session wrapper around Playwright's sync API, one instance per worker thread."""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Locator,
    Page,
    Playwright,
    sync_playwright,
    TimeoutError as PlaywrightTimeout,
)

from exceptions import (
    BrowserNotStartedError,
    NavigationError,
    ResourceCreationError,
    ScreenshotError,
)

if TYPE_CHECKING:
    from config import BrowserConfig

BrowserKind = Literal["chrome", "chromium", "firefox", "edge", "webkit"]

# Browser kind -> (Playwright launcher attribute, default channel)
_LAUNCHERS: dict[str, tuple[str, Optional[str]]] = {
    "chrome": ("chromium", None),
    "chromium": ("chromium", None),
    "edge": ("chromium", "msedge"),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
}


@dataclass(frozen=True)
class BrowserOptions:
    """Launch variant for a browser session."""

    kind: BrowserKind = "chrome"
    headless: bool = True
    downloads_folder: Optional[str] = None
    viewport_width: int = 1920
    viewport_height: int = 1080
    slow_mo: int = 0
    channel: Optional[str] = None

    @classmethod
    def from_config(cls, config: "BrowserConfig") -> "BrowserOptions":
        return cls(
            kind=config.browser,
            headless=config.headless,
            downloads_folder=str(config.downloads_folder) if config.downloads_folder else None,
            viewport_width=config.viewport_width,
            viewport_height=config.viewport_height,
            slow_mo=config.slow_mo,
            channel=config.channel,
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class BrowserSession:
    """A live Playwright browser, context and page owned by one worker."""

    def __init__(
        self,
        options: Optional[BrowserOptions] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.options = options or BrowserOptions()
        self.logger = logger or logging.getLogger("harness.browser")

        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.last_download_path: str | None = None
        self._closed = False

    def _ensure_started(self) -> None:
        """Raise if browser not started."""
        if self.page is None:
            raise BrowserNotStartedError()

    @property
    def is_started(self) -> bool:
        return self.page is not None

    def start(self) -> "BrowserSession":
        """Launch the browser for the configured kind."""
        opts = self.options
        if opts.kind not in _LAUNCHERS:
            raise ResourceCreationError(
                f"Unsupported browser kind: {opts.kind}", browser=opts.kind, config=opts.as_dict()
            )
        launcher_name, default_channel = _LAUNCHERS[opts.kind]

        try:
            if opts.downloads_folder:
                os.makedirs(opts.downloads_folder, exist_ok=True)

            self._playwright = sync_playwright().start()
            launcher = getattr(self._playwright, launcher_name)
            launch_options: dict[str, Any] = {"headless": opts.headless}
            channel = opts.channel or default_channel
            if channel:
                launch_options["channel"] = channel
            if opts.slow_mo > 0:
                launch_options["slow_mo"] = opts.slow_mo

            self.browser = launcher.launch(**launch_options)
            self.context = self.browser.new_context(
                viewport={"width": opts.viewport_width, "height": opts.viewport_height},
                accept_downloads=bool(opts.downloads_folder),
            )
            self.page = self.context.new_page()
        except Exception as exc:
            self.close()
            raise ResourceCreationError(
                f"Could not start {opts.kind} browser: {exc}",
                browser=opts.kind,
                config=opts.as_dict(),
            ) from exc

        if opts.downloads_folder:
            self.page.on("download", self._handle_download)

        self.logger.info(f"Browser started: {opts.kind} (headless={opts.headless})")
        return self

    def _handle_download(self, download: Any) -> None:
        """Save downloads into the configured folder."""
        target = os.path.join(self.options.downloads_folder or ".", download.suggested_filename)
        try:
            download.save_as(target)
            self.last_download_path = target
            self.logger.info(f"Download saved to {target}")
        except Exception as e:
            self.logger.error(f"Download save failed: {e}")

    def close(self) -> None:
        """Close the browser and clean up resources. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            if self.context:
                self.context.close()
            if self.browser:
                self.browser.close()
        finally:
            if self._playwright:
                self._playwright.stop()
            self.page = None
            self.context = None
            self.browser = None
            self._playwright = None
        self.logger.info("Browser closed")

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def goto(
        self,
        url: str,
        wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "load",
        timeout: float = 30000,
    ) -> None:
        """Navigate to a URL with configurable wait strategy."""
        self._ensure_started()
        try:
            self.page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeout as e:
            raise NavigationError(f"Navigation timed out: {url}", url=url, timeout=timeout) from e
        except Exception as e:
            raise NavigationError(f"Navigation failed: {e}", url=url) from e

    def get_url(self) -> str:
        self._ensure_started()
        return self.page.url

    def get_title(self) -> str:
        self._ensure_started()
        return self.page.title()

    # ─────────────────────────────────────────────────────────────────────────
    # Elements
    # ─────────────────────────────────────────────────────────────────────────

    def locator(self, selector: str) -> Locator:
        self._ensure_started()
        return self.page.locator(selector)

    def set_input_files(self, selector: str, file_paths: list[str]) -> None:
        self._ensure_started()
        self.page.set_input_files(selector, file_paths)

    # ─────────────────────────────────────────────────────────────────────────
    # Screenshots
    # ─────────────────────────────────────────────────────────────────────────

    def screenshot(self, full_page: bool = False) -> bytes:
        """Take a screenshot and return the PNG bytes."""
        self._ensure_started()
        try:
            return self.page.screenshot(full_page=full_page)
        except Exception as e:
            raise ScreenshotError(f"Screenshot failed: {e}") from e

    def save_screenshot(self, folder: Path, name: str, full_page: bool = True) -> Path:
        """Write a timestamped PNG named after ``name`` into ``folder``."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")[:-3]
        safe_name = "".join(c if c.isalnum() or c in "-_." else "_" for c in name)
        target = Path(folder) / f"{safe_name}_{timestamp}.png"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.screenshot(full_page=full_page))
        return target

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("started" if self.is_started else "new")
        return f"<BrowserSession {self.options.kind} {state}>"


def create_session(options: BrowserOptions, logger: Optional[logging.Logger] = None) -> BrowserSession:
    """Factory for :class:`registry.ResourceRegistry`: build and start a session."""
    return BrowserSession(options, logger=logger).start()
