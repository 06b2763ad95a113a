"""Upload and download demo pages."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pages.base import BasePage


class UploadFilePage(BasePage):
    url_path = "/upload"

    FILE_INPUT = "[data-testid='file-input']"
    SUBMIT = "#fileSubmit"
    HEADING = "h1"

    def upload_and_submit(
        self,
        file_path: str | Path,
        wait_for_attribute: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "UploadFilePage":
        self.upload_file(self.FILE_INPUT, [file_path], wait_for_attribute=wait_for_attribute, timeout=timeout)
        self.safe_click(self.SUBMIT, timeout=self.poller.long_timeout)
        return self

    def success_message(self) -> str:
        return self.safe_get_text(self.HEADING)


class DownloadFilePage(BasePage):
    """Download list; clicking a file saves it into the session's downloads folder."""

    url_path = "/download"

    @staticmethod
    def download_link(file_name: str) -> str:
        return f".card-body:has(strong:has-text('{file_name}')) a"

    def download(self, file_name: str, timeout: Optional[float] = None) -> Path:
        """Click the file's download link and return where it was saved."""
        page = self.page
        with page.expect_download(timeout=(timeout or self.poller.long_timeout) * 1000) as info:
            self.safe_click(self.download_link(file_name), timeout=self.poller.long_timeout)
        download = info.value
        folder = Path(self.session.options.downloads_folder or "downloads")
        folder.mkdir(parents=True, exist_ok=True)
        target = folder / download.suggested_filename
        download.save_as(str(target))
        self.logger.info(f"Downloaded {file_name} to {target}")
        return target
