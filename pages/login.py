"""Login page object."""
from __future__ import annotations

from pages.base import BasePage


class LoginPage(BasePage):
    url_path = "/practice-test-login/"

    USERNAME = "#username"
    PASSWORD = "#password"
    SUBMIT = "#submit"
    SUCCESS_TITLE = ".post-title"
    ERROR = "#error"

    def login(self, username: str, password: str) -> "LoginPage":
        self.safe_send_keys(self.USERNAME, username)
        self.safe_send_keys(self.PASSWORD, password)
        self.safe_click(self.SUBMIT, timeout=self.poller.long_timeout)
        return self

    def success_message(self) -> str:
        return self.safe_get_text(self.SUCCESS_TITLE)

    def error_message(self) -> str:
        return self.safe_get_text(self.ERROR, timeout=self.poller.short_timeout)
