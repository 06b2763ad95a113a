"""Page objects for the web application under test."""
from pages.base import BasePage
from pages.files import DownloadFilePage, UploadFilePage
from pages.login import LoginPage

__all__ = ["BasePage", "DownloadFilePage", "LoginPage", "UploadFilePage"]
