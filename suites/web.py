"""Web flows against the public practice sites, one function per flow.

Run everything in ``testdata/`` with::

    browser-harness --suite suites.web:run --parallel 2
"""
from __future__ import annotations

from pathlib import Path

from exceptions import TestSkipped
from pages import DownloadFilePage, LoginPage, UploadFilePage
from test_runner import TestContext


def login(ctx: TestContext) -> None:
    page = LoginPage(ctx.session, ctx.poller)
    page.open(ctx.url())
    page.login(ctx.data["username"], ctx.data["password"])

    expected = ctx.data.get("expected", "Logged In Successfully")
    if ctx.data.get("expect_error"):
        actual = page.error_message()
    else:
        actual = page.success_message()
    assert actual == expected, f"Expected {expected!r}, got {actual!r}"


def upload_file(ctx: TestContext) -> None:
    page = UploadFilePage(ctx.session, ctx.poller)
    page.open(ctx.url())
    page.upload_and_submit(
        Path(ctx.data["file"]),
        wait_for_attribute=ctx.data.get("wait_for_attribute"),
        timeout=ctx.poller.long_timeout,
    )
    message = page.success_message()
    assert message == ctx.data.get("expected", "File Uploaded!"), f"Upload message mismatch: {message!r}"


def download_file(ctx: TestContext) -> None:
    page = DownloadFilePage(ctx.session, ctx.poller)
    page.open(ctx.url())
    saved = page.download(ctx.data["file_name"])
    assert saved.exists() and saved.stat().st_size > 0, f"Download is empty: {saved}"


FLOWS = {
    "login": login,
    "upload": upload_file,
    "download": download_file,
}


def run(ctx: TestContext) -> None:
    """Dispatch on the case's ``flow`` data key (default: login)."""
    flow = ctx.data.get("flow", "login")
    try:
        handler = FLOWS[flow]
    except KeyError:
        raise TestSkipped(f"Unknown flow {flow!r}") from None
    handler(ctx)
