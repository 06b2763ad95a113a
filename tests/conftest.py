"""Pytest fixtures for the browser test harness."""
from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from test_types import AttemptRecord, ErrorDescriptor, Outcome, TestCase, TestRunResult


class FakeClock:
    """Manual clock; ``sleep`` advances time instead of blocking."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSession:
    """Stand-in for BrowserSession that records lifecycle calls."""

    instances: List["FakeSession"] = []

    def __init__(self, name: str = "session"):
        self.name = name
        self.closed = False
        self.page = MagicMock(name=f"{name}.page")
        self.screenshots: List[str] = []
        FakeSession.instances.append(self)

    @property
    def is_started(self) -> bool:
        return not self.closed

    def close(self) -> None:
        self.closed = True

    def save_screenshot(self, folder, name: str, full_page: bool = True) -> Path:
        path = Path(folder) / f"{name}.png"
        self.screenshots.append(str(path))
        return path


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_session_factory():
    """Factory producing numbered FakeSession objects."""
    FakeSession.instances = []
    counter = {"n": 0}

    def factory() -> FakeSession:
        counter["n"] += 1
        return FakeSession(f"session-{counter['n']}")

    factory.instances = FakeSession.instances
    return factory


@pytest.fixture
def sample_test_case() -> TestCase:
    """Create a sample test case for testing."""
    return TestCase(
        id="test-login",
        description="Log in to the practice site",
        data={"username": "student", "password": "Password123"},
        start_url="https://practicetestautomation.com/practice-test-login/",
        tags={"smoke", "auth"},
        priority=1,
    )


@pytest.fixture
def sample_test_result() -> TestRunResult:
    """A result that failed once and then passed."""
    first = AttemptRecord(test_id="test-login", attempt_number=0, started_at=datetime(2024, 1, 1, 10, 0, 0))
    first.finish(
        Outcome.FAILED,
        error=ErrorDescriptor("WaitTimeoutError", "Timed out after 10s waiting for visible(#submit)"),
        artifact_ref="screenshots/test-login_attempt1.png",
    )
    second = AttemptRecord(test_id="test-login", attempt_number=1, started_at=datetime(2024, 1, 1, 10, 0, 15))
    second.finish(Outcome.PASSED)
    return TestRunResult(
        test_id="test-login",
        attempts=[first, second],
        description="Log in to the practice site",
        tags={"smoke", "auth"},
        started_at=datetime(2024, 1, 1, 10, 0, 0),
        finished_at=datetime(2024, 1, 1, 10, 0, 30),
    )


@pytest.fixture
def failed_test_result() -> TestRunResult:
    """A result whose retries ran out."""
    attempts = []
    for number in range(2):
        record = AttemptRecord(test_id="test-checkout", attempt_number=number)
        record.finish(
            Outcome.FAILED,
            error=ErrorDescriptor("AssertionError", "Cart total mismatch", traceback="Traceback ...\n"),
            artifact_ref=f"screenshots/test-checkout_{number}.png",
            retries_exhausted=number == 1,
        )
        attempts.append(record)
    return TestRunResult(
        test_id="test-checkout",
        attempts=attempts,
        description="Checkout flow",
        tags={"regression"},
        started_at=datetime(2024, 1, 1, 11, 0, 0),
        finished_at=datetime(2024, 1, 1, 11, 1, 0),
    )


@pytest.fixture
def skipped_test_result() -> TestRunResult:
    record = AttemptRecord(test_id="test-legacy")
    record.finish(Outcome.SKIPPED, error=ErrorDescriptor("Skipped", "feature retired"))
    return TestRunResult(test_id="test-legacy", attempts=[record])


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_case_yaml() -> str:
    """Sample YAML case definition."""
    return """
id: login-valid
description: Log in with valid credentials
start_url: https://practicetestautomation.com/practice-test-login/
data:
  username: student
  password: Password123
tags:
  - smoke
  - auth
priority: 1
max_attempts: 3
"""


@pytest.fixture
def sample_case_json() -> Dict[str, Any]:
    """Sample JSON case definition with parameter rows."""
    return {
        "id": "login-invalid",
        "description": "Log in with bad credentials",
        "data": {"expected": "invalid"},
        "parameters": [
            {"username": "incorrectUser", "password": "Password123"},
            {"username": "student", "password": "incorrectPassword"},
        ],
        "tags": ["auth", "negative"],
    }


@pytest.fixture
def mock_page() -> MagicMock:
    """Playwright-like page whose locators are configured per test."""
    page = MagicMock(name="page")
    page.url = "https://example.com/dashboard"
    page.title.return_value = "Dashboard | Example"
    page.evaluate.return_value = "complete"
    return page


@pytest.fixture
def make_locator():
    """Build locator mocks whose ``.first`` is the locator itself."""

    def build(count: int = 1, visible: bool = True, enabled: bool = True, text: str = "") -> MagicMock:
        locator = MagicMock(name="locator")
        locator.count.return_value = count
        locator.first = locator
        locator.is_visible.return_value = visible
        locator.is_enabled.return_value = enabled
        locator.inner_text.return_value = text
        return locator

    return build
