"""Custom exception hierarchy for the browser test harness."""
from __future__ import annotations

from typing import Any, Optional


class HarnessError(Exception):
    """Base exception for all harness-related errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidConfigurationError(HarnessError):
    """Raised when wait or retry parameters are malformed."""

    def __init__(self, message: str, parameter: Optional[str] = None, value: Any = None):
        details = {}
        if parameter:
            details["parameter"] = parameter
            details["value"] = value
        super().__init__(message, details)
        self.parameter = parameter
        self.value = value


# Wait-related exceptions
class WaitError(HarnessError):
    """Base exception for explicit-wait errors."""

    pass


class WaitTimeoutError(WaitError, TimeoutError):
    """Raised when a wait deadline elapses without a satisfying outcome."""

    def __init__(
        self,
        message: str,
        timeout: float,
        polls: int = 0,
        last_value: Any = None,
        last_error: Optional[BaseException] = None,
    ):
        details: dict[str, Any] = {"timeout": timeout, "polls": polls}
        if last_error is not None:
            details["last_error"] = f"{type(last_error).__name__}: {last_error}"
        super().__init__(message, details)
        self.timeout = timeout
        self.polls = polls
        self.last_value = last_value
        self.last_error = last_error


class TransientProbeError(WaitError):
    """Raised by a predicate when its target is momentarily unreachable.

    The poll loop swallows this and keeps waiting.
    """

    def __init__(self, message: str, selector: Optional[str] = None):
        details = {"selector": selector} if selector else {}
        super().__init__(message, details)
        self.selector = selector


# Resource / browser exceptions
class ResourceCreationError(HarnessError):
    """Raised when a per-context resource (browser session) cannot start."""

    def __init__(
        self,
        message: str,
        browser: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
        context_id: Any = None,
    ):
        details: dict[str, Any] = {}
        if browser:
            details["browser"] = browser
        if config:
            details["config"] = config
        if context_id is not None:
            details["context_id"] = context_id
        super().__init__(message, details)
        self.browser = browser
        self.config = config or {}
        self.context_id = context_id


class BrowserError(HarnessError):
    """Base exception for browser automation errors."""

    pass


class NavigationError(BrowserError):
    """Raised when page navigation fails."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if timeout:
            details["timeout"] = timeout
        super().__init__(message, details)
        self.url = url
        self.timeout = timeout


class BrowserNotStartedError(BrowserError):
    """Raised when attempting to use browser before starting."""

    def __init__(self):
        super().__init__("Browser has not been started. Call start() first.")


class ScreenshotError(BrowserError):
    """Raised when screenshot capture fails."""

    pass


# Test execution exceptions
class TestExecutionError(HarnessError):
    """Base exception for test execution errors."""

    __test__ = False


class TestSkipped(TestExecutionError):
    """Raised by a test invocation whose precondition is not met."""

    __test__ = False

    def __init__(self, reason: str = "Skipped"):
        super().__init__(reason)
        self.reason = reason


class RetriesExhaustedError(TestExecutionError):
    """Raised when a test still fails after its last allowed attempt."""

    def __init__(self, test_id: str, attempts: int, last_error: Optional[str] = None):
        message = f"Test {test_id} failed after {attempts} attempt(s)"
        details: dict[str, Any] = {"test_id": test_id, "attempts": attempts}
        if last_error:
            details["last_error"] = last_error
        super().__init__(message, details)
        self.test_id = test_id
        self.attempts = attempts
        self.last_error = last_error


# Test definition exceptions
class TestDefinitionError(HarnessError):
    """Base exception for test data loading errors."""

    __test__ = False


class TaskLoadError(TestDefinitionError):
    """Raised when a test data file cannot be loaded or parsed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        details = {"file_path": file_path} if file_path else {}
        super().__init__(message, details)
        self.file_path = file_path


class TaskValidationError(TestDefinitionError):
    """Raised when a test case definition is invalid."""

    def __init__(self, message: str, task_id: Optional[str] = None, field: Optional[str] = None):
        details = {}
        if task_id:
            details["task_id"] = task_id
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.task_id = task_id
        self.field = field


# Configuration exceptions
class ConfigurationError(HarnessError):
    """Raised when configuration is invalid."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a required config file is not found."""

    def __init__(self, file_path: str):
        super().__init__(f"Configuration file not found: {file_path}", {"file_path": file_path})
        self.file_path = file_path
