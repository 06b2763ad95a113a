"""Reporter and result-sink interfaces for browser test runs."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from test_types import AttemptRecord, TestRunResult


class ReportFormat(str, Enum):
    """Supported report formats."""
    HTML = "html"
    JSON = "json"
    JUNIT = "junit"
    ALL = "all"


class BaseReporter(ABC):
    """Abstract base class for report generators.

    Reporters render a fixed file name so that writing the same results twice
    produces the same file.
    """

    filename: str = "report"

    @abstractmethod
    def render(self, results: List[TestRunResult], generated_at: datetime, output_dir: Path) -> str:
        """
        Render the report document for a list of test rows.

        Args:
            results: One row per logical test
            generated_at: Timestamp printed in the report
            output_dir: Directory the report will be written to

        Returns:
            The report document as text
        """
        pass

    @property
    @abstractmethod
    def format(self) -> ReportFormat:
        """Return the report format this reporter generates."""
        pass

    def generate_suite(
        self,
        results: List[TestRunResult],
        output_dir: Path,
        generated_at: datetime | None = None,
    ) -> Path:
        """Write the report for ``results`` into ``output_dir`` and return its path."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / self.filename
        content = self.render(results, generated_at or datetime.now(), output_dir)
        target.write_text(content, encoding="utf-8")
        return target


class ResultSink(ABC):
    """Receives test lifecycle events from the driver loop.

    Implementations never capture artifacts themselves; failed attempts
    arrive with an ``artifact_ref`` already attached.
    """

    @abstractmethod
    def on_start(self, test_id: str, **metadata: Any) -> None:
        """A test attempt is starting. Retries reuse the existing entry."""

    @abstractmethod
    def on_outcome(self, record: AttemptRecord) -> None:
        """An attempt reached a terminal outcome."""

    @abstractmethod
    def on_finish(self) -> Dict[ReportFormat, Path]:
        """Persist accumulated results. Repeated calls must not duplicate output."""
