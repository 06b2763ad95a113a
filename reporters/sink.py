"""Thread-safe result sink that turns attempt events into report files."""
from __future__ import annotations

import copy
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from reporters.base import BaseReporter, ReportFormat, ResultSink
from test_types import AttemptRecord, TestRunResult


class ReportSink(ResultSink):
    """Keeps one row per logical test and flushes it through reporters.

    All public methods hold an internal lock, so workers may report
    concurrently.
    """

    def __init__(
        self,
        output_dir: Path,
        reporters: Sequence[BaseReporter],
        logger: Optional[logging.Logger] = None,
    ):
        self.output_dir = Path(output_dir)
        self.reporters = list(reporters)
        self.logger = logger or logging.getLogger("harness.report")
        self._rows: Dict[str, TestRunResult] = {}
        self._lock = threading.Lock()
        self._dirty = True
        self._generated_at: Optional[datetime] = None
        self._written: Dict[ReportFormat, Path] = {}

    def on_start(self, test_id: str, **metadata: Any) -> None:
        with self._lock:
            row = self._rows.get(test_id)
            if row is None:
                row = TestRunResult(
                    test_id=test_id,
                    description=metadata.get("description"),
                    tags=set(metadata.get("tags") or ()),
                    started_at=datetime.now(),
                )
                self._rows[test_id] = row
            self._dirty = True

    def on_outcome(self, record: AttemptRecord) -> None:
        with self._lock:
            row = self._rows.get(record.test_id)
            if row is None:
                row = TestRunResult(test_id=record.test_id, started_at=record.started_at)
                self._rows[record.test_id] = row

            row.attempts = [a for a in row.attempts if a.attempt_number != record.attempt_number]
            row.attempts.append(record)
            row.attempts.sort(key=lambda a: a.attempt_number)
            row.finished_at = record.finished_at or datetime.now()
            self._dirty = True
            exhausted = row.final is record and record.retries_exhausted

        if exhausted:
            self.logger.info(f"{record.test_id}: failed after {record.attempts_made} attempts")

    def results(self) -> List[TestRunResult]:
        """Snapshot of the current rows, in first-seen order."""
        with self._lock:
            return [copy.copy(row) for row in self._rows.values()]

    def get(self, test_id: str) -> Optional[TestRunResult]:
        with self._lock:
            return self._rows.get(test_id)

    def on_finish(self) -> Dict[ReportFormat, Path]:
        with self._lock:
            if not self._dirty and self._written:
                self.logger.debug("Report already flushed; nothing new to write")
                return dict(self._written)

            rows = list(self._rows.values())
            self._generated_at = datetime.now()
            written: Dict[ReportFormat, Path] = {}
            for reporter in self.reporters:
                path = reporter.generate_suite(rows, self.output_dir, generated_at=self._generated_at)
                written[reporter.format] = path
                self.logger.info(f"{reporter.format.value.upper()} report: {path}")

            self._written = written
            self._dirty = False
            return dict(written)
