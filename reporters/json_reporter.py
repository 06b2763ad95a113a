"""JSON report generator for browser test runs."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from reporters.base import BaseReporter, ReportFormat
from test_types import AttemptRecord, Outcome, TestRunResult


class JSONReporter(BaseReporter):
    """Generate machine-readable JSON reports."""

    filename = "report.json"

    @property
    def format(self) -> ReportFormat:
        return ReportFormat.JSON

    def _attempt_to_dict(self, attempt: AttemptRecord) -> Dict[str, Any]:
        """Convert AttemptRecord to JSON-serializable dict."""
        return {
            "attempt": attempt.attempt_number,
            "outcome": attempt.outcome.value,
            "error": {"kind": attempt.error.kind, "message": attempt.error.message} if attempt.error else None,
            "artifact": attempt.artifact_ref,
            "started_at": attempt.started_at.isoformat(),
            "finished_at": attempt.finished_at.isoformat() if attempt.finished_at else None,
            "duration_seconds": round(attempt.duration_seconds, 3),
        }

    def _result_to_dict(self, result: TestRunResult) -> Dict[str, Any]:
        """Convert TestRunResult to JSON-serializable dict."""
        return {
            "id": result.test_id,
            "description": result.description,
            "tags": sorted(result.tags),
            "outcome": result.outcome.value,
            "reason": result.reason,
            "attempts": result.attempt_count,
            "retries_exhausted": bool(result.final and result.final.retries_exhausted),
            "artifact": result.artifact_ref,
            "duration_seconds": round(result.duration_seconds, 3),
            "history": [self._attempt_to_dict(a) for a in result.attempts],
        }

    def render(self, results: List[TestRunResult], generated_at: datetime, output_dir: Path) -> str:
        passed = sum(1 for r in results if r.outcome is Outcome.PASSED)
        failed = sum(1 for r in results if r.outcome is Outcome.FAILED)
        skipped = sum(1 for r in results if r.outcome is Outcome.SKIPPED)
        executed = passed + failed
        pass_rate = (passed / executed * 100) if executed else 0.0

        durations = [r.duration_seconds for r in results]
        total_duration = sum(durations)

        report_data = {
            "generated_at": generated_at.isoformat(),
            "report_version": "1.0",
            "tests": [self._result_to_dict(r) for r in results],
            "summary": {
                "total": len(results),
                "passed": passed,
                "failed": failed,
                "skipped": skipped,
                "retried": sum(1 for r in results if r.retried),
                "pass_rate": round(pass_rate, 2),
                "total_duration_seconds": round(total_duration, 2),
            },
            "failed_tests": [
                {"id": r.test_id, "reason": r.reason, "artifact": r.artifact_ref}
                for r in results if r.outcome is Outcome.FAILED
            ],
        }
        return json.dumps(report_data, indent=2)
