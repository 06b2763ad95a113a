"""JUnit XML report generator for CI integration."""
from __future__ import annotations

import html
from datetime import datetime
from pathlib import Path
from typing import List

from reporters.base import BaseReporter, ReportFormat
from test_types import Outcome, TestRunResult


class JUnitReporter(BaseReporter):
    """Generate JUnit XML reports for CI/CD integration."""

    filename = "junit.xml"

    def __init__(self, suite_name: str = "Browser Tests"):
        self.suite_name = suite_name

    @property
    def format(self) -> ReportFormat:
        return ReportFormat.JUNIT

    def _escape_xml(self, text: str) -> str:
        """Escape special XML characters."""
        return html.escape(str(text), quote=True)

    def _format_timestamp(self, dt: datetime) -> str:
        """Format datetime for JUnit XML."""
        return dt.strftime("%Y-%m-%dT%H:%M:%S")

    def _build_testcase_xml(self, result: TestRunResult) -> str:
        """Build XML for a single test case."""
        lines = []

        classname = "harness.browser"
        name = self._escape_xml(result.test_id)
        time_sec = f"{result.duration_seconds:.3f}"
        lines.append(f'    <testcase classname="{classname}" name="{name}" time="{time_sec}">')

        if result.outcome is Outcome.SKIPPED:
            lines.append(f'      <skipped message="{self._escape_xml(result.reason)}"/>')
        elif result.outcome is Outcome.FAILED:
            error = result.error
            failure_type = self._escape_xml(error.kind if error else "TestFailure")
            lines.append(
                f'      <failure message="{self._escape_xml(result.reason)}" type="{failure_type}"><![CDATA['
            )
            lines.append(f"Test: {result.test_id}")
            lines.append(f"Attempts: {result.attempt_count}")
            if result.artifact_ref:
                lines.append(f"Screenshot: {result.artifact_ref}")
            if error and error.traceback:
                lines.append("")
                lines.append(error.traceback.replace("]]>", "]]]]><![CDATA[>"))
            lines.append("]]></failure>")

        if result.retried:
            lines.append("      <system-out><![CDATA[")
            for attempt in result.attempts:
                detail = f" ({attempt.error})" if attempt.error else ""
                lines.append(f"Attempt {attempt.attempts_made}: {attempt.outcome.value}{detail}")
            lines.append("]]></system-out>")

        lines.append("    </testcase>")
        return "\n".join(lines)

    def render(self, results: List[TestRunResult], generated_at: datetime, output_dir: Path) -> str:
        tests = len(results)
        failures = sum(1 for r in results if r.outcome is Outcome.FAILED)
        skipped = sum(1 for r in results if r.outcome is Outcome.SKIPPED)
        total_time = sum(r.duration_seconds for r in results)

        # Earliest start
        starts = [r.started_at for r in results if r.started_at]
        timestamp_str = self._format_timestamp(min(starts) if starts else generated_at)

        lines = ['<?xml version="1.0" encoding="UTF-8"?>']
        lines.append(
            f'<testsuite name="{self._escape_xml(self.suite_name)}" '
            f'tests="{tests}" '
            f'failures="{failures}" '
            f'errors="0" '
            f'skipped="{skipped}" '
            f'time="{total_time:.3f}" '
            f'timestamp="{timestamp_str}">'
        )

        lines.append("  <properties>")
        lines.append('    <property name="reporter" value="harness-junit"/>')
        lines.append(f'    <property name="generated_at" value="{generated_at.isoformat()}"/>')
        lines.append("  </properties>")

        for result in results:
            lines.append(self._build_testcase_xml(result))

        lines.append("</testsuite>")
        return "\n".join(lines)
