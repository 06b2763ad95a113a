"""HTML report generator for browser test runs."""
from __future__ import annotations

import base64
import html
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from reporters.base import BaseReporter, ReportFormat
from test_types import AttemptRecord, Outcome, TestRunResult

_BADGES = {
    Outcome.PASSED: ("pass", "PASS"),
    Outcome.FAILED: ("fail", "FAIL"),
    Outcome.SKIPPED: ("skip", "SKIP"),
    Outcome.PENDING: ("skip", "PENDING"),
}


class HTMLReporter(BaseReporter):
    """Generate a single-page HTML report with one card per test."""

    filename = "report.html"

    def __init__(
        self,
        embed_screenshots: bool = False,
        report_name: str = "Web Automation Report",
        document_title: str = "Test Execution Results",
    ):
        """
        Initialize HTML reporter.

        Args:
            embed_screenshots: If True, embed screenshots as base64 in the HTML
            report_name: Heading shown at the top of the report
            document_title: Browser tab title
        """
        self.embed_screenshots = embed_screenshots
        self.report_name = report_name
        self.document_title = document_title

    @property
    def format(self) -> ReportFormat:
        return ReportFormat.HTML

    def _get_screenshot_src(self, screenshot_path: Optional[str], report_root: Path) -> str:
        """Get screenshot source - either base64 or relative path."""
        if not screenshot_path:
            return ""

        path = Path(screenshot_path)
        if not path.exists():
            return ""

        if self.embed_screenshots:
            with open(path, "rb") as f:
                data = base64.b64encode(f.read()).decode("utf-8")
            return f"data:image/png;base64,{data}"

        return os.path.relpath(path.resolve(), start=report_root)

    def _render_history(self, attempts: List[AttemptRecord]) -> str:
        """Render every attempt of a retried test."""
        items = []
        for attempt in attempts:
            css, label = _BADGES[attempt.outcome]
            error = f" &mdash; {html.escape(str(attempt.error))}" if attempt.error else ""
            items.append(
                f'<li><span class="badge {css}">{label}</span> '
                f"Attempt {attempt.attempts_made} ({attempt.duration_seconds:.1f}s){error}</li>"
            )
        return f'<details class="history"><summary>Attempt history</summary><ul>{"".join(items)}</ul></details>'

    def _render_card(self, result: TestRunResult, report_root: Path) -> str:
        css, label = _BADGES[result.outcome]

        description = ""
        if result.description:
            description = f'<p class="test-description">{html.escape(result.description)}</p>'

        retry_note = ""
        if result.retried:
            retry_note = f"<span>Attempts: {result.attempt_count}</span>"

        reason = ""
        if result.outcome is not Outcome.PASSED:
            reason_html = html.escape(result.reason).replace("\n", "<br>")
            reason = f'<div class="error-details">{reason_html}</div>'

        screenshot = ""
        if result.outcome is Outcome.FAILED:
            src = self._get_screenshot_src(result.artifact_ref, report_root)
            if src:
                screenshot = f'''
                <div class="screenshot-preview">
                    <a href="{src}" target="_blank"><img src="{src}" alt="Failure screenshot" loading="lazy" /></a>
                </div>'''

        history = self._render_history(result.attempts) if result.retried else ""
        tags = " ".join(f'<span class="tag">{html.escape(t)}</span>' for t in sorted(result.tags))

        return f'''
            <div class="test-card {css}">
                <div class="test-header">
                    <span class="test-name">{html.escape(result.test_id)}</span>
                    <span class="badge {css}">{label}</span>
                </div>
                {description}
                <div class="test-meta">
                    <span>Duration: {result.duration_seconds:.1f}s</span>
                    {retry_note}
                    {tags}
                </div>
                {reason}
                {screenshot}
                {history}
            </div>'''

    def _get_css(self) -> str:
        """Return the CSS styles for the report."""
        return """
        :root {
            --bg-primary: #0b1220;
            --bg-card: #111a2d;
            --bg-input: #0f1729;
            --border-color: #1f2a44;
            --text-primary: #e6edf7;
            --text-secondary: #c3cee6;
            --accent-blue: #9dd0ff;
            --success-text: #b6f6d8;
            --success-border: #1e7a46;
            --fail-text: #f6c6c6;
            --fail-border: #8a2f2f;
            --skip-text: #f6e7b6;
            --skip-border: #8a7a2f;
        }
        * { box-sizing: border-box; }
        body {
            font-family: "Inter", "Segoe UI", -apple-system, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            margin: 0;
            padding: 24px;
            line-height: 1.5;
        }
        .container { max-width: 1400px; margin: 0 auto; }
        .card {
            background: var(--bg-card);
            border: 1px solid var(--border-color);
            border-radius: 12px;
            padding: 20px;
            margin-bottom: 18px;
        }
        h1 { margin: 0 0 8px; font-size: 1.5rem; font-weight: 600; }
        h2 { margin: 0 0 12px; font-size: 1.1rem; font-weight: 600; }
        p { margin: 4px 0; color: var(--text-secondary); }
        .summary-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(150px, 1fr));
            gap: 16px;
            margin: 20px 0;
        }
        .summary-stat {
            text-align: center;
            padding: 20px;
            background: var(--bg-input);
            border-radius: 8px;
            border: 1px solid var(--border-color);
        }
        .summary-stat .value { font-size: 2rem; font-weight: 700; color: var(--accent-blue); }
        .summary-stat.passed .value { color: var(--success-text); }
        .summary-stat.failed .value { color: var(--fail-text); }
        .summary-stat.skipped .value { color: var(--skip-text); }
        .summary-stat .label { font-size: 0.8rem; color: var(--text-secondary); margin-top: 4px; }
        .test-grid {
            display: grid;
            grid-template-columns: repeat(auto-fill, minmax(350px, 1fr));
            gap: 16px;
        }
        .test-card {
            background: var(--bg-input);
            border: 1px solid var(--border-color);
            border-left: 3px solid var(--border-color);
            border-radius: 8px;
            padding: 16px;
        }
        .test-card.pass { border-left-color: var(--success-border); }
        .test-card.fail { border-left-color: var(--fail-border); }
        .test-card.skip { border-left-color: var(--skip-border); }
        .test-header { display: flex; justify-content: space-between; align-items: center; }
        .test-name { font-weight: 600; }
        .test-description { font-size: 0.875rem; }
        .test-meta { font-size: 0.75rem; color: #888; display: flex; gap: 16px; flex-wrap: wrap; }
        .badge { padding: 2px 8px; border-radius: 999px; font-size: 0.75rem; font-weight: 700; }
        .badge.pass { color: var(--success-text); border: 1px solid var(--success-border); }
        .badge.fail { color: var(--fail-text); border: 1px solid var(--fail-border); }
        .badge.skip { color: var(--skip-text); border: 1px solid var(--skip-border); }
        .tag { background: var(--bg-card); border-radius: 4px; padding: 0 6px; }
        .error-details {
            margin-top: 10px;
            font-family: monospace;
            font-size: 0.8rem;
            color: var(--fail-text);
            white-space: pre-wrap;
            word-break: break-word;
        }
        .screenshot-preview img { max-width: 100%; margin-top: 10px; border-radius: 6px; }
        .history { margin-top: 10px; font-size: 0.8rem; }
        .history ul { list-style: none; padding-left: 0; }
        """

    def render(self, results: List[TestRunResult], generated_at: datetime, output_dir: Path) -> str:
        report_root = Path(output_dir).resolve()
        passed = sum(1 for r in results if r.outcome is Outcome.PASSED)
        failed = sum(1 for r in results if r.outcome is Outcome.FAILED)
        skipped = sum(1 for r in results if r.outcome is Outcome.SKIPPED)
        executed = passed + failed
        pass_rate = (passed / executed * 100) if executed else 0

        test_cards = [self._render_card(result, report_root) for result in results]

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{html.escape(self.document_title)}</title>
    <style>
        {self._get_css()}
    </style>
</head>
<body>
    <div class="container">
        <div class="card">
            <h1>{html.escape(self.report_name)}</h1>
            <p>Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}</p>

            <div class="summary-grid">
                <div class="summary-stat">
                    <div class="value">{len(results)}</div>
                    <div class="label">Total Tests</div>
                </div>
                <div class="summary-stat passed">
                    <div class="value">{passed}</div>
                    <div class="label">Passed</div>
                </div>
                <div class="summary-stat failed">
                    <div class="value">{failed}</div>
                    <div class="label">Failed</div>
                </div>
                <div class="summary-stat skipped">
                    <div class="value">{skipped}</div>
                    <div class="label">Skipped</div>
                </div>
                <div class="summary-stat">
                    <div class="value">{pass_rate:.0f}%</div>
                    <div class="label">Pass Rate</div>
                </div>
            </div>
        </div>

        <div class="card">
            <h2>Test Results</h2>
            <div class="test-grid">
                {"".join(test_cards)}
            </div>
        </div>
    </div>
</body>
</html>"""
