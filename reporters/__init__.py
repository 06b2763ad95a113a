"""Report generators and result sinks for browser test runs."""
from reporters.base import BaseReporter, ReportFormat, ResultSink
from reporters.html import HTMLReporter
from reporters.json_reporter import JSONReporter
from reporters.junit import JUnitReporter
from reporters.sink import ReportSink

__all__ = [
    "BaseReporter",
    "ReportFormat",
    "ResultSink",
    "ReportSink",
    "HTMLReporter",
    "JSONReporter",
    "JUnitReporter",
    "build_reporters",
]


def build_reporters(
    output_format: str,
    embed_screenshots: bool = False,
    report_name: str = "Web Automation Report",
    document_title: str = "Test Execution Results",
) -> list[BaseReporter]:
    """Reporters for an ``html | json | junit | all`` format selection."""
    fmt = ReportFormat(output_format)
    reporters: list[BaseReporter] = []
    if fmt in (ReportFormat.HTML, ReportFormat.ALL):
        reporters.append(HTMLReporter(embed_screenshots, report_name, document_title))
    if fmt in (ReportFormat.JSON, ReportFormat.ALL):
        reporters.append(JSONReporter())
    if fmt in (ReportFormat.JUNIT, ReportFormat.ALL):
        reporters.append(JUnitReporter())
    return reporters
