"""
Output formatters for reports.

Provides multiple output formats including:
- Human-readable CLI output
- JSON for machine processing
- SARIF for IDE integration
"""

from typing import Iterable

from stylescanner.core.findings import Finding, Report
from stylescanner.formatters.cli import CLIFormatter
from stylescanner.formatters.json_formatter import JSONFormatter
from stylescanner.formatters.sarif import SARIFFormatter

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "SARIFFormatter",
    "get_formatter",
    "format_findings",
]


def get_formatter(format_name: str, **options):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "sarif": SARIFFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class(**options)

    raise ValueError(f"Unknown format: {format_name}")


def format_findings(findings: Iterable[Finding], format_name: str = "text", **options) -> str:
    """Render findings as a report in the named format."""
    if format_name.lower() in ("text", "cli"):
        options.setdefault("use_color", False)
    report = Report.from_findings(findings)
    return get_formatter(format_name, **options).format_result(report)
