"""
CLI output formatter for human-readable results.

Rendering goes through a ``rich`` console writing into a buffer, so the
same code produces colored terminal output or plain text.
"""

import io
import sys
from typing import Dict, List

from rich.console import Console
from rich.text import Text

from stylescanner.core.findings import Finding, Report, Severity
from stylescanner.utils import pluralize


# Severity -> Rich style
SEVERITY_STYLE = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "bold yellow",
    Severity.INFO: "bold blue",
}

RULE_WIDTH = 26
RENDER_WIDTH = 120


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    return sys.stdout.isatty()


class CLIFormatter:
    """
    Formats reports for human-readable CLI output.

    Findings are grouped by file in report order. Verbose mode adds code
    snippets and the suggested fix of each finding.
    """

    def __init__(self, use_color: bool = True, verbose: bool = False, include_suppressed: bool = False):
        self.use_color = use_color and supports_color()
        self.verbose = verbose
        self.include_suppressed = include_suppressed

    def _console(self, buffer: io.StringIO) -> Console:
        return Console(
            file=buffer,
            width=RENDER_WIDTH,
            force_terminal=self.use_color,
            color_system="standard" if self.use_color else None,
            highlight=False,
            soft_wrap=True,
        )

    def format_result(self, report: Report) -> str:
        """Format a complete report."""
        buffer = io.StringIO()
        console = self._console(buffer)

        findings = [f for f in report.findings if self.include_suppressed or not f.suppressed]

        by_file: Dict[str, List[Finding]] = {}
        for finding in findings:
            by_file.setdefault(finding.file_path, []).append(finding)

        for file_path, file_findings in by_file.items():
            console.print(Text(file_path, style="bold cyan"))
            for finding in file_findings:
                for line in self._finding_lines(finding):
                    console.print(line)
            console.print()

        for line in self._summary_lines(report):
            console.print(line)

        return buffer.getvalue()

    def _finding_lines(self, finding: Finding) -> List[Text]:
        """Format a single finding."""
        line = Text("  ")
        line.append(f"{finding.line}:{finding.column}".ljust(9), style="dim")
        line.append(finding.severity.value.upper().ljust(8), style=SEVERITY_STYLE[finding.severity])
        line.append(finding.rule_id.ljust(RULE_WIDTH), style="magenta")
        line.append(finding.message)
        if finding.suppressed:
            line.append(" (suppressed)", style="dim")
        elif finding.fix is not None:
            line.append(" [fixable]", style="green")
        lines = [line]

        if not self.verbose:
            return lines

        if finding.snippet:
            snippet = finding.snippet
            first = snippet.highlighted_line - len(snippet.context_before)
            for offset, code in enumerate(snippet.context_before):
                lines.append(Text(f"      {first + offset:5} | {code}", style="dim"))
            lines.append(Text(f"    > {snippet.highlighted_line:5} | {snippet.code}"))
            for offset, code in enumerate(snippet.context_after, start=1):
                lines.append(Text(f"      {snippet.highlighted_line + offset:5} | {code}", style="dim"))

        if finding.fix is not None and finding.fix.description:
            fix_line = Text("      fix: ", style="green")
            fix_line.append(finding.fix.description)
            lines.append(fix_line)
        if finding.origin is not None:
            lines.append(Text(f"      skipped: {finding.origin.rule_id} at {finding.origin.location}", style="dim"))

        return lines

    def _summary_lines(self, report: Report) -> List[Text]:
        lines: List[Text] = []

        if report.total_findings == 0:
            lines.append(Text("No style issues found.", style="bold green"))
        else:
            summary = Text(pluralize(report.total_findings, "finding"), style="bold")
            summary.append(" (")
            summary.append(pluralize(report.error_count, "error"), style=SEVERITY_STYLE[Severity.ERROR])
            summary.append(", ")
            summary.append(pluralize(report.warning_count, "warning"), style=SEVERITY_STYLE[Severity.WARNING])
            summary.append(", ")
            summary.append(f"{report.info_count} info", style=SEVERITY_STYLE[Severity.INFO])
            summary.append(")")
            lines.append(summary)
            if report.fixable_count:
                lines.append(Text(f"{report.fixable_count} automatically fixable", style="green"))

        details = [f"Files checked: {report.files_checked}", f"Rules applied: {len(report.rules_applied)}"]
        if report.suppressed_count:
            details.append(f"Suppressed: {report.suppressed_count}")
        if report.fixes_applied or report.fixes_skipped:
            details.append(f"Fixes applied: {report.fixes_applied}")
            details.append(f"Fixes skipped: {report.fixes_skipped}")
        lines.append(Text("  ".join(details), style="dim"))

        for warning in report.warnings:
            lines.append(Text(f"warning: {warning}", style="yellow"))
        for error in report.errors:
            lines.append(Text(f"error: {error}", style="red"))

        return lines

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding."""
        buffer = io.StringIO()
        console = self._console(buffer)
        for line in self._finding_lines(finding):
            console.print(line)
        return buffer.getvalue()
