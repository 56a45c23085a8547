"""
JSON output formatter for machine-readable results.

The document carries the tool identity, a summary computed over the
findings actually emitted, the findings themselves, and the run's file
errors and configuration warnings.
"""

import json
from collections import Counter
from typing import Any, Dict, List, Sequence

from stylescanner import __version__
from stylescanner.core.findings import Finding, Report


class JSONFormatter:
    """
    Formats reports as JSON for machine consumption.

    Suppressed findings are left out unless ``include_suppressed`` is set.
    Timing is left out unless ``include_timing`` is set, so two runs over
    the same input render byte-identical documents.
    """

    def __init__(self, indent: int = 2, include_suppressed: bool = False, include_timing: bool = False):
        self.indent = indent
        self.include_suppressed = include_suppressed
        self.include_timing = include_timing

    def _visible(self, findings: Sequence[Finding]) -> List[Finding]:
        if self.include_suppressed:
            return list(findings)
        return [f for f in findings if not f.suppressed]

    def _summary(self, report: Report, findings: Sequence[Finding]) -> Dict[str, Any]:
        by_rule = Counter(f.rule_id for f in findings)
        summary: Dict[str, Any] = {
            "files_checked": report.files_checked,
            "rules_applied": list(report.rules_applied),
            "total_findings": report.total_findings,
            "suppressed_findings": report.suppressed_count,
            "fixable_findings": report.fixable_count,
            "by_severity": {
                "error": report.error_count,
                "warning": report.warning_count,
                "info": report.info_count,
            },
            "by_rule": {rule_id: by_rule[rule_id] for rule_id in sorted(by_rule)},
        }
        if self.include_timing:
            summary["elapsed_seconds"] = report.elapsed_seconds
        return summary

    def format_result(self, report: Report) -> str:
        """Format a complete report as JSON."""
        findings = self._visible(report.findings)
        document = {
            "tool": {"name": "stylescanner", "version": __version__},
            "summary": self._summary(report, findings),
            "fixes": {
                "applied": report.fixes_applied,
                "skipped": report.fixes_skipped,
            },
            "findings": [f.to_dict() for f in findings],
            "errors": list(report.errors),
            "warnings": list(report.warnings),
        }
        return json.dumps(document, indent=self.indent)

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding as JSON."""
        return json.dumps(finding.to_dict(), indent=self.indent)

    def format_findings(self, findings: Sequence[Finding]) -> str:
        """Format a list of findings as a JSON array."""
        return json.dumps([f.to_dict() for f in self._visible(findings)], indent=self.indent)
