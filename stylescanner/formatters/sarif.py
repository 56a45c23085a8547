"""
SARIF output formatter for IDE integration.

SARIF (Static Analysis Results Interchange Format) is a standard
format for static analysis tool output, supported by many IDEs
and code review tools.
"""

import json
from typing import Dict, Any, List

from stylescanner import __version__
from stylescanner.core.findings import Finding, Report, Severity
from stylescanner.core.rules import registry


SARIF_LEVEL = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
}


class SARIFFormatter:
    """
    Formats reports in SARIF format.

    SARIF is supported by:
    - GitHub Code Scanning
    - VS Code SARIF Viewer
    - Azure DevOps
    - Many other tools
    """

    SARIF_VERSION = "2.1.0"
    SCHEMA_URI = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

    def __init__(self, include_suppressed: bool = False):
        self.include_suppressed = include_suppressed

    def format_result(self, report: Report) -> str:
        """Format a complete report in SARIF format."""
        sarif = {
            "$schema": self.SCHEMA_URI,
            "version": self.SARIF_VERSION,
            "runs": [self._create_run(report)],
        }

        return json.dumps(sarif, indent=2)

    def _create_run(self, report: Report) -> Dict[str, Any]:
        """Create a SARIF run object."""
        findings = [f for f in report.findings if self.include_suppressed or not f.suppressed]
        rules = self._collect_rules(findings)
        rule_index = {rule["id"]: index for index, rule in enumerate(rules)}

        return {
            "tool": self._create_tool(rules),
            "results": [self._create_result(finding, rule_index) for finding in findings],
            "invocations": [self._create_invocation(report)],
        }

    def _create_tool(self, rules: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Create a SARIF tool object."""
        return {
            "driver": {
                "name": "stylescanner",
                "version": __version__,
                "rules": rules,
            }
        }

    def _collect_rules(self, findings: List[Finding]) -> List[Dict[str, Any]]:
        """Collect unique rules from findings, ordered by rule id."""
        rule_ids = sorted({finding.rule_id for finding in findings})
        return [self._create_rule(rule_id) for rule_id in rule_ids]

    def _create_rule(self, rule_id: str) -> Dict[str, Any]:
        """Create a SARIF rule object from the registered metadata."""
        metadata = registry.get_metadata(rule_id)
        if metadata is None:
            # Engine-generated findings such as "fix-skipped"
            return {
                "id": rule_id,
                "shortDescription": {"text": rule_id},
                "defaultConfiguration": {"level": "note"},
            }

        return {
            "id": rule_id,
            "name": metadata.name,
            "shortDescription": {
                "text": metadata.name,
            },
            "fullDescription": {
                "text": metadata.description,
            },
            "defaultConfiguration": {
                "level": SARIF_LEVEL[metadata.severity],
                "enabled": metadata.enabled_by_default,
            },
            "properties": {
                "tags": list(metadata.tags),
                "category": metadata.category.value,
                "autoFixable": metadata.auto_fixable,
                "advisory": metadata.advisory,
            },
        }

    @staticmethod
    def _region(finding: Finding) -> Dict[str, Any]:
        location = finding.location
        return {
            "startLine": location.start_line,
            "startColumn": location.start_column,
            "endLine": location.end_line,
            "endColumn": location.end_column,
            "charOffset": finding.span.start,
            "charLength": finding.span.length,
        }

    def _create_result(self, finding: Finding, rule_index: Dict[str, int]) -> Dict[str, Any]:
        """Create a SARIF result object from a finding."""
        region = self._region(finding)
        if finding.snippet:
            region["snippet"] = {"text": finding.snippet.code}

        result = {
            "ruleId": finding.rule_id,
            "ruleIndex": rule_index[finding.rule_id],
            "level": SARIF_LEVEL[finding.severity],
            "message": {
                "text": finding.message,
            },
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {
                            "uri": finding.file_path,
                        },
                        "region": region,
                    },
                }
            ],
        }

        # Add suppression info
        if finding.suppressed:
            result["suppressions"] = [
                {
                    "kind": "inSource",
                    "justification": finding.suppression_reason or "Suppressed by inline comment",
                }
            ]

        # Add fix if available
        if finding.fix is not None:
            result["fixes"] = [
                {
                    "description": {
                        "text": finding.fix.description or finding.message,
                    },
                    "artifactChanges": [
                        {
                            "artifactLocation": {
                                "uri": finding.file_path,
                            },
                            "replacements": [
                                {
                                    "deletedRegion": {
                                        "charOffset": finding.fix.span.start,
                                        "charLength": finding.fix.span.length,
                                    },
                                    "insertedContent": {
                                        "text": finding.fix.replacement,
                                    },
                                }
                            ],
                        }
                    ],
                }
            ]

        return result

    def _create_invocation(self, report: Report) -> Dict[str, Any]:
        """Create a SARIF invocation object."""
        notifications = [
            {"message": {"text": warning}, "level": "warning"}
            for warning in report.warnings
        ]
        notifications.extend(
            {"message": {"text": error}, "level": "error"}
            for error in report.errors
        )
        return {
            "executionSuccessful": len(report.errors) == 0,
            "toolExecutionNotifications": notifications,
        }
