"""
Tests for report building and output formatters.
"""

import json
import pytest
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stylescanner.core.engine import StyleEngine
from stylescanner.core.findings import Finding, Report, Span
from stylescanner.formatters import get_formatter, format_findings, CLIFormatter, JSONFormatter, SARIFFormatter
from stylescanner.remediation.engine import apply_fixes


def findings_for(source, file_path="a.swift"):
    return StyleEngine().check_content(source, file_path)


class TestReport:
    """Tests for report ordering and counts."""

    def test_sorted_by_file_line_column_rule(self):
        findings = findings_for("let b = 1\n", "b.swift") + findings_for("let a = 1\n", "a.swift")
        report = Report.from_findings(findings)
        assert [(f.file_path, f.line, f.column, f.rule_id) for f in report.findings] == [
            ("a.swift", 1, 5, "explicit-typing"),
            ("a.swift", 1, 10, "statement-termination"),
            ("b.swift", 1, 5, "explicit-typing"),
            ("b.swift", 1, 10, "statement-termination"),
        ]

    def test_counts(self):
        report = Report.from_findings(findings_for("let a = 1\n// TODO: x\n"))
        assert report.total_findings == 3
        assert report.warning_count == 2
        assert report.info_count == 1
        assert report.error_count == 0
        assert report.fixable_count == 1

    def test_finding_round_trip(self):
        finding = findings_for("var x:Int = 5")[0]
        restored = Finding.from_dict(finding.to_dict())
        assert restored == finding
        assert restored.fix == finding.fix

    def test_invalid_span(self):
        with pytest.raises(ValueError):
            Span(5, 2)


class TestCLIFormatter:
    """Tests for the human-readable formatter."""

    def test_plain_output(self):
        report = Report.from_findings(findings_for("var x:Int = 5"), files_checked=1)
        output = CLIFormatter(use_color=False).format_result(report)
        assert "a.swift" in output
        assert "1:14" in output
        assert "WARNING" in output
        assert "statement-termination" in output
        assert "[fixable]" in output
        assert "1 finding" in output
        assert "\x1b[" not in output

    def test_verbose_output(self):
        report = Report.from_findings(findings_for("let a: Int = 1\nvar x:Int = 5\n"))
        output = CLIFormatter(use_color=False, verbose=True).format_result(report)
        assert ">     2 | var x:Int = 5" in output
        assert "fix: Insert ';'" in output

    def test_format_finding(self):
        finding = findings_for("let v: Int = opt!;")[0]
        output = CLIFormatter(use_color=False).format_finding(finding)
        assert output.startswith("  1:17")
        assert "force-unwrap" in output
        assert json.loads(JSONFormatter().format_finding(finding))["rule_id"] == "force-unwrap"

    def test_no_findings(self):
        output = CLIFormatter(use_color=False).format_result(Report.from_findings([]))
        assert "No style issues found." in output

    def test_suppressed_hidden_by_default(self):
        findings = findings_for("let a: Int = 1 // stylescanner-ignore\n")
        report = Report.from_findings(findings)
        assert "statement-termination" not in CLIFormatter(use_color=False).format_result(report)
        shown = CLIFormatter(use_color=False, include_suppressed=True).format_result(report)
        assert "(suppressed)" in shown

    def test_errors_and_warnings(self):
        report = Report.from_findings([], errors=["a.swift: input is empty"], warnings=["Unknown rule"])
        output = CLIFormatter(use_color=False).format_result(report)
        assert "error: a.swift: input is empty" in output
        assert "warning: Unknown rule" in output


class TestJSONFormatter:
    """Tests for JSON output."""

    def test_format_result(self):
        report = Report.from_findings(findings_for("var x:Int = 5"), files_checked=1)
        data = json.loads(JSONFormatter().format_result(report))
        assert data["summary"]["total_findings"] == 1
        assert data["summary"]["by_severity"]["warning"] == 1
        finding = data["findings"][0]
        assert finding["rule_id"] == "statement-termination"
        assert finding["span"] == {"start": 13, "end": 13}
        assert finding["fix"]["replacement"] == ";"

    def test_format_findings(self):
        output = format_findings(findings_for("let a = 1;"), "json")
        data = json.loads(output)
        assert [f["rule_id"] for f in data["findings"]] == ["explicit-typing"]

    def test_repeated_runs_render_identically(self, tmp_path):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\nlet y = 2\n" * 200)
        formatter = get_formatter("json")
        first = formatter.format_result(StyleEngine().check(str(path)))
        second = formatter.format_result(StyleEngine().check(str(path)))
        assert first == second
        assert "elapsed_seconds" not in first

    def test_timing_is_opt_in(self):
        report = Report.from_findings([], elapsed_seconds=1.5)
        assert "elapsed_seconds" not in report.to_dict()["summary"]
        assert report.to_dict(include_timing=True)["summary"]["elapsed_seconds"] == 1.5
        data = json.loads(JSONFormatter(include_timing=True).format_result(report))
        assert data["summary"]["elapsed_seconds"] == 1.5

    def test_report_sections(self):
        report = Report.from_findings(
            findings_for("let a = 1\nlet b = 2\n"),
            warnings=["Unknown rule id in configuration: nope"],
            fixes_applied=3,
            fixes_skipped=1,
        )
        data = json.loads(JSONFormatter().format_result(report))
        assert data["tool"]["name"] == "stylescanner"
        assert data["fixes"] == {"applied": 3, "skipped": 1}
        assert data["summary"]["by_rule"] == {"explicit-typing": 2, "statement-termination": 2}
        assert data["warnings"] == ["Unknown rule id in configuration: nope"]
        assert data["errors"] == []

    def test_suppressed_findings_are_filtered(self):
        findings = findings_for("var x:Int = 5 // stylescanner-ignore\n")
        report = Report.from_findings(findings)
        assert json.loads(JSONFormatter().format_result(report))["findings"] == []
        shown = json.loads(JSONFormatter(include_suppressed=True).format_result(report))
        assert shown["findings"][0]["suppressed"] is True


class TestSARIFFormatter:
    """Tests for SARIF output."""

    def test_structure(self):
        report = Report.from_findings(findings_for("var x:Int = 5"))
        sarif = json.loads(SARIFFormatter().format_result(report))
        assert sarif["version"] == "2.1.0"
        run = sarif["runs"][0]
        assert run["tool"]["driver"]["name"] == "stylescanner"
        assert [rule["id"] for rule in run["tool"]["driver"]["rules"]] == ["statement-termination"]

        result = run["results"][0]
        assert result["ruleId"] == "statement-termination"
        assert result["level"] == "warning"
        region = result["locations"][0]["physicalLocation"]["region"]
        assert region["startLine"] == 1
        assert region["startColumn"] == 14
        assert region["charOffset"] == 13
        replacement = result["fixes"][0]["artifactChanges"][0]["replacements"][0]
        assert replacement["deletedRegion"] == {"charOffset": 13, "charLength": 0}
        assert replacement["insertedContent"]["text"] == ";"

    def test_skipped_fix_rule(self):
        findings = findings_for("var x:Int = 5")
        overlapping = findings[0].evolve(rule_id="other-rule")
        skipped = apply_fixes("var x:Int = 5", [findings[0], overlapping]).skipped
        sarif = json.loads(SARIFFormatter().format_result(Report.from_findings(skipped)))
        rules = sarif["runs"][0]["tool"]["driver"]["rules"]
        assert rules[0]["id"] == "fix-skipped"
        assert sarif["runs"][0]["results"][0]["level"] == "note"


class TestGetFormatter:
    """Tests for formatter lookup."""

    def test_known_formats(self):
        assert isinstance(get_formatter("text"), CLIFormatter)
        assert isinstance(get_formatter("JSON"), JSONFormatter)
        assert isinstance(get_formatter("sarif"), SARIFFormatter)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_formatter("xml")

    def test_text_defaults_to_plain(self):
        output = format_findings(findings_for("var x:Int = 5"))
        assert "statement-termination" in output
        assert "\x1b[" not in output
