"""
Tests for fix application and file remediation.
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stylescanner.core.engine import StyleEngine, evaluate
from stylescanner.core.findings import (
    Finding, Severity, FindingCategory, CodeLocation, Fix, Span
)
from stylescanner.core.rules import Rule, RuleMetadata
from stylescanner.parsers.tokenizer import tokenize
from stylescanner.remediation.engine import apply_fixes, RemediationEngine, FIX_SKIPPED_RULE_ID


def make_finding(rule_id, start, end, replacement):
    return Finding(
        rule_id=rule_id,
        message=f"{rule_id} finding",
        severity=Severity.WARNING,
        category=FindingCategory.TERMINATION,
        location=CodeLocation(file_path="<input>", start_line=1, end_line=1, start_column=start + 1),
        span=Span(start, end),
        fix=Fix(Span(start, end), replacement, f"Replace with {replacement!r}"),
    )


class RenameKeywordRule(Rule):
    """Rewrites the first three characters."""

    @property
    def metadata(self):
        return RuleMetadata(
            rule_id="test-rename-keyword",
            name="Rename Keyword",
            description="Use let.",
            severity=Severity.WARNING,
            category=FindingCategory.NAMING,
            auto_fixable=True,
        )

    def analyze(self, context):
        span = Span(0, 3)
        yield self.create_finding(context, span, fix=Fix(span, "let"))


class RenameVariableRule(Rule):
    """Rewrites a range overlapping the keyword."""

    @property
    def metadata(self):
        return RuleMetadata(
            rule_id="test-rename-variable",
            name="Rename Variable",
            description="Rename x.",
            severity=Severity.WARNING,
            category=FindingCategory.NAMING,
            auto_fixable=True,
        )

    def analyze(self, context):
        span = Span(1, 5)
        yield self.create_finding(context, span, fix=Fix(span, "X"))


class TestApplyFixes:
    """Tests for conflict-free fix application."""

    def test_overlapping_fixes(self):
        text = "var x: Int = 5;"
        findings = evaluate(tokenize(text), [RenameVariableRule(), RenameKeywordRule()])
        assert len(findings) == 2

        result = apply_fixes(text, findings)
        assert result.applied_count == 1
        assert result.skipped_count == 1
        assert result.text == "let x: Int = 5;"

        skipped = result.skipped[0]
        assert skipped.rule_id == FIX_SKIPPED_RULE_ID
        assert skipped.severity == Severity.INFO
        assert skipped.origin.rule_id == "test-rename-variable"
        assert skipped.metadata["conflicts_with"] == "test-rename-keyword"

    def test_same_start_insertions_conflict(self):
        text = "abc"
        findings = [make_finding("b-rule", 1, 1, "Y"), make_finding("a-rule", 1, 1, "X")]
        result = apply_fixes(text, findings)
        assert result.text == "aXbc"
        assert result.skipped[0].origin.rule_id == "b-rule"

    def test_adjacent_fixes_both_apply(self):
        text = "ab cd"
        findings = [make_finding("r", 3, 5, "q"), make_finding("r", 0, 2, "xyz")]
        result = apply_fixes(text, findings)
        assert result.text == "xyz q"
        assert result.skipped == []
        assert [edit.new_span for edit in result.applied] == [Span(0, 3), Span(4, 5)]

    def test_insertion_at_end_of_replacement(self):
        result = apply_fixes("abc", [make_finding("r", 0, 2, "Z"), make_finding("s", 2, 2, "!")])
        assert result.text == "Z!c"
        assert result.applied_count == 2

    def test_span_outside_text(self):
        result = apply_fixes("abc", [make_finding("r", 1, 10, "x")])
        assert result.text == "abc"
        assert result.skipped_count == 1
        assert result.skipped[0].metadata["reason"] == "its span lies outside the text"

    def test_suppressed_and_unfixable_findings_are_ignored(self):
        suppressed = make_finding("r", 0, 1, "x").evolve(suppressed=True)
        unfixable = make_finding("s", 1, 2, "y").evolve(fix=None)
        result = apply_fixes("abc", [suppressed, unfixable])
        assert result.text == "abc"
        assert result.applied_count == 0
        assert not result.changed


class TestIdempotence:
    """Fixing twice changes nothing the second time."""

    SOURCE = (
        "import Foundation\n"
        "\n"
        "func main()\n"
        "{\n"
        "    var total:Int = 0\n"
        "    for (item in items) {\n"
        "        total += item;\n"
        "    }\n"
        "    if total > 10 {\n"
        "        print(total)\n"
        "    }\n"
        "    // todo: remove this\n"
        "}\n"
    )

    EXPECTED = (
        "import Foundation;\n"
        "\n"
        "func main() {\n"
        "    var total:Int = 0;\n"
        "    for item in items {\n"
        "        total += item;\n"
        "    }\n"
        "    if (total > 10) {\n"
        "        print(total);\n"
        "    }\n"
        "    // TODO: remove this\n"
        "}\n"
    )

    def test_single_pass_result(self):
        engine = StyleEngine()
        result, _ = engine.fix_content(self.SOURCE)
        assert result.text == self.EXPECTED
        assert result.skipped_count == 0

    def test_second_pass_has_nothing_to_fix(self):
        engine = StyleEngine()
        first, _ = engine.fix_content(self.SOURCE)
        second, findings = engine.fix_content(first.text)
        assert second.text == first.text
        assert second.applied_count == 0
        assert engine.fixable(findings) == []


class TestRemediationEngine:
    """Tests for writing fixes to files."""

    def test_write_with_backup(self, tmp_path):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        engine = StyleEngine()
        result, _ = engine.fix_content(path.read_text(), str(path))

        engine.remediation.write(result)

        assert result.written
        assert path.read_text() == "var x:Int = 5;\n"
        assert (tmp_path / "a.swift.bak").read_text() == "var x:Int = 5\n"

    def test_dry_run_leaves_file(self, tmp_path):
        path = tmp_path / "a.swift"
        path.write_text("var x:Int = 5\n")
        remediation = RemediationEngine(dry_run=True)
        finding = make_finding("r", 13, 13, ";")
        result = remediation.fix_text(path.read_text(), [finding], str(path))

        remediation.write(result)

        assert not result.written
        assert path.read_text() == "var x:Int = 5\n"
        assert "+var x:Int = 5;" in result.diff

    def test_crlf_preserved(self, tmp_path):
        path = tmp_path / "a.swift"
        path.write_bytes(b"let a: Int = 1\r\nlet b: Int = 2;\r\n")
        remediation = RemediationEngine(backup=False)
        content = path.read_bytes().decode("utf-8")
        result = remediation.fix_text(content, [make_finding("r", 14, 14, ";")], str(path))

        remediation.write(result)

        assert path.read_bytes() == b"let a: Int = 1;\r\nlet b: Int = 2;\r\n"
        assert not (tmp_path / "a.swift.bak").exists()

    def test_report(self):
        remediation = RemediationEngine(dry_run=True)
        text = "var x: Int = 5;"
        findings = [make_finding("r", 0, 3, "let"), make_finding("s", 1, 2, "A")]
        result = remediation.fix_text(text, findings, "a.swift")

        report = remediation.format_remediation_report([result])

        assert "REMEDIATION REPORT (dry run)" in report
        assert "Fixes applied: 1" in report
        assert "Fixes skipped: 1" in report
        assert "[r]" in report
        assert "a.swift" in report
