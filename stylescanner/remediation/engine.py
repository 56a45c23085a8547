"""
Remediation engine for applying style fixes.

This module provides:
- Conflict-free application of span-based fixes to a text
- Before/after diff visualization
- Writing fixed files with dry-run and backup support
"""

import difflib
import logging
import os
from dataclasses import dataclass, field
from typing import List, Iterable, Optional, Tuple

from stylescanner.core.findings import Finding, Severity, FindingCategory, Span
from stylescanner.utils import pluralize


logger = logging.getLogger(__name__)

FIX_SKIPPED_RULE_ID = "fix-skipped"


@dataclass(frozen=True)
class AppliedEdit:
    """A fix that was applied, with where it landed in the new text."""
    finding: Finding
    original_span: Span
    new_span: Span


@dataclass
class FixResult:
    """Result of applying fixes to one text."""
    text: str
    applied_count: int
    skipped_count: int
    skipped: List[Finding] = field(default_factory=list)
    applied: List[AppliedEdit] = field(default_factory=list)
    original_text: str = ""
    file_path: str = ""
    diff: str = ""
    written: bool = False
    error_message: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.text != self.original_text


def _skipped_finding(finding: Finding, reason: str, blocker: Optional[Finding] = None) -> Finding:
    metadata = {"reason": reason, "skipped_rule_id": finding.rule_id}
    if blocker is not None:
        metadata["conflicts_with"] = blocker.rule_id
        message = (
            f"Fix for '{finding.rule_id}' was not applied: it overlaps the fix "
            f"for '{blocker.rule_id}'."
        )
    else:
        message = f"Fix for '{finding.rule_id}' was not applied: {reason}."

    return Finding(
        rule_id=FIX_SKIPPED_RULE_ID,
        message=message,
        severity=Severity.INFO,
        category=FindingCategory.REMEDIATION,
        location=finding.location,
        span=finding.span,
        metadata=metadata,
        origin=finding,
    )


def apply_fixes(text: str, findings: Iterable[Finding]) -> FixResult:
    """
    Apply the fixes carried by ``findings`` to ``text``.

    Fixes are taken in ``(start, end, rule id)`` order. A fix overlapping
    an already accepted one, or starting at the same offset, is skipped as
    a whole and reported as a ``fix-skipped`` finding; so is a fix whose
    span lies outside the text. The accepted fixes are applied in a single
    left-to-right pass.
    """
    candidates = [f for f in findings if f.fix is not None and not f.suppressed]
    candidates.sort(key=lambda f: (f.fix.span.start, f.fix.span.end, f.rule_id, f.message))

    accepted: List[Finding] = []
    skipped: List[Finding] = []
    reach = -1
    blocker: Optional[Finding] = None

    for finding in candidates:
        span = finding.fix.span
        if span.end > len(text):
            skipped.append(_skipped_finding(finding, "its span lies outside the text"))
            continue
        if accepted and span.overlaps(accepted[-1].fix.span):
            skipped.append(_skipped_finding(finding, "overlapping fix", accepted[-1]))
            continue
        if span.start < reach:
            skipped.append(_skipped_finding(finding, "overlapping fix", blocker))
            continue
        accepted.append(finding)
        if span.end >= reach:
            reach = span.end
            blocker = finding

    pieces: List[str] = []
    applied: List[AppliedEdit] = []
    cursor = 0
    delta = 0
    for finding in accepted:
        fix = finding.fix
        pieces.append(text[cursor:fix.span.start])
        pieces.append(fix.replacement)
        new_start = fix.span.start + delta
        applied.append(AppliedEdit(
            finding=finding,
            original_span=fix.span,
            new_span=Span(new_start, new_start + len(fix.replacement)),
        ))
        delta += len(fix.replacement) - fix.span.length
        cursor = fix.span.end
    pieces.append(text[cursor:])

    for finding in skipped:
        logger.debug("Skipped fix: %s", finding.message)

    return FixResult(
        text="".join(pieces),
        applied_count=len(applied),
        skipped_count=len(skipped),
        skipped=skipped,
        applied=applied,
        original_text=text,
    )


class RemediationEngine:
    """
    Engine for applying style fixes to files.

    The remediation engine:
    1. Applies the auto-fixable findings of a file to its text
    2. Creates before/after diffs
    3. Writes the fixed file, with dry-run and backup support
    """

    def __init__(self, dry_run: bool = False, backup: bool = True):
        self.dry_run = dry_run
        self.backup = backup

    def fix_text(self, content: str, findings: Iterable[Finding], file_path: str = "<input>") -> FixResult:
        """Apply fixes to ``content`` and attach a diff."""
        result = apply_fixes(content, findings)
        result.file_path = file_path
        if result.changed:
            result.diff = self.generate_diff(content, result.text, file_path)
        return result

    def write(self, result: FixResult, dry_run: Optional[bool] = None) -> FixResult:
        """
        Write a fixed text back to its file.

        Args:
            result: The result to write.
            dry_run: If True, don't actually modify files. Overrides instance setting.

        Returns:
            The same result, with ``written`` or ``error_message`` set.
        """
        if dry_run is None:
            dry_run = self.dry_run

        if dry_run or not result.changed:
            return result

        try:
            if self.backup:
                with open(result.file_path + ".bak", "w", encoding="utf-8",
                          errors="surrogateescape", newline="") as f:
                    f.write(result.original_text)
            with open(result.file_path, "w", encoding="utf-8",
                      errors="surrogateescape", newline="") as f:
                f.write(result.text)
            result.written = True
            logger.debug("Wrote %s to %s", pluralize(result.applied_count, "fix", "fixes"), result.file_path)
        except OSError as e:
            result.error_message = f"Error modifying file: {e}"
            logger.error("Could not write %s: %s", result.file_path, e)

        return result

    def generate_diff(self, original: str, fixed: str, file_path: str) -> str:
        """Generate a unified diff between original and fixed code."""
        original_lines = original.splitlines(keepends=True)
        fixed_lines = fixed.splitlines(keepends=True)
        display_path = file_path.replace(os.sep, "/")

        diff = difflib.unified_diff(
            original_lines,
            fixed_lines,
            fromfile=f"a/{display_path}",
            tofile=f"b/{display_path}",
        )

        return ''.join(diff)

    def format_remediation_report(self, results: List[FixResult]) -> str:
        """
        Format fix results as a human-readable report.

        Args:
            results: One result per file.

        Returns:
            A formatted string report.
        """
        applied, skipped = self._totals(results)
        lines = [
            "=" * 60,
            "REMEDIATION REPORT" + (" (dry run)" if self.dry_run else ""),
            "=" * 60,
            "",
            f"Files changed: {sum(1 for r in results if r.changed)}",
            f"Fixes applied: {applied}",
            f"Fixes skipped: {skipped}",
            "",
        ]

        for result in results:
            if not result.changed and not result.skipped:
                continue

            lines.append("-" * 60)
            lines.append(result.file_path)
            lines.append("-" * 60)

            for edit in result.applied:
                description = edit.finding.fix.description or edit.finding.message
                lines.append(f"  + {edit.finding.location}: [{edit.finding.rule_id}] {description}")
            for finding in result.skipped:
                lines.append(f"  ! {finding.location}: {finding.message}")
            if result.error_message:
                lines.append(f"  Error: {result.error_message}")

            if result.diff:
                lines.append("")
                lines.append("  Diff:")
                for line in result.diff.splitlines():
                    lines.append(f"  {line}")
            lines.append("")

        lines.append("=" * 60)

        return '\n'.join(lines)

    @staticmethod
    def _totals(results: List[FixResult]) -> Tuple[int, int]:
        return (
            sum(r.applied_count for r in results),
            sum(r.skipped_count for r in results),
        )
