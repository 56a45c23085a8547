"""
Style Scanner

A rule-based style linter and formatter for Swift-like source code:
statement termination, declaration style, control-flow bracing and
comment markers, with conflict-free automatic fixes.
"""

__version__ = "1.0.0"
__author__ = "Style Scanner Team"

from stylescanner.core.engine import StyleEngine, evaluate
from stylescanner.core.findings import Finding, Severity, Report
from stylescanner.config import LintConfig
from stylescanner.parsers.tokenizer import tokenize
from stylescanner.remediation.engine import apply_fixes

__all__ = [
    "StyleEngine",
    "evaluate",
    "Finding",
    "Severity",
    "Report",
    "LintConfig",
    "tokenize",
    "apply_fixes",
]
