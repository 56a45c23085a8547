"""Core checking engine and data structures."""

from stylescanner.core.findings import Finding, Severity, FindingCategory, Fix, Span, Report
from stylescanner.core.engine import StyleEngine, InputError, evaluate
from stylescanner.core.rules import Rule, RuleMetadata, RuleRegistry, AnalysisContext

__all__ = [
    "Finding",
    "Severity",
    "FindingCategory",
    "Fix",
    "Span",
    "Report",
    "StyleEngine",
    "InputError",
    "evaluate",
    "Rule",
    "RuleMetadata",
    "RuleRegistry",
    "AnalysisContext",
]
