"""
Finding data structures for the style scanner.

This module defines the core data structures used to represent
style findings, their suggested fixes, and the sorted report built
from them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, List, Dict, Any, Iterable, Tuple
import json


class Severity(Enum):
    """Severity levels for findings."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other):
        order = [Severity.INFO, Severity.WARNING, Severity.ERROR]
        return order.index(self) < order.index(other)

    def __le__(self, other):
        return self == other or self < other


class FindingCategory(Enum):
    """Categories of findings, one per convention family."""
    TERMINATION = "termination"
    BRACING = "bracing"
    GROUPING = "grouping"
    TYPING = "typing"
    NAMING = "naming"
    COMMENTS = "comments"
    SAFETY = "safety"
    REMEDIATION = "remediation"


@dataclass(frozen=True)
class Span:
    """
    Half-open offset range ``[start, end)``. An empty span is an insertion point.

    Offsets are character offsets into the decoded text, not byte offsets:
    bytes input is decoded as UTF-8 before tokenizing.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "Span") -> bool:
        """Two spans conflict when they intersect or start at the same offset."""
        if self.start == other.start:
            return True
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class CodeLocation:
    """Represents a location in source code. Lines and columns are 1-based."""
    file_path: str
    start_line: int
    end_line: int
    start_column: int = 1
    end_column: int = 1

    def __str__(self) -> str:
        return f"{self.file_path}:{self.start_line}:{self.start_column}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "start_column": self.start_column,
            "end_column": self.end_column,
        }


@dataclass(frozen=True)
class CodeSnippet:
    """A snippet of code with context."""
    code: str
    highlighted_line: int
    context_before: Tuple[str, ...] = ()
    context_after: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "highlighted_line": self.highlighted_line,
            "context_before": list(self.context_before),
            "context_after": list(self.context_after),
        }


@dataclass(frozen=True)
class Fix:
    """A proposed text edit: replace ``span`` of the original text with ``replacement``."""
    span: Span
    replacement: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "span": self.span.to_dict(),
            "replacement": self.replacement,
            "description": self.description,
        }


@dataclass(frozen=True)
class Finding:
    """
    Represents a single style finding.

    This is the core data structure returned by all rules. Findings are
    read-only once created; derived copies are made with ``evolve``.
    """
    rule_id: str
    message: str
    severity: Severity
    category: FindingCategory
    location: CodeLocation
    span: Span
    fix: Optional[Fix] = None
    snippet: Optional[CodeSnippet] = None
    tags: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)
    suppressed: bool = False
    suppression_reason: Optional[str] = None
    origin: Optional["Finding"] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate and normalize the finding."""
        if isinstance(self.severity, str):
            object.__setattr__(self, "severity", Severity(self.severity))
        if isinstance(self.category, str):
            object.__setattr__(self, "category", FindingCategory(self.category))
        if isinstance(self.tags, list):
            object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def file_path(self) -> str:
        return self.location.file_path

    @property
    def line(self) -> int:
        return self.location.start_line

    @property
    def column(self) -> int:
        return self.location.start_column

    @property
    def auto_fixable(self) -> bool:
        return self.fix is not None

    def sort_key(self) -> Tuple[str, int, int, str, str]:
        """Report ordering: file, line, column, rule id (message breaks ties)."""
        return (self.file_path, self.line, self.column, self.rule_id, self.message)

    def evolve(self, **changes: Any) -> "Finding":
        """Return a copy of this finding with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary."""
        result = {
            "rule_id": self.rule_id,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "location": self.location.to_dict(),
            "span": self.span.to_dict(),
            "tags": list(self.tags),
            "metadata": self.metadata,
            "suppressed": self.suppressed,
        }

        if self.fix:
            result["fix"] = self.fix.to_dict()
        if self.snippet:
            result["snippet"] = self.snippet.to_dict()
        if self.suppression_reason:
            result["suppression_reason"] = self.suppression_reason
        if self.origin:
            result["origin"] = {
                "rule_id": self.origin.rule_id,
                "message": self.origin.message,
                "span": self.origin.span.to_dict(),
            }

        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert finding to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        """Create a Finding from a dictionary produced by ``to_dict``."""
        data = dict(data)
        location = CodeLocation(**data.pop("location"))
        span = Span(**data.pop("span"))

        fix = None
        fix_data = data.pop("fix", None)
        if fix_data:
            fix = Fix(
                span=Span(**fix_data["span"]),
                replacement=fix_data["replacement"],
                description=fix_data.get("description", ""),
            )

        snippet = None
        snippet_data = data.pop("snippet", None)
        if snippet_data:
            snippet = CodeSnippet(
                code=snippet_data["code"],
                highlighted_line=snippet_data["highlighted_line"],
                context_before=tuple(snippet_data.get("context_before", ())),
                context_after=tuple(snippet_data.get("context_after", ())),
            )

        # The origin is summarized on export and cannot be rebuilt.
        data.pop("origin", None)

        return cls(
            location=location,
            span=span,
            fix=fix,
            snippet=snippet,
            tags=tuple(data.pop("tags", ())),
            **data
        )


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Sort findings by the documented report key."""
    return sorted(findings, key=lambda f: f.sort_key())


@dataclass(frozen=True)
class Report:
    """
    Results from a complete run.

    Findings are always held in report order, regardless of the order in
    which rules or files completed. Wall-clock timing is kept out of the
    serialized form unless asked for, so repeated runs serialize identically.
    """
    findings: Tuple[Finding, ...]
    files_checked: int = 0
    elapsed_seconds: float = 0.0
    rules_applied: Tuple[str, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    fixes_applied: int = 0
    fixes_skipped: int = 0

    @classmethod
    def from_findings(cls, findings: Iterable[Finding], **kwargs: Any) -> "Report":
        """Build a report, sorting the findings into report order."""
        for key in ("rules_applied", "errors", "warnings"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return cls(findings=tuple(sort_findings(findings)), **kwargs)

    def _count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity and not f.suppressed)

    @property
    def error_count(self) -> int:
        return self._count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(Severity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(Severity.INFO)

    @property
    def total_findings(self) -> int:
        return sum(1 for f in self.findings if not f.suppressed)

    @property
    def suppressed_count(self) -> int:
        return sum(1 for f in self.findings if f.suppressed)

    @property
    def fixable_count(self) -> int:
        return sum(1 for f in self.findings if f.fix is not None and not f.suppressed)

    def to_dict(self, include_timing: bool = False) -> Dict[str, Any]:
        data = {
            "summary": {
                "files_checked": self.files_checked,
                "rules_applied": list(self.rules_applied),
                "total_findings": self.total_findings,
                "suppressed_findings": self.suppressed_count,
                "fixable_findings": self.fixable_count,
                "fixes_applied": self.fixes_applied,
                "fixes_skipped": self.fixes_skipped,
                "by_severity": {
                    "error": self.error_count,
                    "warning": self.warning_count,
                    "info": self.info_count,
                },
            },
            "findings": [f.to_dict() for f in self.findings],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
        if include_timing:
            data["summary"]["elapsed_seconds"] = self.elapsed_seconds
        return data

    def to_json(self, indent: int = 2, include_timing: bool = False) -> str:
        return json.dumps(self.to_dict(include_timing), indent=indent)
