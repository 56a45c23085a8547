"""
Rule framework for the style scanner.

This module provides the base class for style rules, the context handed to
each rule during analysis, and the registry rules are discovered through.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Type, FrozenSet, Generator, Sequence

from stylescanner.core.findings import (
    Finding, Severity, FindingCategory, CodeLocation, CodeSnippet, Fix, Span
)
from stylescanner.parsers.structure import SourceStructure
from stylescanner.parsers.tokens import Token, TokenKind
from stylescanner.utils import line_starts, offset_to_position, split_lines


SUPPRESSION_MARKER = "stylescanner-ignore"

_SUPPRESSION_PATTERN = re.compile(
    re.escape(SUPPRESSION_MARKER) + r"(?:\s*:\s*(?P<rules>[\w\-]+(?:\s*,\s*[\w\-]+)*))?"
)


@dataclass
class RuleMetadata:
    """Metadata for a rule."""
    rule_id: str
    name: str
    description: str
    severity: Severity
    category: FindingCategory
    tags: List[str] = field(default_factory=list)
    auto_fixable: bool = False
    advisory: bool = False
    enabled_by_default: bool = True
    options: Dict[str, Any] = field(default_factory=dict)


class Rule(ABC):
    """
    Base class for all style rules.

    Rules are stateless: everything a rule knows about the file comes from
    the ``AnalysisContext`` it is handed, and no rule sees another rule's
    findings. ``options`` override the defaults in ``metadata.options`` and
    ``severity`` overrides the metadata severity.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None, severity: Optional[Severity] = None):
        self.options = dict(self.metadata.options)
        self.options.update(options or {})
        self.severity = severity or self.metadata.severity

    @property
    @abstractmethod
    def metadata(self) -> RuleMetadata:
        """Return rule metadata."""
        pass

    @property
    def rule_id(self) -> str:
        return self.metadata.rule_id

    @abstractmethod
    def analyze(self, context: "AnalysisContext") -> Generator[Finding, None, None]:
        """
        Analyze the token stream and yield findings.

        Args:
            context: The analysis context with the tokens and structure view.

        Yields:
            Finding objects for each detected violation.
        """
        pass

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)

    def create_finding(
        self,
        context: "AnalysisContext",
        span: Span,
        message: Optional[str] = None,
        fix: Optional[Fix] = None,
        severity: Optional[Severity] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Finding:
        """
        Create a finding using the rule's metadata as defaults.
        """
        return Finding(
            rule_id=self.metadata.rule_id,
            message=message or self.metadata.description,
            severity=severity or self.severity,
            category=self.metadata.category,
            location=context.location(span),
            span=span,
            fix=fix,
            snippet=context.get_snippet(context.position(span.start)[0]),
            tags=tuple(self.metadata.tags),
            metadata=metadata or {},
        )


class RuleRegistry:
    """
    Registry for managing and discovering rules.

    Rule classes register themselves with the ``@rule`` decorator when
    their module is imported; the engine instantiates them per run.
    """

    _instance: Optional["RuleRegistry"] = None

    def __init__(self):
        self._rules: Dict[str, Type[Rule]] = {}
        self._metadata: Dict[str, RuleMetadata] = {}

    @classmethod
    def get_instance(cls) -> "RuleRegistry":
        """Get the singleton registry instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, rule_class: Type[Rule]) -> Type[Rule]:
        """
        Register a rule class.

        Can be used as a decorator:

        @registry.register
        class MyRule(Rule):
            ...
        """
        metadata = rule_class().metadata
        existing = self._rules.get(metadata.rule_id)
        if existing is not None and existing is not rule_class:
            raise ValueError(f"Duplicate rule id: {metadata.rule_id}")
        self._rules[metadata.rule_id] = rule_class
        self._metadata[metadata.rule_id] = metadata
        return rule_class

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def get_rule_class(self, rule_id: str) -> Optional[Type[Rule]]:
        return self._rules.get(rule_id)

    def get_metadata(self, rule_id: str) -> Optional[RuleMetadata]:
        return self._metadata.get(rule_id)

    def create(
        self,
        rule_id: str,
        options: Optional[Dict[str, Any]] = None,
        severity: Optional[Severity] = None,
    ) -> Optional[Rule]:
        """Instantiate a registered rule."""
        rule_class = self._rules.get(rule_id)
        if rule_class is None:
            return None
        return rule_class(options, severity)

    def all_metadata(self) -> List[RuleMetadata]:
        """Metadata of every registered rule, ordered by rule id."""
        return [self._metadata[rule_id] for rule_id in sorted(self._metadata)]

    @property
    def rule_ids(self) -> List[str]:
        return sorted(self._rules)

    @property
    def rule_count(self) -> int:
        """Return the number of registered rules."""
        return len(self._rules)


class AnalysisContext:
    """
    Context provided to rules during analysis.

    Holds the tokens, the shared structure view and helpers for turning
    offsets into locations and snippets.
    """

    def __init__(
        self,
        file_path: str,
        content: str,
        tokens: Sequence[Token],
        structure: Optional[SourceStructure] = None,
        lookahead: int = 3,
        terminator: str = ";",
        context_lines: int = 2,
    ):
        self.file_path = file_path
        self.content = content
        self.tokens = tokens
        self.structure = structure or SourceStructure.build(tokens, terminator=terminator)
        self.lookahead = lookahead
        self.terminator = terminator
        self.context_lines = context_lines
        self._lines: Optional[List[str]] = None
        self._line_starts: Optional[List[int]] = None
        self._suppressions: Optional[Dict[int, Optional[FrozenSet[str]]]] = None

    @classmethod
    def from_tokens(
        cls,
        tokens: Sequence[Token],
        file_path: str = "<input>",
        lookahead: int = 3,
        terminator: str = ";",
    ) -> "AnalysisContext":
        content = "".join(token.text for token in tokens)
        return cls(file_path, content, tokens, lookahead=lookahead, terminator=terminator)

    @property
    def lines(self) -> List[str]:
        """Get the source code lines."""
        if self._lines is None:
            self._lines = split_lines(self.content)
        return self._lines

    def position(self, offset: int):
        """1-based ``(line, column)`` of an offset."""
        if self._line_starts is None:
            self._line_starts = line_starts(self.content)
        return offset_to_position(self._line_starts, offset)

    def location(self, span: Span) -> CodeLocation:
        start_line, start_column = self.position(span.start)
        end_line, end_column = self.position(span.end)
        return CodeLocation(
            file_path=self.file_path,
            start_line=start_line,
            end_line=end_line,
            start_column=start_column,
            end_column=end_column,
        )

    def get_snippet(self, line_number: int, context_lines: Optional[int] = None) -> CodeSnippet:
        """Get a code snippet around a line number."""
        if context_lines is None:
            context_lines = self.context_lines
        lines = self.lines
        start = max(0, line_number - context_lines - 1)
        end = min(len(lines), line_number + context_lines)

        return CodeSnippet(
            code=lines[line_number - 1] if 0 < line_number <= len(lines) else "",
            highlighted_line=line_number,
            context_before=tuple(lines[start:line_number - 1]),
            context_after=tuple(lines[line_number:end]),
        )

    @property
    def suppressions(self) -> Dict[int, Optional[FrozenSet[str]]]:
        """
        Lines carrying an inline suppression comment.

        Maps a line number to the rule ids it suppresses, or ``None`` when
        every rule is suppressed on that line. A comment alone on its line
        also covers the following line.
        """
        if self._suppressions is None:
            suppressions: Dict[int, Optional[FrozenSet[str]]] = {}
            line_has_code = set()
            comments = []
            for token in self.tokens:
                if token.kind == TokenKind.COMMENT:
                    comments.append(token)
                elif not token.is_trivia:
                    line_has_code.add(token.line)

            for token in comments:
                match = _SUPPRESSION_PATTERN.search(token.text)
                if not match:
                    continue
                rules = None
                if match.group("rules"):
                    rules = frozenset(r.strip() for r in match.group("rules").split(","))
                _add_suppression(suppressions, token.line, rules)
                if token.line not in line_has_code:
                    end_line = token.line + token.text.count("\n") - token.text.count("\r\n") + \
                        token.text.count("\r")
                    _add_suppression(suppressions, end_line + 1, rules)
            self._suppressions = suppressions

        return self._suppressions

    def is_suppressed(self, finding: Finding) -> bool:
        """Check if a finding is covered by a suppression comment."""
        if finding.line not in self.suppressions:
            return False
        rules = self.suppressions[finding.line]
        return rules is None or finding.rule_id in rules


def _add_suppression(suppressions: Dict[int, Optional[FrozenSet[str]]], line: int, rules: Optional[FrozenSet[str]]):
    if line not in suppressions:
        suppressions[line] = rules
    elif suppressions[line] is None or rules is None:
        suppressions[line] = None
    else:
        suppressions[line] = suppressions[line] | rules


# Global registry instance
registry = RuleRegistry.get_instance()


def rule(cls: Type[Rule]) -> Type[Rule]:
    """
    Decorator to register a rule with the global registry.

    Usage:
        @rule
        class MyRule(Rule):
            ...
    """
    return registry.register(cls)
