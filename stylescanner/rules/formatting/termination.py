"""
Statement termination rules.

Statements end with the configured terminator, and a terminator ends the
line it sits on.
"""

from typing import Generator

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Fix, Span
from stylescanner.parsers.structure import Segment, SegmentKind, ACCESSORS
from stylescanner.parsers.tokens import TokenKind


# Declarations that read as statements and take a terminator.
TERMINATED_DECLARATIONS = frozenset({"var", "let", "import", "typealias", "associatedtype"})


@rule
class StatementTerminationRule(Rule):
    """
    Flags statements that do not end with the terminator.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="statement-termination",
            name="Statement Termination",
            description="Statements should end with the statement terminator.",
            severity=Severity.WARNING,
            category=FindingCategory.TERMINATION,
            tags=["formatting", "termination"],
            auto_fixable=True,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        tokens = context.tokens
        terminator = context.terminator

        for segment in context.structure.segments:
            if not self._needs_terminator(context, segment):
                continue

            last = tokens[segment.last]
            insertion = Span(last.end, last.end)
            yield self.create_finding(
                context,
                insertion,
                message=f"Statement is missing the '{terminator}' terminator.",
                fix=Fix(insertion, terminator, f"Insert '{terminator}'"),
            )

    def _needs_terminator(self, context: AnalysisContext, segment: Segment) -> bool:
        if segment.terminated or segment.opens_block or segment.label:
            return False
        if segment.kind == SegmentKind.CONTROL_HEADER:
            return False
        if segment.kind == SegmentKind.DECLARATION and segment.keyword not in TERMINATED_DECLARATIONS:
            return False

        tokens = context.tokens
        first = tokens[segment.first]
        last = tokens[segment.last]

        # Attribute lines, directives and accessor lists
        if first.is_punct("@") and not segment.keyword:
            return False
        if first.text.startswith("#") or first.text in ACCESSORS or first.is_keyword("case", "default"):
            return False
        # Closure signature: "{ value in"
        if last.is_keyword("in"):
            return False
        if not any(tokens[i].kind.is_word for i in segment.indices):
            return False
        if any(tokens[i].unterminated for i in range(segment.first, segment.last + 1)):
            return False

        return not self._is_inline_closure_body(context, segment)

    @staticmethod
    def _is_inline_closure_body(context: AnalysisContext, segment: Segment) -> bool:
        """A single-line closure such as ``{ $0 * 2 }``."""
        boundary = segment.boundary
        if boundary is None or not context.tokens[boundary].is_punct("}"):
            return False
        opener = context.structure.partner(boundary)
        if opener is None or opener not in context.structure.closures:
            return False
        return context.tokens[opener].line == context.tokens[boundary].line


@rule
class OneStatementPerLineRule(Rule):
    """
    Flags a terminator followed by another statement on the same line.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="one-statement-per-line",
            name="One Statement Per Line",
            description="Each statement should be on its own line.",
            severity=Severity.WARNING,
            category=FindingCategory.TERMINATION,
            tags=["formatting", "termination"],
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        tokens = context.tokens

        for terminator in self._terminators(context):
            window_end = min(len(tokens), terminator + 1 + context.lookahead)
            for index in range(terminator + 1, window_end):
                token = tokens[index]
                if token.kind == TokenKind.WHITESPACE:
                    continue
                if token.kind in (TokenKind.NEWLINE, TokenKind.COMMENT) or token.text in ("{", "}"):
                    break
                yield self.create_finding(
                    context,
                    Span(token.start, token.end),
                    message="Another statement follows the terminator on the same line.",
                )
                break

    @staticmethod
    def _terminators(context: AnalysisContext):
        """
        Statement-level terminator tokens in source order.

        These are the boundaries of terminated segments plus terminators that
        belong to no segment at all, such as the one in ``};``. Terminators
        inside a segment (a classic ``for`` header, call arguments) are not
        statement ends.
        """
        terminators = set()
        covered = set()
        for segment in context.structure.segments:
            covered.update(segment.indices)
            if segment.boundary is not None:
                covered.add(segment.boundary)
                if segment.terminated:
                    terminators.add(segment.boundary)

        for index, token in enumerate(context.tokens):
            if token.is_punct(context.terminator) and index not in covered:
                terminators.add(index)
        return sorted(terminators)
