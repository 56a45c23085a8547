"""
Parenthesization rules for control-flow headers.

``if`` conditions are wrapped in parentheses, ``for ... in`` headers are
not, and classic three-clause ``for`` headers are.
"""

from typing import Generator, List, Optional

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Fix, Span
from stylescanner.parsers.structure import Segment, SegmentKind


def header_tail(segment: Segment, keyword: str, context: AnalysisContext) -> Optional[List[int]]:
    """
    The token indices following ``keyword`` in a control header.

    Handles ``else if`` by looking one token past ``else``.
    """
    if segment.kind != SegmentKind.CONTROL_HEADER:
        return None

    tokens = context.tokens
    pos = segment.lead
    if segment.keyword == "else" and keyword != "else":
        pos += 1
        if pos >= len(segment.indices):
            return None
    if not tokens[segment.indices[pos]].is_keyword(keyword):
        return None
    return list(segment.indices[pos + 1:])


def has_unterminated(context: AnalysisContext, indices: List[int]) -> bool:
    return any(context.tokens[i].unterminated for i in range(indices[0], indices[-1] + 1))


@rule
class ControlConditionParensRule(Rule):
    """
    Flags ``if`` and ``else if`` conditions that are not parenthesized.

    Optional bindings, pattern matches, availability checks and condition
    lists cannot be parenthesized and are left alone.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="control-condition-parens",
            name="Control Condition Parentheses",
            description="Conditions of if statements should be enclosed in parentheses.",
            severity=Severity.WARNING,
            category=FindingCategory.GROUPING,
            tags=["formatting", "control-flow"],
            auto_fixable=True,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens

        for segment in structure.segments:
            if not segment.opens_block:
                continue
            condition = header_tail(segment, "if", context)
            if not condition:
                continue
            if structure.is_wrapped(condition) or not self._can_wrap(context, condition):
                continue

            first = tokens[condition[0]]
            last = tokens[condition[-1]]
            span = Span(first.start, last.end)
            text = context.content[span.start:span.end]
            yield self.create_finding(
                context,
                span,
                message="Condition of 'if' should be enclosed in parentheses.",
                fix=Fix(span, f"({text})", "Wrap the condition in parentheses"),
            )

    @staticmethod
    def _can_wrap(context: AnalysisContext, condition: List[int]) -> bool:
        tokens = context.tokens
        first = tokens[condition[0]]
        if first.is_keyword("let", "var", "case") or first.is_punct("#"):
            return False

        level = context.structure.nesting[condition[0]]
        for index in condition:
            if context.structure.nesting[index] != level:
                continue
            token = tokens[index]
            if token.is_punct(",") or token.is_keyword("let", "var", "case"):
                return False
        return not has_unterminated(context, condition)


@rule
class ForLoopParensRule(Rule):
    """
    Flags ``for (x in items)`` and unparenthesized ``for i = 0; i < n; i++``.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="for-in-parenthesization",
            name="For Loop Parentheses",
            description="for-in headers should not be parenthesized; classic for headers should be.",
            severity=Severity.WARNING,
            category=FindingCategory.GROUPING,
            tags=["formatting", "control-flow"],
            auto_fixable=True,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens
        terminator = context.terminator

        for segment in structure.segments:
            header = header_tail(segment, "for", context)
            if not header or has_unterminated(context, header):
                continue

            level = structure.nesting[header[0]]
            if structure.is_wrapped(header):
                inner = [i for i in header[1:-1] if structure.nesting[i] == level + 1]
                has_in = any(tokens[i].is_keyword("in") for i in inner)
                has_terminator = any(tokens[i].is_punct(terminator) for i in inner)
                if has_in and not has_terminator:
                    yield self._unwrap(context, header)
            else:
                top = [i for i in header if structure.nesting[i] == level]
                if any(tokens[i].is_punct(terminator) for i in top):
                    yield self._wrap(context, header)

    def _unwrap(self, context: AnalysisContext, header: List[int]) -> Finding:
        tokens = context.tokens
        lparen = tokens[header[0]]
        rparen = tokens[header[-1]]
        inner = context.content[lparen.end:rparen.start].strip()

        # Keep "for" and "{" from running into the loop text.
        prefix = " " if header[0] > 0 and tokens[header[0] - 1].is_keyword("for") else ""
        after = header[-1] + 1
        suffix = " " if after < len(tokens) and tokens[after].is_punct("{") else ""

        span = Span(lparen.start, rparen.end)
        return self.create_finding(
            context,
            span,
            message="for-in loop header should not be enclosed in parentheses.",
            fix=Fix(span, prefix + inner + suffix, "Remove the parentheses"),
        )

    def _wrap(self, context: AnalysisContext, header: List[int]) -> Finding:
        first = context.tokens[header[0]]
        last = context.tokens[header[-1]]
        span = Span(first.start, last.end)
        text = context.content[span.start:span.end]
        return self.create_finding(
            context,
            span,
            message="Classic for loop header should be enclosed in parentheses.",
            fix=Fix(span, f"({text})", "Wrap the loop header in parentheses"),
        )
