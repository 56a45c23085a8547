"""
Brace placement rule.

Opening braces go on the same line as the statement or declaration that
introduces the block.
"""

from typing import Generator

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Fix, Span
from stylescanner.parsers.tokens import TokenKind


@rule
class BracePlacementRule(Rule):
    """
    Flags block-opening braces placed on a line of their own.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="brace-placement",
            name="Brace Placement",
            description="Opening braces should be on the same line as the statement that opens the block.",
            severity=Severity.WARNING,
            category=FindingCategory.BRACING,
            tags=["formatting", "braces"],
            auto_fixable=True,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        tokens = context.tokens

        for brace_index, header in sorted(context.structure.block_headers.items()):
            brace = tokens[brace_index]
            last = tokens[header.last]
            if context.position(last.end)[0] == brace.line:
                continue

            between = tokens[header.last + 1:brace_index]
            fix = None
            if not any(token.kind == TokenKind.COMMENT for token in between):
                fix = Fix(Span(last.end, brace.start), " ", "Move the brace up to the previous line")

            introducer = header.keyword or tokens[header.first].text
            yield self.create_finding(
                context,
                Span(brace.start, brace.end),
                message=f"Opening brace should be on the same line as '{introducer}'.",
                fix=fix,
            )
