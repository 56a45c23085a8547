"""
Declaration rules: explicit type annotations and forced unwrapping.
"""

from typing import Generator

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Span
from stylescanner.parsers.structure import SegmentKind
from stylescanner.parsers.tokens import TokenKind


@rule
class ExplicitTypingRule(Rule):
    """
    Flags ``var``/``let`` bindings without a type annotation.

    ``let count = 0`` should read ``let count: Int = 0``. There is no fix;
    the type cannot be inferred from tokens alone.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="explicit-typing",
            name="Explicit Typing",
            description="Variable declarations should carry an explicit type annotation.",
            severity=Severity.WARNING,
            category=FindingCategory.TYPING,
            tags=["declarations", "typing"],
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens

        for segment in structure.segments:
            if segment.kind != SegmentKind.DECLARATION or segment.keyword not in ("var", "let"):
                continue

            for name_index in structure.binding_names(segment):
                following = structure.next_significant(name_index)
                if following is not None and tokens[following].is_punct(":"):
                    continue
                name = tokens[name_index]
                yield self.create_finding(
                    context,
                    Span(name.start, name.end),
                    message=f"'{name.text}' should be declared with an explicit type.",
                    metadata={"name": name.text},
                )


@rule
class ForceUnwrapRule(Rule):
    """
    Flags postfix ``!``: force unwraps, ``as!``, ``try!`` and implicitly
    unwrapped optional types.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="force-unwrap",
            name="Force Unwrap",
            description="Avoid forced unwrapping; bind optionals safely instead.",
            severity=Severity.WARNING,
            category=FindingCategory.SAFETY,
            tags=["safety", "optionals"],
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens

        for index, token in enumerate(tokens):
            if index == 0 or not token.is_punct("!"):
                continue

            previous = tokens[index - 1]
            if previous.is_keyword("as"):
                message = "Forced cast 'as!' should be avoided."
            elif previous.is_keyword("try"):
                message = "Forced 'try!' should be avoided."
            elif previous.kind == TokenKind.IDENTIFIER or previous.text in (")", "]", ">"):
                before = structure.prev_significant(index - 1)
                if previous.kind == TokenKind.IDENTIFIER and before is not None and \
                        tokens[before].text in (":", "->"):
                    message = f"Implicitly unwrapped optional '{previous.text}!' should be avoided."
                else:
                    message = "Force unwrap should be avoided."
            else:
                continue

            yield self.create_finding(context, Span(token.start, token.end), message=message)
