"""
Advisory member rules.

Both rules are heuristics over tokens rather than a resolved syntax tree,
so they are opt-in and never offer fixes.
"""

import re
from typing import Dict, Generator, List, Optional, Set

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Span
from stylescanner.parsers.structure import Segment, SegmentKind
from stylescanner.parsers.tokens import TokenKind


TYPE_BODIES = frozenset({"class", "struct", "enum", "extension", "actor"})

# Members whose bodies run with an implicit ``self``.
BODY_MEMBERS = frozenset({"func", "init", "deinit", "subscript", "var"})

METHOD_PREFIX = re.compile(r"_*[a-z]+")


def type_bodies(context: AnalysisContext) -> Dict[int, Segment]:
    """Braces opening a type body, mapped to the type's declaration."""
    return {
        brace: header
        for brace, header in sorted(context.structure.block_headers.items())
        if header.kind == SegmentKind.DECLARATION and header.keyword in TYPE_BODIES
    }


@rule
class SelfPrefixRule(Rule):
    """
    Flags member properties used inside methods without ``self.``.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="self-prefix",
            name="Self Prefix",
            description="Member properties should be accessed through 'self'.",
            severity=Severity.INFO,
            category=FindingCategory.NAMING,
            tags=["conventions", "members"],
            advisory=True,
            enabled_by_default=False,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens

        for brace in type_bodies(context):
            members = structure.members(brace)
            properties: Set[str] = set()
            for member in members:
                if member.kind == SegmentKind.DECLARATION and member.keyword in ("var", "let") \
                        and not structure.has_modifier(member, "static", "class"):
                    properties.update(tokens[i].text for i in structure.binding_names(member))
            if not properties:
                continue

            for member in members:
                if not member.opens_block or member.keyword not in BODY_MEMBERS:
                    continue
                if structure.has_modifier(member, "static", "class"):
                    continue
                body_open = member.boundary
                body_close = structure.partner(body_open)
                if body_close is None:
                    continue

                shadowed = self._parameters(context, member) | self._locals(context, body_open, body_close)
                candidates = properties - shadowed
                if candidates:
                    yield from self._check_body(context, body_open, body_close, candidates)

    @staticmethod
    def _parameters(context: AnalysisContext, member: Segment) -> Set[str]:
        """Internal parameter names: the identifier right before each ``:``."""
        structure = context.structure
        tokens = context.tokens
        names: Set[str] = set()

        for index in member.indices[member.lead + 1:]:
            if tokens[index].is_punct("("):
                close = structure.partner(index)
                if close is None:
                    break
                level = structure.nesting[index] + 1
                for inner in range(index + 1, close):
                    if structure.nesting[inner] == level and tokens[inner].is_punct(":"):
                        name = structure.prev_significant(inner)
                        if name is not None and tokens[name].kind == TokenKind.IDENTIFIER:
                            names.add(tokens[name].text)
                break
        return names

    @staticmethod
    def _locals(context: AnalysisContext, body_open: int, body_close: int) -> Set[str]:
        """Names bound inside a body by ``let``/``var`` or closure and loop headers."""
        structure = context.structure
        tokens = context.tokens
        names: Set[str] = set()

        for index in range(body_open + 1, body_close):
            token = tokens[index]
            if token.is_keyword("let", "var"):
                following = structure.next_significant(index)
                if following is not None and tokens[following].kind == TokenKind.IDENTIFIER:
                    names.add(tokens[following].text)
            elif token.is_keyword("in"):
                # "{ a, b in" and "for item in"
                previous = structure.prev_significant(index)
                while previous is not None and previous > body_open:
                    candidate = tokens[previous]
                    if candidate.kind == TokenKind.IDENTIFIER:
                        names.add(candidate.text)
                    elif candidate.text not in (",", "(", ")"):
                        break
                    previous = structure.prev_significant(previous)
        return names

    def _check_body(
        self,
        context: AnalysisContext,
        body_open: int,
        body_close: int,
        candidates: Set[str],
    ) -> Generator[Finding, None, None]:
        structure = context.structure
        tokens = context.tokens

        for index in range(body_open + 1, body_close):
            token = tokens[index]
            if token.kind != TokenKind.IDENTIFIER or token.text not in candidates:
                continue
            previous = structure.prev_significant(index)
            if previous is not None and (tokens[previous].is_punct(".") or tokens[previous].is_keyword("let", "var")):
                continue
            following = structure.next_significant(index)
            if following is not None and tokens[following].is_punct(":"):
                continue
            yield self.create_finding(
                context,
                Span(token.start, token.end),
                message=f"Member property '{token.text}' should be accessed as 'self.{token.text}'.",
                metadata={"property": token.text},
            )


@rule
class MethodGroupingRule(Rule):
    """
    Flags methods separated from others sharing their name prefix.

    The prefix is the leading lower-case word of the name, so ``loadUser``
    and ``loadItems`` belong together and should be adjacent.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="method-grouping",
            name="Method Grouping",
            description="Methods sharing a name prefix should be grouped together.",
            severity=Severity.INFO,
            category=FindingCategory.GROUPING,
            tags=["conventions", "members"],
            advisory=True,
            enabled_by_default=False,
        )

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        containers: List[Optional[int]] = [None]
        containers.extend(type_bodies(context))

        for container in containers:
            yield from self._check_container(context, container)

    def _check_container(self, context: AnalysisContext, container: Optional[int]) -> Generator[Finding, None, None]:
        tokens = context.tokens
        seen: Set[str] = set()
        previous_prefix: Optional[str] = None

        for member in context.structure.members(container):
            if member.kind != SegmentKind.DECLARATION or member.keyword != "func":
                continue
            if member.lead + 1 >= len(member.indices):
                continue
            name = tokens[member.indices[member.lead + 1]]
            match = METHOD_PREFIX.match(name.text) if name.kind == TokenKind.IDENTIFIER else None
            # Operators and capitalized names form groups of their own.
            prefix = match.group() if match else f"<{name.text}>"

            if prefix != previous_prefix and prefix in seen:
                yield self.create_finding(
                    context,
                    Span(name.start, name.end),
                    message=f"Method '{name.text}' is separated from the other '{prefix}' methods.",
                    metadata={"prefix": prefix},
                )
            seen.add(prefix)
            previous_prefix = prefix
