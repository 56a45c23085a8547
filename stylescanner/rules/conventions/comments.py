"""
Comment marker rule.

Markers such as ``TODO:`` are written in upper case and followed by a
colon so they can be searched for reliably.
"""

import re
from typing import Generator, List, Optional

from stylescanner.core.rules import Rule, RuleMetadata, AnalysisContext, rule
from stylescanner.core.findings import Finding, Severity, FindingCategory, Fix, Span
from stylescanner.parsers.tokens import TokenKind


DEFAULT_MARKERS = ["DEBUG", "TODO", "DEPRECATED", "LOCALIZE", "STAT", "FEATURE"]


@rule
class CommentMarkerRule(Rule):
    """
    Reports comment markers and normalizes malformed ones.

    ``TODO:`` is canonical and reported for tracking. ``TODO note`` gains
    its colon and ``todo:`` is upper-cased. A lower-case word without a
    colon is ordinary prose and ignored.
    """

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            rule_id="comment-markers",
            name="Comment Markers",
            description="Comment markers should be upper case and followed by a colon.",
            severity=Severity.INFO,
            category=FindingCategory.COMMENTS,
            tags=["comments", "markers"],
            auto_fixable=True,
            options={"markers": list(DEFAULT_MARKERS)},
        )

    @property
    def markers(self) -> List[str]:
        return [str(marker).upper() for marker in self.option("markers", DEFAULT_MARKERS)]

    def analyze(self, context: AnalysisContext) -> Generator[Finding, None, None]:
        markers = self.markers
        if not markers:
            return

        alternatives = "|".join(re.escape(marker) for marker in markers)
        pattern = re.compile(rf"\b(?P<word>{alternatives})\b(?P<colon>:?)", re.IGNORECASE)

        for token in context.tokens:
            if token.kind != TokenKind.COMMENT:
                continue
            for match in pattern.finditer(token.text):
                finding = self._check_marker(context, token.start, match)
                if finding is not None:
                    yield finding

    def _check_marker(self, context: AnalysisContext, base: int, match: "re.Match") -> Optional[Finding]:
        word = match.group("word")
        canonical = word.upper()
        has_colon = bool(match.group("colon"))
        start = base + match.start("word")
        word_span = Span(start, start + len(word))

        if word == canonical and has_colon:
            return self.create_finding(
                context,
                Span(start, start + len(word) + 1),
                message=f"{canonical} marker.",
                severity=Severity.INFO,
                metadata={"marker": canonical},
            )
        if word == canonical:
            return self.create_finding(
                context,
                word_span,
                message=f"Marker '{word}' should be followed by a colon.",
                fix=Fix(word_span, canonical + ":", f"Rewrite as '{canonical}:'"),
                metadata={"marker": canonical},
            )
        if has_colon:
            return self.create_finding(
                context,
                word_span,
                message=f"Marker '{word}:' should be written in upper case.",
                fix=Fix(word_span, canonical, f"Rewrite as '{canonical}:'"),
                metadata={"marker": canonical},
            )
        return None
