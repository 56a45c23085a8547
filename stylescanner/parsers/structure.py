"""
Structural view derived from a token stream.

A single stack-based scan pairs ``{}``, ``()`` and ``[]`` and cuts the
significant tokens into statement segments, each classified as a
statement, a control-flow header or a declaration. Rules share this view
instead of re-deriving nesting themselves.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from stylescanner.parsers.tokens import Token, TokenKind


class SegmentKind(Enum):
    """Classification of a statement-level token run."""
    STATEMENT = "statement"
    CONTROL_HEADER = "control-header"
    DECLARATION = "declaration"


CONTROL_KEYWORDS: FrozenSet[str] = frozenset({
    "if", "else", "for", "while", "repeat", "switch", "guard", "do", "catch", "defer",
})

DECLARATION_KEYWORDS: FrozenSet[str] = frozenset({
    "var", "let", "func", "class", "struct", "enum", "protocol", "extension",
    "init", "deinit", "subscript", "typealias", "import", "actor", "operator",
    "associatedtype",
})

# Declarations whose ``{`` always opens a body rather than a closure.
BLOCK_DECLARATIONS: FrozenSet[str] = frozenset({
    "func", "class", "struct", "enum", "protocol", "extension", "init",
    "deinit", "subscript", "actor",
})

TYPE_DECLARATIONS: FrozenSet[str] = frozenset({
    "class", "struct", "enum", "extension", "actor", "protocol",
})

MODIFIERS: FrozenSet[str] = frozenset({
    "public", "private", "internal", "fileprivate", "open", "static", "final",
    "override", "mutating", "nonmutating", "lazy", "weak", "unowned", "dynamic",
    "required", "convenience", "optional", "indirect",
})

ACCESSORS: FrozenSet[str] = frozenset({"get", "set", "willSet", "didSet"})

TRAILING_CONTINUATION: FrozenSet[str] = frozenset({
    "=", "+", "-", "*", "/", "%", "&&", "||", "??", ".", ",", "->",
    "==", "!=", "<=", ">=", "+=", "-=", "*=", "/=", "%=", "&", "|", "^",
    "...", "..<", "===", "!==",
})

TRAILING_CONTINUATION_KEYWORDS: FrozenSet[str] = frozenset({"where", "as", "is"})

LEADING_CONTINUATION: FrozenSet[str] = frozenset({".", "&&", "||", "??", "?", ":"})

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}


@dataclass(frozen=True)
class Segment:
    """
    A statement-level run of significant tokens.

    ``indices`` point into the token list. ``boundary`` is the token that
    ended the run (a newline, the terminator, a brace or a label colon), or
    ``None`` at end of input. ``container`` is the innermost ``{`` around
    the run and ``depth`` the number of braces around it.
    """
    kind: SegmentKind
    indices: Tuple[int, ...]
    keyword: str
    lead: int
    boundary: Optional[int]
    terminated: bool = False
    opens_block: bool = False
    label: bool = False
    container: Optional[int] = None
    depth: int = 0

    @property
    def first(self) -> int:
        return self.indices[0]

    @property
    def last(self) -> int:
        return self.indices[-1]

    @property
    def lead_index(self) -> int:
        """Token index of the leading keyword (after attributes and modifiers)."""
        return self.indices[self.lead]


class _Frame:
    __slots__ = ("index", "char", "role", "suspended", "saved_depth")

    def __init__(self, index: int, char: str, role: str, suspended=None, saved_depth: int = 0):
        self.index = index
        self.char = char
        # "group" for () and [], "block" or "closure" for braces
        self.role = role
        self.suspended = suspended
        self.saved_depth = saved_depth


class _SegmentBuilder:
    __slots__ = ("indices", "container", "depth", "has_assignment", "_classified")

    def __init__(self, container: Optional[int], depth: int):
        self.indices: List[int] = []
        self.container = container
        self.depth = depth
        self.has_assignment = False
        self._classified: Optional[Tuple[SegmentKind, str, int]] = None

    def classify(self, tokens: Sequence[Token], pairs: Dict[int, int]) -> Tuple[SegmentKind, str, int]:
        """Return ``(kind, keyword, lead)`` once the leading keyword is known."""
        if self._classified is not None:
            return self._classified

        indices = self.indices
        pos = 0
        while pos < len(indices):
            token = tokens[indices[pos]]
            if token.is_punct("@"):
                pos += 1
                if pos < len(indices) and tokens[indices[pos]].kind == TokenKind.IDENTIFIER:
                    pos += 1
                pos = _skip_group(tokens, pairs, indices, pos)
            elif token.kind == TokenKind.KEYWORD and token.text in MODIFIERS:
                pos = _skip_group(tokens, pairs, indices, pos + 1)
            elif token.is_keyword("class") and pos + 1 < len(indices) and \
                    tokens[indices[pos + 1]].is_keyword("func", "var", "let", "subscript"):
                pos += 1
            else:
                break

        if pos >= len(indices):
            return SegmentKind.STATEMENT, "", 0

        token = tokens[indices[pos]]
        if token.kind == TokenKind.KEYWORD and token.text in CONTROL_KEYWORDS:
            kind = SegmentKind.CONTROL_HEADER
        elif token.kind == TokenKind.KEYWORD and token.text in DECLARATION_KEYWORDS:
            kind = SegmentKind.DECLARATION
        else:
            kind = SegmentKind.STATEMENT
        self._classified = (kind, token.text, pos)
        return self._classified

    def expects_block(self, tokens: Sequence[Token], pairs: Dict[int, int]) -> bool:
        """Whether a ``{`` following this run opens a body rather than a closure."""
        kind, keyword, _ = self.classify(tokens, pairs)
        if kind == SegmentKind.CONTROL_HEADER:
            return True
        if kind == SegmentKind.DECLARATION:
            if keyword in BLOCK_DECLARATIONS:
                return True
            return keyword in ("var", "let") and not self.has_assignment
        return bool(self.indices) and tokens[self.indices[0]].text in ACCESSORS


def _skip_group(tokens: Sequence[Token], pairs: Dict[int, int], indices: List[int], pos: int) -> int:
    """Skip a parenthesized group starting at ``indices[pos]``, if there is one."""
    if pos < len(indices) and tokens[indices[pos]].is_punct("(") and indices[pos] in pairs:
        close = pairs[indices[pos]]
        while pos < len(indices) and indices[pos] <= close:
            pos += 1
    return pos


class SourceStructure:
    """
    Bracket pairing and statement segmentation over a token list.

    Built in one left-to-right pass; lookups afterwards are O(1).
    """

    def __init__(self, tokens: Sequence[Token], terminator: str = ";"):
        self.tokens = tokens
        self.terminator = terminator
        self.pairs: Dict[int, int] = {}
        self.nesting: List[int] = [0] * len(tokens)
        self.segments: List[Segment] = []
        self.block_headers: Dict[int, Segment] = {}
        self.closures: Set[int] = set()
        self._next_significant: List[Optional[int]] = []
        self._prev_significant: List[Optional[int]] = []
        self._content: Optional[str] = None
        self._members: Optional[Dict[Optional[int], List[Segment]]] = None

        self._index_significant()
        self._scan()

    @classmethod
    def build(cls, tokens: Sequence[Token], terminator: str = ";") -> "SourceStructure":
        return cls(tokens, terminator=terminator)

    @property
    def content(self) -> str:
        """The source text, rebuilt from the tokens."""
        if self._content is None:
            self._content = "".join(token.text for token in self.tokens)
        return self._content

    def next_significant(self, index: int) -> Optional[int]:
        """Index of the first non-trivia token after ``index``."""
        if index + 1 >= len(self.tokens):
            return None
        return self._next_significant[index + 1]

    def prev_significant(self, index: int) -> Optional[int]:
        """Index of the last non-trivia token before ``index``."""
        if index - 1 < 0:
            return None
        return self._prev_significant[index - 1]

    def partner(self, index: int) -> Optional[int]:
        """Matching bracket for the bracket at ``index``."""
        return self.pairs.get(index)

    def is_wrapped(self, indices: Sequence[int]) -> bool:
        """Whether ``indices`` is exactly one parenthesized group."""
        if len(indices) < 2:
            return False
        first = self.tokens[indices[0]]
        return first.is_punct("(") and self.pairs.get(indices[0]) == indices[-1]

    def segment_for_block(self, brace_index: int) -> Optional[Segment]:
        """The header segment that opened the block at ``brace_index``."""
        return self.block_headers.get(brace_index)

    def members(self, brace_index: Optional[int]) -> List[Segment]:
        """Segments sitting directly inside the block at ``brace_index`` (``None`` for top level)."""
        if self._members is None:
            members: Dict[Optional[int], List[Segment]] = {}
            for segment in self.segments:
                members.setdefault(segment.container, []).append(segment)
            self._members = members
        return list(self._members.get(brace_index, ()))

    def has_modifier(self, segment: Segment, *words: str) -> bool:
        """Whether one of ``words`` appears among the segment's leading modifiers."""
        return any(self.tokens[i].text in words for i in segment.indices[:segment.lead])

    def binding_names(self, segment: Segment) -> List[int]:
        """
        Token indices of the names bound by a ``var``/``let`` segment.

        ``var a = 1, b: Int`` binds ``a`` and ``b``. Tuple patterns and the
        ``_`` wildcard bind nothing here.
        """
        tokens = self.tokens
        indices = segment.indices
        if segment.keyword not in ("var", "let"):
            return []

        level = self.nesting[segment.lead_index]
        names: List[int] = []
        expect_name = True
        in_type = False
        angles = 0
        for pos in range(segment.lead + 1, len(indices)):
            index = indices[pos]
            if self.nesting[index] != level:
                continue
            token = tokens[index]
            if token.is_punct("{"):
                break
            if expect_name:
                expect_name = False
                if token.kind == TokenKind.IDENTIFIER and token.text != "_":
                    names.append(index)
            elif token.is_punct(":"):
                in_type = True
            elif token.is_punct("="):
                in_type = False
                angles = 0
            elif in_type and token.is_punct("<"):
                angles += 1
            elif in_type and token.is_punct(">"):
                angles = max(0, angles - 1)
            elif token.is_punct(",") and angles == 0:
                expect_name = True
                in_type = False
        return names

    def _index_significant(self):
        count = len(self.tokens)
        self._next_significant = [None] * count
        self._prev_significant = [None] * count

        following: Optional[int] = None
        for i in range(count - 1, -1, -1):
            if not self.tokens[i].is_trivia:
                following = i
            self._next_significant[i] = following

        preceding: Optional[int] = None
        for i in range(count):
            if not self.tokens[i].is_trivia:
                preceding = i
            self._prev_significant[i] = preceding

    def _scan(self):
        tokens = self.tokens
        stack: List[_Frame] = []
        group_depth = 0
        builder = _SegmentBuilder(container=None, depth=0)

        def enclosing_brace() -> Tuple[Optional[int], int]:
            depth = 0
            container = None
            for frame in stack:
                if frame.role in ("block", "closure"):
                    depth += 1
                    container = frame.index
            return container, depth

        for i, token in enumerate(tokens):
            self.nesting[i] = len(stack)

            if token.kind == TokenKind.NEWLINE:
                if group_depth == 0 and builder.indices and not self._continues(builder, i):
                    self._close(builder, boundary=i)
                    builder = _SegmentBuilder(builder.container, builder.depth)
                continue

            if token.is_trivia:
                continue

            text = token.text
            is_punct = token.kind == TokenKind.PUNCTUATION

            if is_punct and text in ("(", "["):
                stack.append(_Frame(i, text, "group"))
                group_depth += 1
                builder.indices.append(i)

            elif is_punct and text in (")", "]"):
                frame_pos = self._find_opener(stack, CLOSERS[text], stop_at_braces=True)
                if frame_pos is not None:
                    dropped = len(stack) - frame_pos
                    opener = stack[frame_pos]
                    del stack[frame_pos:]
                    group_depth = max(0, group_depth - dropped)
                    self.pairs[opener.index] = i
                    self.pairs[i] = opener.index
                    self.nesting[i] = len(stack)
                builder.indices.append(i)

            elif is_punct and text == "{":
                if group_depth == 0 and (not builder.indices or builder.expects_block(tokens, self.pairs)):
                    if builder.indices:
                        header = self._close(builder, boundary=i, opens_block=True)
                        self.block_headers[i] = header
                    stack.append(_Frame(i, text, "block"))
                else:
                    # Closure: the surrounding statement resumes after its "}".
                    builder.indices.append(i)
                    stack.append(_Frame(i, text, "closure", suspended=builder, saved_depth=group_depth))
                    self.closures.add(i)
                    group_depth = 0
                container, depth = enclosing_brace()
                builder = _SegmentBuilder(container, depth)

            elif is_punct and text == "}":
                frame_pos = self._find_opener(stack, "{", stop_at_braces=False)
                if frame_pos is None:
                    # Stray closer: part of whatever statement is being built.
                    builder.indices.append(i)
                    continue
                opener = stack[frame_pos]
                if builder.indices:
                    self._close(builder, boundary=i)
                del stack[frame_pos:]
                self.pairs[opener.index] = i
                self.pairs[i] = opener.index
                self.nesting[i] = len(stack)
                if opener.role == "closure":
                    builder = opener.suspended
                    builder.indices.append(i)
                    group_depth = opener.saved_depth
                else:
                    group_depth = 0
                    container, depth = enclosing_brace()
                    builder = _SegmentBuilder(container, depth)

            elif is_punct and text == self.terminator and group_depth == 0:
                kind, keyword, _ = builder.classify(tokens, self.pairs)
                if kind == SegmentKind.CONTROL_HEADER and keyword == "for":
                    builder.indices.append(i)
                elif builder.indices:
                    self._close(builder, boundary=i, terminated=True)
                    builder = _SegmentBuilder(builder.container, builder.depth)

            elif is_punct and text == ":" and group_depth == 0 and builder.indices and \
                    tokens[builder.indices[0]].is_keyword("case", "default"):
                builder.indices.append(i)
                self._close(builder, boundary=i, label=True)
                builder = _SegmentBuilder(builder.container, builder.depth)

            else:
                if is_punct and text == "=" and group_depth == 0:
                    builder.has_assignment = True
                builder.indices.append(i)

        if builder.indices:
            self._close(builder, boundary=None)

        self.segments.sort(key=lambda segment: segment.first)

    @staticmethod
    def _find_opener(stack: List[_Frame], char: str, stop_at_braces: bool) -> Optional[int]:
        for pos in range(len(stack) - 1, -1, -1):
            frame = stack[pos]
            if frame.char == char:
                return pos
            if stop_at_braces and frame.role in ("block", "closure"):
                return None
        return None

    def _continues(self, builder: _SegmentBuilder, newline_index: int) -> bool:
        """Whether the run being built carries on past the newline at ``newline_index``."""
        tokens = self.tokens
        last = tokens[builder.indices[-1]]
        if last.kind == TokenKind.PUNCTUATION and last.text in TRAILING_CONTINUATION:
            return True
        if last.kind == TokenKind.KEYWORD and last.text in TRAILING_CONTINUATION_KEYWORDS:
            return True

        following = self.next_significant(newline_index)
        if following is None:
            return False
        upcoming = tokens[following]
        if upcoming.kind != TokenKind.PUNCTUATION:
            return False
        if upcoming.text in LEADING_CONTINUATION:
            return True
        return upcoming.text == "{" and builder.expects_block(tokens, self.pairs)

    def _close(
        self,
        builder: _SegmentBuilder,
        boundary: Optional[int],
        terminated: bool = False,
        opens_block: bool = False,
        label: bool = False,
    ) -> Segment:
        kind, keyword, lead = builder.classify(self.tokens, self.pairs)
        segment = Segment(
            kind=kind,
            indices=tuple(builder.indices),
            keyword=keyword,
            lead=lead,
            boundary=boundary,
            terminated=terminated,
            opens_block=opens_block,
            label=label,
            container=builder.container,
            depth=builder.depth,
        )
        self.segments.append(segment)
        return segment
