"""
Token types produced by the tokenizer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet


class TokenKind(Enum):
    """Lexical classes. Whitespace, newlines and comments are kept as tokens."""
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    PUNCTUATION = "punctuation"
    STRING = "string"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"
    LITERAL = "literal"

    @property
    def is_trivia(self) -> bool:
        return self in (TokenKind.WHITESPACE, TokenKind.NEWLINE, TokenKind.COMMENT)

    @property
    def is_word(self) -> bool:
        """Token kinds that can make up the body of a statement."""
        return self in (
            TokenKind.IDENTIFIER,
            TokenKind.KEYWORD,
            TokenKind.LITERAL,
            TokenKind.STRING,
        )


KEYWORDS: FrozenSet[str] = frozenset({
    # Declarations
    "associatedtype", "class", "deinit", "enum", "extension", "fileprivate",
    "func", "import", "init", "inout", "internal", "let", "open", "operator",
    "private", "protocol", "public", "static", "struct", "subscript",
    "typealias", "var", "actor",
    # Statements
    "break", "case", "catch", "continue", "default", "defer", "do", "else",
    "fallthrough", "for", "guard", "if", "in", "repeat", "return", "switch",
    "throw", "where", "while",
    # Expressions and types
    "as", "is", "rethrows", "self", "Self", "super", "throws", "try", "await",
    "async",
    # Contextual modifiers
    "convenience", "dynamic", "final", "lazy", "mutating", "nonmutating",
    "optional", "override", "required", "unowned", "weak", "indirect",
})

LITERAL_WORDS: FrozenSet[str] = frozenset({"true", "false", "nil"})


@dataclass(frozen=True)
class Token:
    """
    A single lexical token.

    ``start``/``end`` are character offsets into the decoded text (not byte
    offsets when the input was bytes); ``line`` and ``column`` are 1-based.
    ``unterminated`` is set on strings and block comments that run to the
    end of input without being closed.
    """
    kind: TokenKind
    text: str
    start: int
    end: int
    line: int
    column: int
    unterminated: bool = False

    @property
    def is_trivia(self) -> bool:
        return self.kind.is_trivia

    def is_punct(self, text: str) -> bool:
        return self.kind == TokenKind.PUNCTUATION and self.text == text

    def is_keyword(self, *words: str) -> bool:
        return self.kind == TokenKind.KEYWORD and self.text in words

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.text!r}, {self.line}:{self.column})"
