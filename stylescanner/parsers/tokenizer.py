"""
Lossless tokenizer.

Every character of the input ends up in exactly one token, so joining the
token texts in order gives back the original text. Malformed input never
raises: unclosed strings and block comments become a single token running
to the end of input, flagged as unterminated.
"""

import re
from typing import List, Union

from stylescanner.parsers.tokens import Token, TokenKind, KEYWORDS, LITERAL_WORDS


# Longest operators first so "..<" wins over "..".
OPERATORS = (
    "===", "!==", "...", "..<",
    "->", "==", "!=", "<=", ">=", "&&", "||", "??",
    "+=", "-=", "*=", "/=", "%=", "++", "--",
)

_WHITESPACE = re.compile(r"[^\S\r\n]+")
_IDENTIFIER = re.compile(r"[^\W\d]\w*")
_DOLLAR_IDENTIFIER = re.compile(r"\$\w+")
_BACKTICK_IDENTIFIER = re.compile(r"`[^`\r\n]+`")
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+"
    r"|0[bB][01_]+"
    r"|0[oO][0-7_]+"
    r"|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?"
)


def tokenize(text: Union[str, bytes]) -> List[Token]:
    """
    Tokenize source text.

    Bytes are decoded as UTF-8 with ``surrogateescape`` so that undecodable
    bytes survive as part of some token instead of failing.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="surrogateescape")
    return Tokenizer(text).tokenize()


class Tokenizer:
    """Single-pass scanner over a source string."""

    def __init__(self, source: str):
        self._source = source
        self._length = len(source)
        self._position = 0
        self._line = 1
        self._column = 1

    @property
    def source(self) -> str:
        return self._source

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while self._position < self._length:
            tokens.append(self._next_token())
        return tokens

    def _next_token(self) -> Token:
        start = self._position
        ch = self._source[start]
        unterminated = False
        whitespace = _WHITESPACE.match(self._source, start)

        if ch == "\r" or ch == "\n":
            end = start + 2 if self._source.startswith("\r\n", start) else start + 1
            kind = TokenKind.NEWLINE
        elif whitespace:
            end = whitespace.end()
            kind = TokenKind.WHITESPACE
        elif self._source.startswith("//", start):
            end = self._line_end(start)
            kind = TokenKind.COMMENT
        elif self._source.startswith("/*", start):
            end, unterminated = self._scan_block_comment(start)
            kind = TokenKind.COMMENT
        elif ch == '"':
            end, unterminated = self._scan_string(start)
            kind = TokenKind.STRING
        elif ch.isdecimal():
            end = _NUMBER.match(self._source, start).end()
            kind = TokenKind.LITERAL
        else:
            end, kind = self._scan_word_or_punctuation(start)

        return self._emit(kind, start, end, unterminated)

    def _emit(self, kind: TokenKind, start: int, end: int, unterminated: bool) -> Token:
        text = self._source[start:end]
        token = Token(
            kind=kind,
            text=text,
            start=start,
            end=end,
            line=self._line,
            column=self._column,
            unterminated=unterminated,
        )
        self._position = end
        self._advance_position(text)
        return token

    def _advance_position(self, text: str):
        breaks = text.count("\n") + text.count("\r") - text.count("\r\n")
        if breaks:
            self._line += breaks
            last_break = max(text.rfind("\n"), text.rfind("\r"))
            self._column = len(text) - last_break
        else:
            self._column += len(text)

    def _line_end(self, position: int) -> int:
        while position < self._length and self._source[position] not in "\r\n":
            position += 1
        return position

    def _scan_block_comment(self, start: int):
        """Scan a ``/* */`` comment; block comments nest."""
        depth = 0
        position = start
        while position < self._length:
            if self._source.startswith("/*", position):
                depth += 1
                position += 2
            elif self._source.startswith("*/", position):
                depth -= 1
                position += 2
                if depth == 0:
                    return position, False
            else:
                position += 1
        return self._length, True

    def _scan_string(self, start: int):
        """
        Scan a string literal up to and including its closing quote.

        Returns ``(end, unterminated)``. Interpolations ``\\( ... )`` may
        contain nested strings to any depth; each open string is a
        ``[quote, paren_depth]`` frame on an explicit stack, where a depth
        of zero means the scan is in the string body itself.
        """
        quote = '"""' if self._source.startswith('"""', start) else '"'
        stack = [[quote, 0]]
        position = start + len(quote)
        while position < self._length:
            frame = stack[-1]
            quote, depth = frame
            ch = self._source[position]
            if depth == 0:
                if ch == "\\":
                    if self._source.startswith("\\(", position):
                        frame[1] = 1
                    position += 2
                elif self._source.startswith(quote, position):
                    position += len(quote)
                    stack.pop()
                    if not stack:
                        return position, False
                else:
                    position += 1
            elif ch == '"':
                nested_quote = '"""' if self._source.startswith('"""', position) else '"'
                stack.append([nested_quote, 0])
                position += len(nested_quote)
            else:
                if ch == "(":
                    frame[1] += 1
                elif ch == ")":
                    frame[1] -= 1
                position += 1
        return self._length, True

    def _scan_word_or_punctuation(self, start: int):
        match = _IDENTIFIER.match(self._source, start)
        if match:
            word = match.group()
            if word in LITERAL_WORDS:
                return match.end(), TokenKind.LITERAL
            if word in KEYWORDS:
                return match.end(), TokenKind.KEYWORD
            return match.end(), TokenKind.IDENTIFIER

        match = _DOLLAR_IDENTIFIER.match(self._source, start) or _BACKTICK_IDENTIFIER.match(self._source, start)
        if match:
            return match.end(), TokenKind.IDENTIFIER

        for operator in OPERATORS:
            if self._source.startswith(operator, start):
                return start + len(operator), TokenKind.PUNCTUATION

        return start + 1, TokenKind.PUNCTUATION
