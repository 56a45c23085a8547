"""
Lexing and structural analysis of source text.

The tokenizer turns text into a lossless token stream; the structure view
pairs brackets and cuts the stream into statement segments that the rules
share.
"""

from stylescanner.parsers.tokens import Token, TokenKind, KEYWORDS
from stylescanner.parsers.tokenizer import Tokenizer, tokenize
from stylescanner.parsers.structure import Segment, SegmentKind, SourceStructure

__all__ = [
    "Token",
    "TokenKind",
    "KEYWORDS",
    "Tokenizer",
    "tokenize",
    "Segment",
    "SegmentKind",
    "SourceStructure",
]
