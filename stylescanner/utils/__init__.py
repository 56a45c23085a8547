"""
Utility functions for the style scanner.
"""

import bisect
import re
from typing import List, Optional, Tuple


_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def is_binary_file(file_path: str) -> bool:
    """Check if a file is binary."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(1024)
    except OSError:
        return False
    if b'\x00' in chunk:
        return True
    # High proportion of non-text bytes
    text_chars = bytearray({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x100)) - {0x7f})
    non_text = sum(1 for byte in chunk if byte not in text_chars)
    return non_text / len(chunk) > 0.3 if chunk else False


def split_lines(text: str) -> List[str]:
    """
    Split text into lines on ``\\r\\n``, ``\\r`` and ``\\n`` only.

    Unlike ``str.splitlines`` this agrees with the tokenizer's line
    numbering, which does not break on form feeds or Unicode separators.
    """
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "" and len(lines) > 1:
        lines.pop()
    return lines


def line_starts(text: str) -> List[int]:
    """Offsets at which each line of ``text`` begins."""
    return [0] + [match.end() for match in _LINE_BREAK.finditer(text)]


def offset_to_position(starts: List[int], offset: int) -> Tuple[int, int]:
    """Convert an offset into a 1-based ``(line, column)`` pair."""
    index = bisect.bisect_right(starts, offset) - 1
    index = max(index, 0)
    return index + 1, offset - starts[index] + 1


def pluralize(count: int, word: str, plural: Optional[str] = None) -> str:
    """Format ``count`` with the singular or plural form of ``word``."""
    if count == 1:
        return f"{count} {word}"
    return f"{count} {plural or word + 's'}"
