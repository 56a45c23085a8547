"""
Layout rules: termination, braces and parentheses.
"""

from stylescanner.rules.formatting import termination
from stylescanner.rules.formatting import braces
from stylescanner.rules.formatting import parentheses

__all__ = [
    "termination",
    "braces",
    "parentheses",
]
