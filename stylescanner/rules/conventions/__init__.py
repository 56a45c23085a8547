"""
Convention rules: declarations, comment markers and members.
"""

from stylescanner.rules.conventions import declarations
from stylescanner.rules.conventions import comments
from stylescanner.rules.conventions import members

__all__ = [
    "declarations",
    "comments",
    "members",
]
