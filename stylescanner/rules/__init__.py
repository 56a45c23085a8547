"""
Style rules.

Importing this package registers every built-in rule with the registry.
"""

# Import all rules to register them
from stylescanner.rules.formatting import termination, braces, parentheses
from stylescanner.rules.conventions import declarations, comments, members

__all__ = [
    "termination",
    "braces",
    "parentheses",
    "declarations",
    "comments",
    "members",
]
