"""
Fix application.

Applies span-based fixes without overlap conflicts, produces before/after
diffs and writes fixed files.
"""

from stylescanner.remediation.engine import (
    AppliedEdit,
    FixResult,
    RemediationEngine,
    apply_fixes,
    FIX_SKIPPED_RULE_ID,
)

__all__ = [
    "AppliedEdit",
    "FixResult",
    "RemediationEngine",
    "apply_fixes",
    "FIX_SKIPPED_RULE_ID",
]
