"""
Diff module for file comparison operations.

Provides:
- The diff kind policy (text / binary / too large)
- The line-based text diff engine and its display transforms
"""

from dircompare.core.diff.policy import (
    BINARY_SNIFF_BYTES,
    KNOWN_BINARY_EXTENSIONS,
    MAX_TEXT_DIFF_BYTES,
    get_diff_kind,
    has_nul_byte,
    is_binary_path,
)
from dircompare.core.diff.text_diff import (
    TextDiffEngine,
    TextCompareOptions,
    diff_text,
    split_line_tokens,
    split_lines,
)

__all__ = [
    # Policy
    'BINARY_SNIFF_BYTES',
    'KNOWN_BINARY_EXTENSIONS',
    'MAX_TEXT_DIFF_BYTES',
    'get_diff_kind',
    'has_nul_byte',
    'is_binary_path',
    # Text diff
    'TextDiffEngine',
    'TextCompareOptions',
    'diff_text',
    'split_line_tokens',
    'split_lines',
]
