"""
Diff kind policy.

Decides whether a differing file pair is compared as text, treated as
binary, or skipped because it is too large. The constants are exported
so hosts can display the active policy.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from dircompare.core.models import DiffKind


MAX_TEXT_DIFF_BYTES = 1024 * 1024

# Bytes inspected for a NUL byte when sniffing file content
BINARY_SNIFF_BYTES = 8000

KNOWN_BINARY_EXTENSIONS = frozenset({
    '.png', '.jpg', '.jpeg', '.gif', '.webp', '.bmp', '.ico',
    '.pdf', '.zip', '.gz',
    '.mp3', '.mp4', '.mov',
    '.exe', '.dll', '.so', '.dylib',
})


def is_binary_path(path: str) -> bool:
    """Check whether a path carries a known binary extension."""
    return PurePosixPath(path.replace('\\', '/')).suffix.lower() in KNOWN_BINARY_EXTENSIONS


def get_diff_kind(relative_path: str, left_size: int, right_size: int) -> DiffKind:
    """
    Classify how a differing pair should be compared.

    The size ceiling is checked before the extension, so an oversized
    image is TOO_LARGE rather than BINARY.
    """
    if left_size > MAX_TEXT_DIFF_BYTES or right_size > MAX_TEXT_DIFF_BYTES:
        return DiffKind.TOO_LARGE

    if is_binary_path(relative_path):
        return DiffKind.BINARY

    return DiffKind.TEXT


def has_nul_byte(content: bytes) -> bool:
    """Check the leading bytes of a file for a NUL byte."""
    return b'\x00' in content[:BINARY_SNIFF_BYTES]


def policy_snapshot() -> dict[str, object]:
    """Active policy constants in wire form."""
    return {
        'max_text_diff_bytes': MAX_TEXT_DIFF_BYTES,
        'binary_extensions': sorted(KNOWN_BINARY_EXTENSIONS),
    }
