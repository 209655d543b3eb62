"""Pytest configuration and shared fixtures for the dircompare test suite."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

# Fixed modification time used for files that should compare as same
FIXED_MTIME = 1_700_000_000.5

Content = Union[str, bytes]


def write_tree(root: Path, files: dict[str, Content], mtime: Optional[float] = FIXED_MTIME) -> Path:
    """Write relative path -> content under root, optionally pinning mtimes."""
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode('utf-8'))
        if mtime is not None:
            os.utime(path, (mtime, mtime))
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Provide a builder for directory trees under tmp_path.

    Usage: make_tree('left', {'a.txt': 'x', 'sub/b.txt': b'y'}, mtime=...)
    """
    def _make(name: str, files: dict[str, Content], mtime: Optional[float] = FIXED_MTIME) -> Path:
        return write_tree(tmp_path / name, files, mtime)

    return _make


def symlinks_supported(tmp_path: Path) -> bool:
    """Check whether the platform lets us create symlinks."""
    link = tmp_path / '.symlink-check'
    try:
        os.symlink(tmp_path, link)
    except (OSError, NotImplementedError, AttributeError):
        return False
    link.unlink()
    return True
