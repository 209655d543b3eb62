"""
Directory scanner for folder comparison.

Provides directory traversal that builds a sorted file inventory:
- Recursive scanning with unbounded depth
- Name-based exclusion at every depth
- Symbolic links skipped, never followed
- All-or-nothing error handling
"""

from __future__ import annotations

import logging
import os
import stat
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from dircompare.core.models import DirectoryEntry, Inventory


DEFAULT_EXCLUDED_NAMES: tuple[str, ...] = ('.git', 'node_modules')


class ScanError(Exception):
    """Traversal failure; the underlying OSError is chained as __cause__."""

    def __init__(self, path: Path | str, cause: OSError):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to scan {self.path}: {cause}")

    @property
    def errno(self) -> Optional[int]:
        return self.cause.errno


def build_excluded_names(custom_names: Optional[Iterable[str]] = None) -> frozenset[str]:
    """Union the default excluded names with trimmed, non-empty custom names."""
    names = set(DEFAULT_EXCLUDED_NAMES)
    for name in custom_names or ():
        name = name.strip()
        if name:
            names.add(name)
    return frozenset(names)


@dataclass
class ScanOptions:
    """Options for directory scanning."""
    excluded_names: list[str] = field(default_factory=list)

    @property
    def effective_excluded_names(self) -> frozenset[str]:
        return build_excluded_names(self.excluded_names)


class FolderScanner:
    """
    Scans a directory tree into an Inventory.

    Exclusion matches a child's name exactly, so an excluded name is
    skipped wherever it appears in the tree. Symbolic links are neither
    followed nor recorded.
    """

    def __init__(self, options: Optional[ScanOptions] = None):
        self.options = options or ScanOptions()

    def scan(self, root_path: Path | str) -> Inventory:
        """
        Scan a directory tree.

        Args:
            root_path: Root directory to scan

        Returns:
            Inventory sorted by relative path

        Raises:
            NotADirectoryError: root_path is not a directory
            ScanError: any failure while traversing
        """
        start_time = time.time()
        root_path = Path(root_path)

        try:
            root_stat = os.stat(root_path)
        except OSError as e:
            logging.error(f"FolderScanner - Cannot access root {root_path}: {e}")
            raise ScanError(root_path, e) from e

        if not stat.S_ISDIR(root_stat.st_mode):
            logging.error(f"FolderScanner - Root path is not a directory: {root_path}")
            raise NotADirectoryError(f"Not a directory: {root_path}")

        excluded = self.options.effective_excluded_names
        entries: list[DirectoryEntry] = []

        def on_walk_error(error: OSError):
            raise error

        logging.info(f"FolderScanner - Scanning {root_path}")

        try:
            for dirpath, dirnames, filenames in os.walk(
                root_path,
                topdown=True,
                followlinks=False,
                onerror=on_walk_error
            ):
                current_path = Path(dirpath)

                # Filter directories in-place to control recursion
                kept_dirs = []
                for dirname in dirnames:
                    if dirname in excluded:
                        logging.debug(f"FolderScanner - Excluded directory {current_path / dirname}")
                        continue
                    if os.path.islink(current_path / dirname):
                        logging.debug(f"FolderScanner - Skipped symlink {current_path / dirname}")
                        continue
                    kept_dirs.append(dirname)
                dirnames[:] = kept_dirs

                for filename in filenames:
                    if filename in excluded:
                        logging.debug(f"FolderScanner - Excluded file {current_path / filename}")
                        continue

                    entry = self._make_entry(root_path, current_path / filename)
                    if entry is not None:
                        entries.append(entry)
        except OSError as e:
            failed_path = e.filename or root_path
            logging.error(f"FolderScanner - Scan of {root_path} failed at {failed_path}: {e}")
            raise ScanError(failed_path, e) from e

        entries.sort(key=lambda entry: entry.relative_path)

        inventory = Inventory(root_path=root_path, entries=entries, scan_time=time.time() - start_time)
        logging.info(
            f"FolderScanner - Scanned {root_path}: {inventory.file_count} files, "
            f"{inventory.total_size} bytes in {inventory.scan_time:.3f}s"
        )

        return inventory

    def _make_entry(self, root_path: Path, path: Path) -> Optional[DirectoryEntry]:
        """Build an entry for a regular file, or None for links and special files."""
        # Use lstat so links are seen as links
        stat_result = path.lstat()

        if stat.S_ISLNK(stat_result.st_mode):
            logging.debug(f"FolderScanner - Skipped symlink {path}")
            return None

        if not stat.S_ISREG(stat_result.st_mode):
            return None

        return DirectoryEntry(
            absolute_path=path,
            relative_path=path.relative_to(root_path).as_posix(),
            size=stat_result.st_size,
            modified_time=datetime.fromtimestamp(stat_result.st_mtime),
        )
