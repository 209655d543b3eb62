"""
Folder comparison module.

Provides functionality for:
- Recursive directory scanning into sorted inventories
- Folder-to-folder classification by size and modification time
- Filtering and sorting of compare items
"""

from dircompare.core.folder.scanner import (
    DEFAULT_EXCLUDED_NAMES,
    FolderScanner,
    ScanError,
    ScanOptions,
    build_excluded_names,
)
from dircompare.core.folder.comparer import (
    ClassificationError,
    ClassifyResult,
    FolderComparer,
    filter_items,
    sort_items,
)

__all__ = [
    # Scanner
    'DEFAULT_EXCLUDED_NAMES',
    'FolderScanner',
    'ScanError',
    'ScanOptions',
    'build_excluded_names',
    # Comparer
    'ClassificationError',
    'ClassifyResult',
    'FolderComparer',
    'filter_items',
    'sort_items',
]
