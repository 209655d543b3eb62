"""
Folder comparison engine.

Merges the inventories of two roots and identifies:
- Same files (size and modification time equal)
- Different files
- Files only in left
- Files only in right
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from dircompare.core.diff.policy import get_diff_kind
from dircompare.core.models import (
    CompareItem,
    CompareStatus,
    CompareSummary,
    Inventory,
)


SORT_KEYS = ('relative_path', 'status', 'left_size', 'right_size')


class ClassificationError(RuntimeError):
    """A path was found on neither side while merging inventories."""


@dataclass
class ClassifyResult:
    """Items and summary produced by merging two inventories."""
    items: list[CompareItem]
    summary: CompareSummary


class FolderComparer:
    """
    Compares two inventories.

    Equality is decided on (size, modification time) only; no content is
    read. A DIFFERENT verdict is therefore certain while SAME is a
    metadata heuristic.
    """

    def classify(self, left: Inventory, right: Inventory) -> ClassifyResult:
        """
        Merge two inventories into per-path items.

        Args:
            left: Inventory of the left root
            right: Inventory of the right root

        Returns:
            ClassifyResult with items sorted by relative path
        """
        left_by_path = left.by_path()
        right_by_path = right.by_path()
        all_paths = sorted(set(left_by_path) | set(right_by_path))

        summary = CompareSummary()
        items: list[CompareItem] = []

        for rel_path in all_paths:
            left_entry = left_by_path.get(rel_path)
            right_entry = right_by_path.get(rel_path)

            if left_entry is not None and right_entry is not None:
                is_same = (
                    (left_entry.size, left_entry.modified_time) ==
                    (right_entry.size, right_entry.modified_time)
                )
                item = CompareItem(
                    relative_path=rel_path,
                    status=CompareStatus.SAME if is_same else CompareStatus.DIFFERENT,
                    left=left_entry.snapshot,
                    right=right_entry.snapshot,
                )
            elif left_entry is not None:
                item = CompareItem(
                    relative_path=rel_path,
                    status=CompareStatus.LEFT_ONLY,
                    left=left_entry.snapshot,
                )
            elif right_entry is not None:
                item = CompareItem(
                    relative_path=rel_path,
                    status=CompareStatus.RIGHT_ONLY,
                    right=right_entry.snapshot,
                )
            else:
                logging.error(f"FolderComparer - Path missing on both sides: {rel_path}")
                raise ClassificationError(
                    f"Invalid compare state: {rel_path} is missing on both sides"
                )

            summary.count(item.status)
            items.append(item)

        logging.debug(f"FolderComparer - Classified {len(items)} paths ({summary})")
        return ClassifyResult(items=items, summary=summary)

    def annotate_diff_kinds(self, items: Iterable[CompareItem]) -> None:
        """Attach a diff kind hint to every DIFFERENT item."""
        for item in items:
            if item.status != CompareStatus.DIFFERENT:
                continue
            item.diff_kind_hint = get_diff_kind(
                item.relative_path, item.left.size, item.right.size
            )


def filter_items(
    items: Iterable[CompareItem],
    status: Optional[CompareStatus] = None,
    query: str = ""
) -> list[CompareItem]:
    """
    Filter items by status and a case-insensitive path substring.

    An empty query matches everything.
    """
    needle = query.strip().lower()
    result = []
    for item in items:
        if status is not None and item.status != status:
            continue
        if needle and needle not in item.relative_path.lower():
            continue
        result.append(item)
    return result


def sort_items(
    items: Iterable[CompareItem],
    key: str = 'relative_path',
    descending: bool = False
) -> list[CompareItem]:
    """
    Sort items by one of SORT_KEYS.

    Ties are broken by relative path in the same direction. A missing
    side sorts with size -1.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}")

    def sort_value(item: CompareItem):
        if key == 'status':
            return (item.status.value, item.relative_path)
        if key == 'left_size':
            return (item.size_left, item.relative_path)
        if key == 'right_size':
            return (item.size_right, item.relative_path)
        return (item.relative_path,)

    return sorted(items, key=sort_value, reverse=descending)
