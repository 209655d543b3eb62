"""
Core data models for the directory comparison engine.

This module defines all data structures used across the package:
- Directory inventory models
- Folder comparison models
- Text diff models
- Request/response models and typed failures

All models are designed to be:
- UI-agnostic (any host can consume them)
- Serializable (every payload has a to_dict() with wire names)
- Immutable where practical
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional


# =============================================================================
# Enumerations
# =============================================================================

class CompareStatus(Enum):
    """Status of a relative path in folder comparison."""
    SAME = "same"                # Present on both sides, size and mtime equal
    DIFFERENT = "different"      # Present on both sides, size or mtime differ
    LEFT_ONLY = "left_only"      # Present only under the left root
    RIGHT_ONLY = "right_only"    # Present only under the right root


class DiffKind(Enum):
    """How a differing file pair should be compared."""
    TEXT = "text"
    BINARY = "binary"
    TOO_LARGE = "too_large"


class DiffLineType(Enum):
    """Type of line in a diff result."""
    CONTEXT = "context"   # Line exists in both files, identical
    ADDED = "added"       # Line exists only in right/new file
    REMOVED = "removed"   # Line exists only in left/old file


class ErrorCode(Enum):
    """Failure codes reported across the service boundary."""
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FailureStep(Enum):
    """Pipeline step at which a failure occurred."""
    VALIDATE_INPUT = "validate_input"
    SCAN_DIRECTORY = "scan_directory"
    CLASSIFY_RESULT = "classify_result"
    READ_FILE = "read_file"
    UNEXPECTED = "unexpected"


# =============================================================================
# Directory Inventory Models
# =============================================================================

@dataclass(frozen=True)
class DirectoryEntry:
    """A regular file found under a scanned root."""
    absolute_path: Path
    relative_path: str      # Slash-separated, root-relative identity key
    size: int
    modified_time: datetime

    @property
    def snapshot(self) -> FileSnapshot:
        return FileSnapshot(size=self.size, modified_time=self.modified_time)


@dataclass
class Inventory:
    """
    Sorted collection of entries for one root.

    Entries are ordered by relative path and relative paths are unique.
    """
    root_path: Path
    entries: list[DirectoryEntry] = field(default_factory=list)
    scan_time: float = 0.0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self.entries)

    @property
    def file_count(self) -> int:
        return len(self.entries)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def paths(self) -> list[str]:
        """Relative paths in inventory order."""
        return [entry.relative_path for entry in self.entries]

    def by_path(self) -> dict[str, DirectoryEntry]:
        """Lookup from relative path to entry."""
        return {entry.relative_path: entry for entry in self.entries}


# =============================================================================
# Folder Comparison Models
# =============================================================================

@dataclass(frozen=True)
class FileSnapshot:
    """Size and modification time of one side of a compare item."""
    size: int
    modified_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            'size': self.size,
            'modified_time': self.modified_time.isoformat(),
        }


@dataclass
class CompareItem:
    """Result of comparing a single relative path across both roots."""
    relative_path: str
    status: CompareStatus
    left: Optional[FileSnapshot] = None
    right: Optional[FileSnapshot] = None
    diff_kind_hint: Optional[DiffKind] = None

    @property
    def size_left(self) -> int:
        return self.left.size if self.left else -1

    @property
    def size_right(self) -> int:
        return self.right.size if self.right else -1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'relative_path': self.relative_path,
            'status': self.status.value,
        }
        if self.left is not None:
            data['left'] = self.left.to_dict()
        if self.right is not None:
            data['right'] = self.right.to_dict()
        if self.diff_kind_hint is not None:
            data['diff_kind_hint'] = self.diff_kind_hint.value
        return data


@dataclass
class CompareSummary:
    """Counts of compare items by status."""
    same: int = 0
    different: int = 0
    left_only: int = 0
    right_only: int = 0

    @property
    def total(self) -> int:
        return self.same + self.different + self.left_only + self.right_only

    @property
    def total_differences(self) -> int:
        return self.different + self.left_only + self.right_only

    @property
    def is_identical(self) -> bool:
        return self.total_differences == 0

    def count(self, status: CompareStatus) -> None:
        """Increment the counter for a status."""
        if status == CompareStatus.SAME:
            self.same += 1
        elif status == CompareStatus.DIFFERENT:
            self.different += 1
        elif status == CompareStatus.LEFT_ONLY:
            self.left_only += 1
        elif status == CompareStatus.RIGHT_ONLY:
            self.right_only += 1

    def to_dict(self) -> dict[str, int]:
        return {
            'same': self.same,
            'different': self.different,
            'left_only': self.left_only,
            'right_only': self.right_only,
        }

    def __str__(self) -> str:
        return (f"Same: {self.same}, Different: {self.different}, "
                f"Left only: {self.left_only}, Right only: {self.right_only}")


# =============================================================================
# Text Diff Models
# =============================================================================

@dataclass(frozen=True)
class FileDiffLine:
    """
    A single line in a diff result.

    Context lines carry both line numbers, removed lines only the left
    one and added lines only the right one. A collapsed-context
    placeholder is a context line with no line numbers.

    `text` never includes the line terminator. `missing_newline` marks
    the last line of a file that does not end with one; it takes part in
    the comparison, so "b" and "b\\n" are different lines.
    """
    line_type: DiffLineType
    text: str
    left_line_num: Optional[int] = None
    right_line_num: Optional[int] = None
    missing_newline: bool = False

    @property
    def is_placeholder(self) -> bool:
        return (self.line_type == DiffLineType.CONTEXT and
                self.left_line_num is None and self.right_line_num is None)

    @property
    def prefix(self) -> str:
        """Get the diff prefix character."""
        prefixes = {
            DiffLineType.CONTEXT: ' ',
            DiffLineType.ADDED: '+',
            DiffLineType.REMOVED: '-',
        }
        return prefixes[self.line_type]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'type': self.line_type.value, 'text': self.text}
        if self.left_line_num is not None:
            data['left_line_number'] = self.left_line_num
        if self.right_line_num is not None:
            data['right_line_number'] = self.right_line_num
        if self.missing_newline:
            data['no_newline_at_end'] = True
        return data


@dataclass(frozen=True)
class DiffRow:
    """
    A pair of lines for side-by-side display.

    One side may be None for pure additions or removals.
    """
    left_line: Optional[FileDiffLine] = None
    right_line: Optional[FileDiffLine] = None

    @property
    def row_type(self) -> str:
        left_type = self.left_line.line_type if self.left_line else None
        right_type = self.right_line.line_type if self.right_line else None
        if left_type == DiffLineType.REMOVED and right_type == DiffLineType.ADDED:
            return 'changed'
        if left_type == DiffLineType.REMOVED:
            return 'removed'
        if right_type == DiffLineType.ADDED:
            return 'added'
        return 'context'

    @property
    def left_content(self) -> str:
        return self.left_line.text if self.left_line else ""

    @property
    def right_content(self) -> str:
        return self.right_line.text if self.right_line else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            'type': self.row_type,
            'left': self.left_line.to_dict() if self.left_line else None,
            'right': self.right_line.to_dict() if self.right_line else None,
        }


@dataclass
class CollapsedLines:
    """Diff lines with long context runs folded into placeholders."""
    lines: list[FileDiffLine]
    has_collapsed: bool = False
    hidden: dict[int, list[FileDiffLine]] = field(default_factory=dict)  # placeholder index -> lines

    def expand(self) -> list[FileDiffLine]:
        """Restore the uncollapsed sequence."""
        expanded: list[FileDiffLine] = []
        for index, line in enumerate(self.lines):
            if index in self.hidden:
                expanded.extend(self.hidden[index])
            else:
                expanded.append(line)
        return expanded


@dataclass
class DiffStatistics:
    """Statistics about a diff result."""
    total_lines_left: int = 0
    total_lines_right: int = 0
    added_lines: int = 0
    removed_lines: int = 0
    unchanged_lines: int = 0

    @property
    def similarity_ratio(self) -> float:
        """
        Calculate similarity ratio (0.0 to 1.0).

        1.0 means identical, 0.0 means completely different.
        """
        total = max(self.total_lines_left, self.total_lines_right)
        if total == 0:
            return 1.0
        return self.unchanged_lines / total

    def to_dict(self) -> dict[str, Any]:
        return {
            'total_lines_left': self.total_lines_left,
            'total_lines_right': self.total_lines_right,
            'added_lines': self.added_lines,
            'removed_lines': self.removed_lines,
            'unchanged_lines': self.unchanged_lines,
            'similarity_ratio': round(self.similarity_ratio, 4),
        }

    def __str__(self) -> str:
        return f"+{self.added_lines} -{self.removed_lines} ={self.unchanged_lines}"


# =============================================================================
# Requests, Responses and Failures
# =============================================================================

@dataclass
class CompareRequest:
    """Request to compare two directory roots."""
    left_path: str
    right_path: str
    exclude_names: list[str] = field(default_factory=list)


@dataclass
class FileDiffRequest:
    """Request for the line diff of one relative path under both roots."""
    left_root_path: str
    right_root_path: str
    relative_path: str
    show_all_context: bool = False


@dataclass
class OperationError:
    """Typed failure returned instead of raising across the service boundary."""
    code: ErrorCode
    message: str
    source: str         # 'compare' or 'file_diff'
    step: FailureStep
    retryable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            'code': self.code.value,
            'message': self.message,
            'source': self.source,
            'step': self.step.value,
            'retryable': self.retryable,
        }

    def __str__(self) -> str:
        retry = 'retry available' if self.retryable else 'retry unlikely to help'
        return (f"source: {self.source} / step: {self.step.value} / "
                f"code: {self.code.value} / {retry}")


@dataclass
class CompareData:
    """Success payload of a folder comparison."""
    request_id: str
    generated_at: datetime
    left_root: str
    right_root: str
    left_file_count: int
    right_file_count: int
    applied_exclude_names: list[str]
    max_text_diff_bytes: int
    binary_extensions: list[str]
    summary: CompareSummary
    items: list[CompareItem]
    compare_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            'request_id': self.request_id,
            'generated_at': self.generated_at.isoformat(),
            'left_root': self.left_root,
            'right_root': self.right_root,
            'left_file_count': self.left_file_count,
            'right_file_count': self.right_file_count,
            'applied_exclude_names': list(self.applied_exclude_names),
            'policy': {
                'max_text_diff_bytes': self.max_text_diff_bytes,
                'binary_extensions': list(self.binary_extensions),
            },
            'summary': self.summary.to_dict(),
            'items': [item.to_dict() for item in self.items],
            'compare_time': round(self.compare_time, 4),
        }


@dataclass
class FileDiffData:
    """Success payload of a single-file diff."""
    relative_path: str
    kind: DiffKind
    max_bytes: int
    lines: list[FileDiffLine] = field(default_factory=list)
    display_lines: list[FileDiffLine] = field(default_factory=list)
    has_collapsed: bool = False
    rows: list[DiffRow] = field(default_factory=list)
    statistics: Optional[DiffStatistics] = None
    encoding_left: Optional[str] = None
    encoding_right: Optional[str] = None

    @property
    def has_differences(self) -> bool:
        return any(line.line_type != DiffLineType.CONTEXT for line in self.lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            'relative_path': self.relative_path,
            'kind': self.kind.value,
            'max_bytes': self.max_bytes,
            'lines': [line.to_dict() for line in self.lines],
            'display_lines': [line.to_dict() for line in self.display_lines],
            'has_collapsed': self.has_collapsed,
            'rows': [row.to_dict() for row in self.rows],
            'statistics': self.statistics.to_dict() if self.statistics else None,
            'encoding_left': self.encoding_left,
            'encoding_right': self.encoding_right,
        }


@dataclass
class CompareResponse:
    """Tagged success/failure result of run_compare."""
    success: bool
    data: Optional[CompareData] = None
    error: Optional[OperationError] = None

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.data is not None:
            return {'ok': True, 'data': self.data.to_dict()}
        return {'ok': False, 'error': self.error.to_dict() if self.error else None}


@dataclass
class FileDiffResponse:
    """Tagged success/failure result of get_file_diff."""
    success: bool
    data: Optional[FileDiffData] = None
    error: Optional[OperationError] = None

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.data is not None:
            return {'ok': True, 'data': self.data.to_dict()}
        return {'ok': False, 'error': self.error.to_dict() if self.error else None}
