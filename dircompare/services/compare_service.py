"""
Comparison service.

Entry points consumed by a host (CLI, UI or service):
- run_compare: validate two roots, scan them concurrently, classify
- get_file_diff: line diff of one relative path under both roots

Every failure is returned as an OperationError inside the response;
no exception crosses these entry points.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

from dircompare.core.diff.policy import MAX_TEXT_DIFF_BYTES, policy_snapshot
from dircompare.core.diff.text_diff import TextCompareOptions, TextDiffEngine
from dircompare.core.folder.comparer import FolderComparer
from dircompare.core.folder.scanner import FolderScanner, ScanError, ScanOptions
from dircompare.core.models import (
    CompareData,
    CompareRequest,
    CompareResponse,
    DiffKind,
    ErrorCode,
    FailureStep,
    FileDiffData,
    FileDiffRequest,
    FileDiffResponse,
    Inventory,
    OperationError,
)
from dircompare.services.file_io import FileContent, FileIOService


SOURCE_COMPARE = 'compare'
SOURCE_FILE_DIFF = 'file_diff'

_PERMISSION_ERRNOS = (errno.EACCES, errno.EPERM)


class OperationFailed(Exception):
    """Internal carrier for a typed failure; never escapes the service."""

    def __init__(self, error: OperationError):
        self.error = error
        super().__init__(error.message)


def normalize_input_path(raw: Optional[str]) -> str:
    """
    Normalize a user-supplied path.

    Trims whitespace, strips one pair of matching surrounding quotes and
    expands a leading '~'. Returns '' for blank input.
    """
    if raw is None:
        return ""
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1].strip()
    if not value:
        return ""
    return os.path.expanduser(value)


def error_code_for(error: BaseException) -> ErrorCode:
    """Map an exception raised by the filesystem to an error code."""
    if isinstance(error, ScanError):
        error = error.cause
    if isinstance(error, NotADirectoryError):
        return ErrorCode.INVALID_INPUT
    if isinstance(error, FileNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(error, PermissionError):
        return ErrorCode.PERMISSION_DENIED
    if isinstance(error, OSError):
        if error.errno == errno.ENOENT:
            return ErrorCode.NOT_FOUND
        if error.errno in _PERMISSION_ERRNOS:
            return ErrorCode.PERMISSION_DENIED
    return ErrorCode.INTERNAL_ERROR


def make_error(
    code: ErrorCode,
    message: str,
    source: str,
    step: FailureStep
) -> OperationError:
    """Build a failure; only internal errors are retryable."""
    return OperationError(
        code=code,
        message=message,
        source=source,
        step=step,
        retryable=(code == ErrorCode.INTERNAL_ERROR),
    )


class CompareService:
    """
    Orchestrates folder comparison and file diffs.

    Holds no state across calls; concurrent invocations share nothing
    but the filesystem.
    """

    def __init__(
        self,
        text_options: Optional[TextCompareOptions] = None,
        io_service: Optional[FileIOService] = None
    ):
        self.text_options = text_options or TextCompareOptions()
        self.io_service = io_service or FileIOService()

    # -------------------------------------------------------------------------
    # Folder comparison
    # -------------------------------------------------------------------------

    def compare(
        self,
        left_path: str,
        right_path: str,
        exclude_names: Optional[list[str]] = None
    ) -> CompareResponse:
        """Convenience wrapper around run_compare."""
        return self.run_compare(CompareRequest(
            left_path=left_path,
            right_path=right_path,
            exclude_names=list(exclude_names or []),
        ))

    def run_compare(self, request: CompareRequest) -> CompareResponse:
        """
        Compare two directory roots.

        Args:
            request: Roots and extra excluded names

        Returns:
            CompareResponse with either data or a typed error
        """
        try:
            data = self._run_compare(request)
            return CompareResponse(success=True, data=data)
        except OperationFailed as failure:
            self._log_failure(failure.error)
            return CompareResponse(success=False, error=failure.error)
        except Exception as e:
            logging.exception("CompareService - Unexpected error during compare")
            return CompareResponse(success=False, error=make_error(
                ErrorCode.INTERNAL_ERROR,
                f"Unexpected error while comparing directories: {e}",
                SOURCE_COMPARE,
                FailureStep.UNEXPECTED,
            ))

    def _run_compare(self, request: CompareRequest) -> CompareData:
        start_time = time.time()

        left_root = normalize_input_path(request.left_path)
        right_root = normalize_input_path(request.right_path)

        if not left_root or not right_root:
            raise OperationFailed(make_error(
                ErrorCode.INVALID_INPUT,
                "Both left and right directory paths are required.",
                SOURCE_COMPARE,
                FailureStep.VALIDATE_INPUT,
            ))

        self._validate_directory('Left', left_root)
        self._validate_directory('Right', right_root)

        scan_options = ScanOptions(excluded_names=list(request.exclude_names or []))
        left_inventory, right_inventory = self._scan_both(left_root, right_root, scan_options)

        comparer = FolderComparer()
        try:
            classified = comparer.classify(left_inventory, right_inventory)
            comparer.annotate_diff_kinds(classified.items)
        except Exception as e:
            logging.exception("CompareService - Classification failed")
            raise OperationFailed(make_error(
                ErrorCode.INTERNAL_ERROR,
                f"Failed to classify comparison result: {e}",
                SOURCE_COMPARE,
                FailureStep.CLASSIFY_RESULT,
            )) from e

        policy = policy_snapshot()
        compare_time = time.time() - start_time
        logging.info(
            f"CompareService - Compared {left_root} and {right_root} "
            f"in {compare_time:.3f}s ({classified.summary})"
        )

        return CompareData(
            request_id=uuid.uuid4().hex,
            generated_at=datetime.now(timezone.utc),
            left_root=str(left_root),
            right_root=str(right_root),
            left_file_count=left_inventory.file_count,
            right_file_count=right_inventory.file_count,
            applied_exclude_names=sorted(scan_options.effective_excluded_names),
            max_text_diff_bytes=policy['max_text_diff_bytes'],
            binary_extensions=policy['binary_extensions'],
            summary=classified.summary,
            items=classified.items,
            compare_time=compare_time,
        )

    def _validate_directory(self, label: str, path: str) -> None:
        """Check that a root exists and is a directory."""
        try:
            stat_result = os.stat(path)
        except OSError as e:
            code = error_code_for(e)
            if code == ErrorCode.INTERNAL_ERROR:
                code = ErrorCode.INVALID_INPUT
            raise OperationFailed(make_error(
                code,
                f"{label} path is not accessible: {path} ({e.strerror or e})",
                SOURCE_COMPARE,
                FailureStep.VALIDATE_INPUT,
            )) from e

        if not stat.S_ISDIR(stat_result.st_mode):
            raise OperationFailed(make_error(
                ErrorCode.INVALID_INPUT,
                f"{label} path is not a directory: {path}",
                SOURCE_COMPARE,
                FailureStep.VALIDATE_INPUT,
            ))

    def _scan_both(
        self,
        left_root: str,
        right_root: str,
        options: ScanOptions
    ) -> tuple[Inventory, Inventory]:
        """Scan both roots in parallel; both finish before this returns."""
        scanner = FolderScanner(options)

        with ThreadPoolExecutor(max_workers=2) as executor:
            left_future = executor.submit(scanner.scan, left_root)
            right_future = executor.submit(scanner.scan, right_root)
            futures = (('Left', left_root, left_future), ('Right', right_root, right_future))

            inventories = []
            for label, root, future in futures:
                try:
                    inventories.append(future.result())
                except (ScanError, OSError) as e:
                    raise OperationFailed(make_error(
                        error_code_for(e),
                        f"{label} directory scan failed under {root}: {e}",
                        SOURCE_COMPARE,
                        FailureStep.SCAN_DIRECTORY,
                    )) from e
                except Exception as e:
                    logging.exception(f"CompareService - Unexpected error scanning {root}")
                    raise OperationFailed(make_error(
                        ErrorCode.INTERNAL_ERROR,
                        f"{label} directory scan failed under {root}: {e}",
                        SOURCE_COMPARE,
                        FailureStep.SCAN_DIRECTORY,
                    )) from e

        return inventories[0], inventories[1]

    # -------------------------------------------------------------------------
    # File diff
    # -------------------------------------------------------------------------

    def file_diff(
        self,
        left_root: str,
        right_root: str,
        relative_path: str,
        show_all_context: bool = False
    ) -> FileDiffResponse:
        """Convenience wrapper around get_file_diff."""
        return self.get_file_diff(FileDiffRequest(
            left_root_path=left_root,
            right_root_path=right_root,
            relative_path=relative_path,
            show_all_context=show_all_context,
        ))

    def get_file_diff(self, request: FileDiffRequest) -> FileDiffResponse:
        """
        Diff one relative path under both roots.

        Oversized pairs yield kind TOO_LARGE and binary pairs kind BINARY,
        both without lines; the differ only runs for text.
        """
        try:
            data = self._get_file_diff(request)
            return FileDiffResponse(success=True, data=data)
        except OperationFailed as failure:
            self._log_failure(failure.error)
            return FileDiffResponse(success=False, error=failure.error)
        except Exception as e:
            logging.exception("CompareService - Unexpected error during file diff")
            return FileDiffResponse(success=False, error=make_error(
                ErrorCode.INTERNAL_ERROR,
                f"Unexpected error while creating file diff: {e}",
                SOURCE_FILE_DIFF,
                FailureStep.UNEXPECTED,
            ))

    def _get_file_diff(self, request: FileDiffRequest) -> FileDiffData:
        left_root = normalize_input_path(request.left_root_path)
        right_root = normalize_input_path(request.right_root_path)
        relative_path = self._normalize_relative_path(request.relative_path)

        if not left_root or not right_root:
            raise OperationFailed(make_error(
                ErrorCode.INVALID_INPUT,
                "Both left and right root paths are required.",
                SOURCE_FILE_DIFF,
                FailureStep.VALIDATE_INPUT,
            ))

        left_file = Path(left_root) / relative_path
        right_file = Path(right_root) / relative_path

        left_stat = self._stat_regular_file('Left', left_file)
        right_stat = self._stat_regular_file('Right', right_file)

        if left_stat.st_size > MAX_TEXT_DIFF_BYTES or right_stat.st_size > MAX_TEXT_DIFF_BYTES:
            logging.debug(f"CompareService - {relative_path} exceeds {MAX_TEXT_DIFF_BYTES} bytes")
            return FileDiffData(
                relative_path=relative_path,
                kind=DiffKind.TOO_LARGE,
                max_bytes=MAX_TEXT_DIFF_BYTES,
            )

        left_content = self._read('Left', left_file)
        right_content = self._read('Right', right_file)

        if left_content.is_binary or right_content.is_binary:
            return FileDiffData(
                relative_path=relative_path,
                kind=DiffKind.BINARY,
                max_bytes=MAX_TEXT_DIFF_BYTES,
            )

        engine = TextDiffEngine(self.text_options)
        lines = engine.compare(left_content.content, right_content.content)
        collapsed = engine.collapse_context(lines, show_all=request.show_all_context)

        return FileDiffData(
            relative_path=relative_path,
            kind=DiffKind.TEXT,
            max_bytes=MAX_TEXT_DIFF_BYTES,
            lines=lines,
            display_lines=collapsed.lines,
            has_collapsed=collapsed.has_collapsed,
            rows=engine.pair_rows(collapsed.lines),
            statistics=engine.statistics(lines),
            encoding_left=left_content.encoding,
            encoding_right=right_content.encoding,
        )

    def _normalize_relative_path(self, raw: Optional[str]) -> str:
        """Slash-normalize a relative path and reject ones leaving the root."""
        value = (raw or "").strip().replace('\\', '/')
        pure = PurePosixPath(value)

        if not value or pure.is_absolute() or '..' in pure.parts or os.path.isabs(value):
            raise OperationFailed(make_error(
                ErrorCode.INVALID_INPUT,
                f"Relative path is empty or escapes the compared roots: {raw!r}",
                SOURCE_FILE_DIFF,
                FailureStep.VALIDATE_INPUT,
            ))

        return pure.as_posix()

    def _stat_regular_file(self, label: str, path: Path) -> os.stat_result:
        """Stat a compared file, requiring a regular file."""
        try:
            stat_result = os.stat(path)
        except OSError as e:
            raise OperationFailed(make_error(
                error_code_for(e),
                f"{label} file is not accessible: {path} ({e.strerror or e})",
                SOURCE_FILE_DIFF,
                FailureStep.READ_FILE,
            )) from e

        if not stat.S_ISREG(stat_result.st_mode):
            raise OperationFailed(make_error(
                ErrorCode.INVALID_INPUT,
                f"{label} target is not a regular file: {path}",
                SOURCE_FILE_DIFF,
                FailureStep.READ_FILE,
            ))

        return stat_result

    def _read(self, label: str, path: Path) -> FileContent:
        try:
            return self.io_service.read_file(path)
        except OSError as e:
            raise OperationFailed(make_error(
                error_code_for(e),
                f"Failed to read {label.lower()} file {path}: {e.strerror or e}",
                SOURCE_FILE_DIFF,
                FailureStep.READ_FILE,
            )) from e

    def _log_failure(self, error: OperationError) -> None:
        if error.code == ErrorCode.INTERNAL_ERROR:
            logging.error(f"CompareService - {error}: {error.message}")
        else:
            logging.warning(f"CompareService - {error}: {error.message}")


_default_service = CompareService()


def run_compare(request: CompareRequest) -> CompareResponse:
    """Compare two directory roots with the default service."""
    return _default_service.run_compare(request)


def get_file_diff(request: FileDiffRequest) -> FileDiffResponse:
    """Diff one file pair with the default service."""
    return _default_service.get_file_diff(request)
