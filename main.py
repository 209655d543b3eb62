"""
Main entry point for the directory comparison command line tool.

This module handles:
- Command line argument parsing
- Logging configuration
- Settings loading
- Rendering compare and diff results as text or JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO

from dircompare.core.diff.text_diff import TextCompareOptions
from dircompare.core.folder.comparer import SORT_KEYS, filter_items, sort_items
from dircompare.core.models import (
    CompareData,
    CompareStatus,
    DiffKind,
    FileDiffData,
    OperationError,
)
from dircompare.services.compare_service import CompareService
from dircompare.services.settings import SettingsManager


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "dircompare"
APP_VERSION = "1.0.0"

EXIT_OK = 0
EXIT_FAILURE = 2

STATUS_LABELS = {
    CompareStatus.SAME: 'same',
    CompareStatus.DIFFERENT: 'different',
    CompareStatus.LEFT_ONLY: 'left only',
    CompareStatus.RIGHT_ONLY: 'right only',
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    command: str = ""
    left_path: str = ""
    right_path: str = ""
    relative_path: str = ""
    exclude_names: list[str] = field(default_factory=list)
    save_excludes: bool = False
    status: Optional[CompareStatus] = None
    search: str = ""
    sort_key: str = "relative_path"
    descending: bool = False
    show_all: bool = False
    side_by_side: bool = False
    as_json: bool = False
    config_file: Optional[str] = None
    log_level: Optional[str] = None
    log_file: Optional[str] = None


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, stream: Optional[TextIO] = None):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Console output goes to stderr so results on stdout stay parseable.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Reduce noise from encoding detection
    logging.getLogger('chardet').setLevel(logging.WARNING)

    return root_logger


# =============================================================================
# Command Line Parsing
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Compare two directory trees and diff the files that differ",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s compare left/ right/                 Compare two folders
  %(prog)s compare left/ right/ -x build        Also skip anything named build
  %(prog)s compare left/ right/ --status different --json
  %(prog)s diff left/ right/ src/app.py         Line diff of one file
        """
    )

    # Global options
    parser.add_argument(
        '-c', '--config',
        help='Settings file path'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Log level (default from settings, INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'{APP_NAME} {APP_VERSION}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    # compare
    compare_parser = subparsers.add_parser('compare', help='Compare two directories')
    compare_parser.add_argument('left', help='Left directory')
    compare_parser.add_argument('right', help='Right directory')
    compare_parser.add_argument(
        '-x', '--exclude',
        action='append',
        default=[],
        metavar='NAME',
        help='File or directory name to skip at any depth (repeatable)'
    )
    compare_parser.add_argument(
        '--save-excludes',
        action='store_true',
        help='Store the given --exclude names in the settings file'
    )
    compare_parser.add_argument(
        '--status',
        choices=[status.value for status in CompareStatus],
        help='Only list items with this status'
    )
    compare_parser.add_argument(
        '--search',
        default='',
        help='Only list items whose path contains this text'
    )
    compare_parser.add_argument(
        '--sort',
        choices=SORT_KEYS,
        default='relative_path',
        help='Sort key for the item list'
    )
    compare_parser.add_argument(
        '--desc',
        action='store_true',
        help='Sort descending'
    )
    compare_parser.add_argument('--json', action='store_true', help='Print JSON')

    # diff
    diff_parser = subparsers.add_parser('diff', help='Line diff of one file under both roots')
    diff_parser.add_argument('left', help='Left root directory')
    diff_parser.add_argument('right', help='Right root directory')
    diff_parser.add_argument('path', help='Path relative to both roots')
    diff_parser.add_argument(
        '--show-all',
        action='store_true',
        help='Do not collapse long unchanged runs'
    )
    diff_parser.add_argument(
        '--side-by-side',
        action='store_true',
        help='Print paired left/right rows'
    )
    diff_parser.add_argument('--json', action='store_true', help='Print JSON')

    parsed = parser.parse_args(args)

    result = CommandLineArgs()
    result.command = parsed.command
    result.left_path = parsed.left
    result.right_path = parsed.right
    result.as_json = parsed.json
    result.config_file = parsed.config
    result.log_level = parsed.log_level
    result.log_file = parsed.log_file

    if parsed.command == 'compare':
        result.exclude_names = list(parsed.exclude)
        result.save_excludes = parsed.save_excludes
        result.status = CompareStatus(parsed.status) if parsed.status else None
        result.search = parsed.search
        result.sort_key = parsed.sort
        result.descending = parsed.desc
    else:
        result.relative_path = parsed.path
        result.show_all = parsed.show_all
        result.side_by_side = parsed.side_by_side

    return result


# =============================================================================
# Rendering
# =============================================================================

def format_size(size: int) -> str:
    """Get human-readable file size."""
    if size < 0:
        return "-"
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ['KB', 'MB', 'GB', 'TB']:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} PB"


def render_compare(data: CompareData, args: CommandLineArgs, out: TextIO) -> None:
    """Print a compare result as a table."""
    items = filter_items(data.items, status=args.status, query=args.search)
    items = sort_items(items, key=args.sort_key, descending=args.descending)

    out.write(f"Left:  {data.left_root} ({data.left_file_count} files)\n")
    out.write(f"Right: {data.right_root} ({data.right_file_count} files)\n")
    out.write(f"Excluded names: {', '.join(data.applied_exclude_names)}\n\n")

    for item in items:
        hint = item.diff_kind_hint.value if item.diff_kind_hint else '-'
        out.write(
            f"{STATUS_LABELS[item.status]:<10}  {hint:<9}  "
            f"{format_size(item.size_left):>10}  {format_size(item.size_right):>10}  "
            f"{item.relative_path}\n"
        )

    out.write(f"\n{data.summary}\n")


def render_file_diff(data: FileDiffData, args: CommandLineArgs, out: TextIO) -> None:
    """Print a file diff as prefixed lines or side-by-side rows."""
    if data.kind == DiffKind.TOO_LARGE:
        out.write(f"{data.relative_path}: too large to diff (limit {data.max_bytes} bytes)\n")
        return
    if data.kind == DiffKind.BINARY:
        out.write(f"{data.relative_path}: binary file, content not compared\n")
        return

    out.write(f"--- left/{data.relative_path}\n")
    out.write(f"+++ right/{data.relative_path}\n")

    if args.side_by_side:
        width = 60
        for row in data.rows:
            marker = {'changed': '|', 'removed': '<', 'added': '>', 'context': ' '}[row.row_type]
            left = row.left_content[:width]
            right = row.right_content[:width]
            out.write(f"{left:<{width}} {marker} {right}\n")
    else:
        for line in data.display_lines:
            left_num = str(line.left_line_num) if line.left_line_num else ''
            right_num = str(line.right_line_num) if line.right_line_num else ''
            out.write(f"{left_num:>5} {right_num:>5} {line.prefix}{line.text}\n")
            if line.missing_newline:
                out.write("\\ No newline at end of file\n")

    if data.statistics:
        out.write(f"\n{data.statistics}\n")


def render_error(error: OperationError, out: TextIO) -> None:
    """Print a typed failure."""
    out.write(f"Error: {error.message}\n")
    out.write(f"{error}\n")


# =============================================================================
# Main Function
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Exit code (0 for success, 2 for a reported failure)
    """
    args = parse_arguments(argv)

    settings_manager = SettingsManager(Path(args.config_file) if args.config_file else None)
    settings = settings_manager.settings

    log_level = args.log_level or settings.logging.level
    log_file = args.log_file or settings.logging.log_file
    setup_logging(log_level, Path(log_file) if log_file else None)
    logging.debug(f"Starting {APP_NAME} v{APP_VERSION}")

    service = CompareService(text_options=TextCompareOptions(
        context_threshold=settings.comparison.context_threshold,
        context_keep=settings.comparison.context_keep,
    ))

    if args.command == 'compare':
        if args.save_excludes and args.exclude_names:
            settings_manager.add_exclude_names(args.exclude_names)

        exclude_names = list(settings.comparison.exclude_names) + args.exclude_names
        response = service.compare(args.left_path, args.right_path, exclude_names)
    else:
        show_all = args.show_all or settings.comparison.show_all_context
        response = service.file_diff(
            args.left_path, args.right_path, args.relative_path, show_all_context=show_all
        )

    if args.as_json:
        json.dump(response.to_dict(), sys.stdout, indent=2)
        sys.stdout.write("\n")
    elif not response.success:
        render_error(response.error, sys.stderr)
    elif args.command == 'compare':
        render_compare(response.data, args, sys.stdout)
    else:
        render_file_diff(response.data, args, sys.stdout)

    return EXIT_OK if response.success else EXIT_FAILURE


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
