"""
Text file diff engine.

Provides line-by-line comparison with:
- LCS-style alignment of line sequences (difflib)
- Independent 1-based left/right line numbering
- Side-by-side row pairing of removed/added runs
- Collapsing of long unchanged runs for display
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Optional, Sequence

from dircompare.core.models import (
    CollapsedLines,
    DiffLineType,
    DiffRow,
    DiffStatistics,
    FileDiffLine,
)


CONTEXT_COLLAPSE_THRESHOLD = 12
CONTEXT_KEEP_LINES = 4


def split_lines(text: str) -> list[str]:
    """
    Split text on newlines without a spurious trailing empty line.

    Only '\\n' terminates a line; a '\\r' before it stays in the text.
    """
    return [token[:-1] if token.endswith('\n') else token
            for token in split_line_tokens(text)]


def split_line_tokens(text: str) -> list[str]:
    """
    Split text into lines that keep their '\\n' terminator.

    Only the last token can lack a terminator, so a missing final newline
    stays visible to the comparison.
    """
    if not text:
        return []
    tokens = [line + '\n' for line in text.split('\n')]
    last = tokens.pop()
    if last != '\n':
        tokens.append(last[:-1])
    return tokens


def _diff_line(
    line_type: DiffLineType,
    token: str,
    left_line_num: Optional[int] = None,
    right_line_num: Optional[int] = None
) -> FileDiffLine:
    has_newline = token.endswith('\n')
    return FileDiffLine(
        line_type=line_type,
        text=token[:-1] if has_newline else token,
        left_line_num=left_line_num,
        right_line_num=right_line_num,
        missing_newline=not has_newline,
    )


@dataclass
class TextCompareOptions:
    """Options for text comparison and display."""
    context_threshold: int = CONTEXT_COLLAPSE_THRESHOLD
    context_keep: int = CONTEXT_KEEP_LINES


class TextDiffEngine:
    """
    Engine for comparing decoded text.

    The edit script comes from difflib.SequenceMatcher over whole lines,
    terminators included. Within a changed region all removed lines
    precede all added lines, which the row pairing relies on.
    """

    def __init__(self, options: Optional[TextCompareOptions] = None):
        self.options = options or TextCompareOptions()

    def compare(self, left_text: str, right_text: str) -> list[FileDiffLine]:
        """
        Compare two text bodies.

        Args:
            left_text: Content of the left/original file
            right_text: Content of the right/modified file

        Returns:
            Annotated lines in edit-script order
        """
        return self.compare_lines(split_line_tokens(left_text), split_line_tokens(right_text))

    def compare_lines(
        self,
        left: Sequence[str],
        right: Sequence[str]
    ) -> list[FileDiffLine]:
        """Compare two sequences of line tokens from split_line_tokens."""
        matcher = difflib.SequenceMatcher(None, left, right, autojunk=False)

        diff_lines: list[FileDiffLine] = []
        left_num = 1
        right_num = 1

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == 'equal':
                for token in left[i1:i2]:
                    diff_lines.append(_diff_line(
                        DiffLineType.CONTEXT, token, left_num, right_num
                    ))
                    left_num += 1
                    right_num += 1
                continue

            # 'replace' is a delete followed by an insert
            if tag in ('delete', 'replace'):
                for token in left[i1:i2]:
                    diff_lines.append(_diff_line(
                        DiffLineType.REMOVED, token, left_line_num=left_num
                    ))
                    left_num += 1

            if tag in ('insert', 'replace'):
                for token in right[j1:j2]:
                    diff_lines.append(_diff_line(
                        DiffLineType.ADDED, token, right_line_num=right_num
                    ))
                    right_num += 1

        return diff_lines

    def pair_rows(self, lines: Sequence[FileDiffLine]) -> list[DiffRow]:
        """
        Group diff lines into side-by-side rows.

        A removed run directly followed by an added run is paired
        position by position; the surplus of the longer run gets rows
        with one empty side.
        """
        rows: list[DiffRow] = []
        index = 0
        count = len(lines)

        while index < count:
            line = lines[index]

            if line.line_type == DiffLineType.CONTEXT:
                rows.append(DiffRow(left_line=line, right_line=line))
                index += 1
                continue

            removed_run: list[FileDiffLine] = []
            while index < count and lines[index].line_type == DiffLineType.REMOVED:
                removed_run.append(lines[index])
                index += 1

            added_run: list[FileDiffLine] = []
            while index < count and lines[index].line_type == DiffLineType.ADDED:
                added_run.append(lines[index])
                index += 1

            for run_index in range(max(len(removed_run), len(added_run))):
                rows.append(DiffRow(
                    left_line=removed_run[run_index] if run_index < len(removed_run) else None,
                    right_line=added_run[run_index] if run_index < len(added_run) else None,
                ))

        return rows

    def collapse_context(
        self,
        lines: Sequence[FileDiffLine],
        show_all: bool = False
    ) -> CollapsedLines:
        """
        Fold long unchanged runs for display.

        A context run longer than the threshold keeps its first and last
        `context_keep` lines around a placeholder stating the hidden count.
        Runs too short to hide at least one line are left alone.
        """
        if show_all:
            return CollapsedLines(lines=list(lines))

        threshold = self.options.context_threshold
        keep = max(self.options.context_keep, 0)

        collapsed: list[FileDiffLine] = []
        hidden: dict[int, list[FileDiffLine]] = {}
        index = 0
        count = len(lines)

        while index < count:
            if lines[index].line_type != DiffLineType.CONTEXT:
                collapsed.append(lines[index])
                index += 1
                continue

            end = index
            while end < count and lines[end].line_type == DiffLineType.CONTEXT:
                end += 1

            run_length = end - index
            if run_length <= max(threshold, 2 * keep):
                collapsed.extend(lines[index:end])
            else:
                collapsed.extend(lines[index:index + keep])
                hidden[len(collapsed)] = list(lines[index + keep:end - keep])
                collapsed.append(FileDiffLine(
                    line_type=DiffLineType.CONTEXT,
                    text=f"... {run_length - 2 * keep} context lines hidden ...",
                ))
                collapsed.extend(lines[end - keep:end])
            index = end

        return CollapsedLines(lines=collapsed, has_collapsed=bool(hidden), hidden=hidden)

    def statistics(self, lines: Sequence[FileDiffLine]) -> DiffStatistics:
        """Count line kinds of a diff."""
        stats = DiffStatistics()
        for line in lines:
            if line.line_type == DiffLineType.CONTEXT:
                stats.unchanged_lines += 1
            elif line.line_type == DiffLineType.ADDED:
                stats.added_lines += 1
            elif line.line_type == DiffLineType.REMOVED:
                stats.removed_lines += 1
        stats.total_lines_left = stats.unchanged_lines + stats.removed_lines
        stats.total_lines_right = stats.unchanged_lines + stats.added_lines
        return stats


def diff_text(left_text: str, right_text: str) -> list[FileDiffLine]:
    """Line diff of two text bodies with default options."""
    return TextDiffEngine().compare(left_text, right_text)
