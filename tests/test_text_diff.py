"""Tests for the text diff engine."""

from __future__ import annotations

import pytest

from dircompare.core.diff.text_diff import (
    TextCompareOptions,
    TextDiffEngine,
    diff_text,
    split_line_tokens,
    split_lines,
)
from dircompare.core.models import DiffLineType, FileDiffLine


def rebuild(lines, side):
    """Reassemble the exact text of one side of a diff."""
    if side == 'left':
        kinds = (DiffLineType.CONTEXT, DiffLineType.REMOVED)
    else:
        kinds = (DiffLineType.CONTEXT, DiffLineType.ADDED)
    return ''.join(
        line.text + ('' if line.missing_newline else '\n')
        for line in lines if line.line_type in kinds
    )


def context(count, start=1):
    return [
        FileDiffLine(DiffLineType.CONTEXT, f"line {n}", n, n)
        for n in range(start, start + count)
    ]


class TestSplitLines:
    """Tests for split_lines."""

    def test_trailing_newline_adds_no_empty_line(self):
        """Test that a final newline does not produce an extra line."""
        assert split_lines("a\nb\n") == ['a', 'b']
        assert split_lines("a\nb") == ['a', 'b']

    def test_empty_text(self):
        """Test that empty text has no lines."""
        assert split_lines("") == []

    def test_blank_lines_are_kept(self):
        """Test that interior and one trailing blank line survive."""
        assert split_lines("a\n\nb\n\n") == ['a', '', 'b', '']

    def test_carriage_return_stays_in_text(self):
        """Test that only LF terminates a line."""
        assert split_lines("a\r\nb\r\n") == ['a\r', 'b\r']


class TestTextDiffEngineCompare:
    """Tests for TextDiffEngine.compare."""

    def test_single_line_change(self):
        """Test the canonical one-line replacement."""
        lines = diff_text("a\nb\n", "a\nc\n")

        assert lines == [
            FileDiffLine(DiffLineType.CONTEXT, 'a', 1, 1),
            FileDiffLine(DiffLineType.REMOVED, 'b', 2, None),
            FileDiffLine(DiffLineType.ADDED, 'c', None, 2),
        ]

    def test_identical_texts_are_all_context(self):
        """Test that equal inputs give only context lines."""
        lines = diff_text("x\ny\nz\n", "x\ny\nz\n")

        assert all(line.line_type == DiffLineType.CONTEXT for line in lines)
        assert [(line.left_line_num, line.right_line_num) for line in lines] == [(1, 1), (2, 2), (3, 3)]

    def test_both_empty(self):
        """Test that two empty texts give no lines."""
        assert diff_text("", "") == []

    def test_empty_left_is_all_added(self):
        """Test an empty left side."""
        lines = diff_text("", "one\ntwo\n")

        assert [line.line_type for line in lines] == [DiffLineType.ADDED, DiffLineType.ADDED]
        assert [line.right_line_num for line in lines] == [1, 2]
        assert all(line.left_line_num is None for line in lines)

    def test_empty_right_is_all_removed(self):
        """Test an empty right side."""
        lines = diff_text("one\ntwo\n", "")

        assert [line.line_type for line in lines] == [DiffLineType.REMOVED, DiffLineType.REMOVED]
        assert [line.left_line_num for line in lines] == [1, 2]

    def test_line_numbers_are_independent_and_consecutive(self):
        """Test numbering across insertions and deletions."""
        lines = diff_text("a\nb\nc\nd\n", "a\nx\ny\nc\nd\ne\n")

        left_nums = [line.left_line_num for line in lines if line.left_line_num is not None]
        right_nums = [line.right_line_num for line in lines if line.right_line_num is not None]
        assert left_nums == [1, 2, 3, 4]
        assert right_nums == [1, 2, 3, 4, 5, 6]

    def test_removed_lines_precede_added_lines_in_a_change(self):
        """Test ordering inside a replaced block."""
        lines = diff_text("keep\nold1\nold2\nkeep2\n", "keep\nnew1\nnew2\nnew3\nkeep2\n")

        kinds = [line.line_type for line in lines]
        assert kinds == [
            DiffLineType.CONTEXT,
            DiffLineType.REMOVED, DiffLineType.REMOVED,
            DiffLineType.ADDED, DiffLineType.ADDED, DiffLineType.ADDED,
            DiffLineType.CONTEXT,
        ]

    @pytest.mark.parametrize('left,right', [
        ("a\nb\nc\n", "a\nc\n"),
        ("", "x\n"),
        ("1\n2\n3\n4\n5\n", "0\n2\n3\n5\n6\n"),
        ("same\n", "same"),
        ("a\r\nb\r\n", "a\nb\n"),
        ("a\nb\n", "a\nb"),
        ("a\nb", "a\nb\n\n"),
        ("\n", ""),
    ])
    def test_each_side_is_reconstructable(self, left, right):
        """Test that context+removed rebuilds left and context+added rebuilds right."""
        lines = diff_text(left, right)

        assert rebuild(lines, 'left') == left
        assert rebuild(lines, 'right') == right

    def test_crlf_lines_differ_from_lf_lines(self):
        """Test that line ending changes are reported."""
        lines = diff_text("a\r\n", "a\n")
        assert [line.line_type for line in lines] == [DiffLineType.REMOVED, DiffLineType.ADDED]

    def test_missing_final_newline_is_a_change(self):
        """Test that dropping the last newline changes the last line."""
        lines = diff_text("a\nb\n", "a\nb")

        assert lines == [
            FileDiffLine(DiffLineType.CONTEXT, 'a', 1, 1),
            FileDiffLine(DiffLineType.REMOVED, 'b', 2, None),
            FileDiffLine(DiffLineType.ADDED, 'b', None, 2, missing_newline=True),
        ]
        assert lines[2].to_dict() == {
            'type': 'added', 'text': 'b', 'right_line_number': 2, 'no_newline_at_end': True,
        }

    def test_shared_unterminated_last_line_is_context(self):
        """Test that two files both lacking a final newline match."""
        lines = diff_text("a\nb", "x\nb")

        assert lines[-1] == FileDiffLine(DiffLineType.CONTEXT, 'b', 2, 2, missing_newline=True)


class TestSplitLineTokens:
    """Tests for split_line_tokens."""

    @pytest.mark.parametrize('text,tokens', [
        ("", []),
        ("\n", ['\n']),
        ("a\nb\n", ['a\n', 'b\n']),
        ("a\nb", ['a\n', 'b']),
        ("a\n\n", ['a\n', '\n']),
    ])
    def test_tokens_keep_terminators(self, text, tokens):
        """Test that tokens join back to the original text."""
        assert split_line_tokens(text) == tokens
        assert ''.join(tokens) == text


class TestPairRows:
    """Tests for TextDiffEngine.pair_rows."""

    def test_change_pairs_removed_with_added(self):
        """Test that a replacement becomes a changed row."""
        engine = TextDiffEngine()
        rows = engine.pair_rows(engine.compare("a\nb\n", "a\nc\n"))

        assert [row.row_type for row in rows] == ['context', 'changed']
        assert rows[1].left_content == 'b'
        assert rows[1].right_content == 'c'

    def test_uneven_runs_leave_one_side_empty(self):
        """Test that surplus lines of the longer run stand alone."""
        engine = TextDiffEngine()
        rows = engine.pair_rows(engine.compare("x\nold\nz\n", "x\nnew1\nnew2\nz\n"))

        assert [row.row_type for row in rows] == ['context', 'changed', 'added', 'context']
        assert rows[2].left_line is None
        assert rows[2].right_content == 'new2'

    def test_pure_removal(self):
        """Test removed rows with no right side."""
        engine = TextDiffEngine()
        rows = engine.pair_rows(engine.compare("a\nb\nc\n", "a\nc\n"))

        assert [row.row_type for row in rows] == ['context', 'removed', 'context']
        assert rows[1].right_line is None

    def test_row_to_dict(self):
        """Test the wire form of a row."""
        engine = TextDiffEngine()
        row = engine.pair_rows(engine.compare("b\n", ""))[0]

        assert row.to_dict() == {
            'type': 'removed',
            'left': {'type': 'removed', 'text': 'b', 'left_line_number': 1},
            'right': None,
        }


class TestCollapseContext:
    """Tests for TextDiffEngine.collapse_context."""

    def test_short_runs_are_kept(self):
        """Test that runs at the threshold are not collapsed."""
        lines = context(12)

        result = TextDiffEngine().collapse_context(lines)

        assert result.lines == lines
        assert not result.has_collapsed

    def test_long_run_keeps_head_and_tail(self):
        """Test a 13-line run becoming 4 + placeholder + 4."""
        lines = context(13)

        result = TextDiffEngine().collapse_context(lines)

        assert result.has_collapsed
        assert len(result.lines) == 9
        assert result.lines[:4] == lines[:4]
        assert result.lines[5:] == lines[-4:]
        placeholder = result.lines[4]
        assert placeholder.is_placeholder
        assert placeholder.text == "... 5 context lines hidden ..."

    def test_changes_are_never_collapsed(self):
        """Test that changed lines between long runs survive."""
        change = [
            FileDiffLine(DiffLineType.REMOVED, 'old', 21, None),
            FileDiffLine(DiffLineType.ADDED, 'new', None, 21),
        ]
        lines = context(20) + change + context(20, start=22)

        result = TextDiffEngine().collapse_context(lines)

        assert [line for line in result.lines if line.line_type != DiffLineType.CONTEXT] == change
        assert sum(1 for line in result.lines if line.is_placeholder) == 2

    def test_expand_restores_original(self):
        """Test that expanding placeholders gives the full sequence back."""
        lines = context(30) + [FileDiffLine(DiffLineType.ADDED, 'x', None, 31)] + context(15, start=31)

        result = TextDiffEngine().collapse_context(lines)

        assert result.expand() == lines

    def test_show_all_disables_collapsing(self):
        """Test the show-all switch."""
        lines = context(40)

        result = TextDiffEngine().collapse_context(lines, show_all=True)

        assert result.lines == lines
        assert not result.has_collapsed

    def test_custom_options(self):
        """Test a smaller threshold and keep count."""
        engine = TextDiffEngine(TextCompareOptions(context_threshold=3, context_keep=1))

        result = engine.collapse_context(context(5))

        assert [line.text for line in result.lines] == [
            'line 1', '... 3 context lines hidden ...', 'line 5'
        ]

    def test_keep_overlapping_the_run_leaves_it_whole(self):
        """Test that head and tail never overlap when keep exceeds half the run."""
        engine = TextDiffEngine(TextCompareOptions(context_threshold=12, context_keep=7))
        lines = context(13)

        result = engine.collapse_context(lines)

        assert result.lines == lines
        assert not result.has_collapsed

    def test_large_keep_still_hides_longer_runs(self):
        """Test a run longer than twice the keep count with a large keep."""
        engine = TextDiffEngine(TextCompareOptions(context_threshold=12, context_keep=7))
        lines = context(20)

        result = engine.collapse_context(lines)

        assert len(result.lines) == 15
        assert result.lines[7].text == "... 6 context lines hidden ..."
        assert result.expand() == lines

    def test_negative_keep_hides_the_whole_run(self):
        """Test that a negative keep count is treated as zero."""
        engine = TextDiffEngine(TextCompareOptions(context_threshold=3, context_keep=-2))
        lines = context(5)

        result = engine.collapse_context(lines)

        assert [line.text for line in result.lines] == ['... 5 context lines hidden ...']
        assert result.expand() == lines


class TestStatistics:
    """Tests for TextDiffEngine.statistics."""

    def test_counts(self):
        """Test line counts and similarity."""
        engine = TextDiffEngine()
        stats = engine.statistics(engine.compare("a\nb\nc\nd\n", "a\nB\nc\nd\ne\n"))

        assert (stats.added_lines, stats.removed_lines, stats.unchanged_lines) == (2, 1, 3)
        assert stats.total_lines_left == 4
        assert stats.total_lines_right == 5
        assert stats.similarity_ratio == pytest.approx(3 / 5)
        assert str(stats) == "+2 -1 =3"

    def test_empty_is_fully_similar(self):
        """Test that no lines count as identical."""
        assert TextDiffEngine().statistics([]).similarity_ratio == 1.0
