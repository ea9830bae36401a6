"""Tests for the diff & apply engine."""

import pytest

from bufformat.buffer.document import LineEdit, TextDocument
from bufformat.core.errors import ConcurrentModificationError, ErrorCode
from bufformat.models.range import Range
from bufformat.runner.apply import (
    apply_format,
    check_unmodified,
    compute_edits,
    take_snapshot,
)


@pytest.mark.unit
class TestComputeEdits:
    """Tests for compute_edits()."""

    def test_identical_text(self):
        assert compute_edits("a\nb\n", "a\nb\n").is_empty

    def test_single_line_change(self):
        plan = compute_edits("a\nb\nc\n", "a\nB\nc\n")
        assert plan.edits == [LineEdit(1, 2, ("B",))]
        assert plan.eol is None

    def test_insertion_and_deletion(self):
        plan = compute_edits("a\nb\nc\n", "a\nc\nd\n")
        doc = TextDocument("a\nb\nc\n")
        doc.apply_edits(plan.edits, plan.eol)
        assert doc.get_text() == "a\nc\nd\n"

    def test_trailing_newline_only(self):
        plan = compute_edits("a\nb", "a\nb\n")
        assert plan.edits == []
        assert plan.eol is True

    def test_range_drops_hunks_outside(self):
        old = "a\nb\nc\nd\ne\n"
        new = "A\nb\nC\nd\nE\n"
        plan = compute_edits(old, new, Range.from_tuples((2, 0), (4, 0)))
        assert plan.edits == [LineEdit(2, 3, ("C",))]
        assert plan.dropped == 2

    def test_range_insertion_before_matching_line(self):
        # The inserted blank line equals the line after the range
        plan = compute_edits("a\nb\n\nc\n", "a\nb\n\n\nc\n", Range.from_tuples((2, 0), (2, 1)))
        assert plan.dropped == 0
        doc = TextDocument("a\nb\n\nc\n")
        doc.apply_edits(plan.edits, plan.eol)
        assert doc.get_text() == "a\nb\n\n\nc\n"

    def test_range_replaced_by_more_lines(self):
        plan = compute_edits("a\nb\nc\nd\n", "a\nx\ny\nz\nd\n", Range.from_tuples((2, 0), (3, 1)))
        doc = TextDocument("a\nb\nc\nd\n")
        doc.apply_edits(plan.edits, plan.eol)
        assert doc.get_text() == "a\nx\ny\nz\nd\n"

    def test_range_drops_eol_change_before_last_line(self):
        plan = compute_edits("a\nb\nc", "a\nb\nc\n", Range.from_tuples((1, 0), (2, 0)))
        assert plan.is_empty

    def test_range_keeps_eol_change_on_last_line(self):
        plan = compute_edits("a\nb\nc", "a\nb\nc\n", Range.from_tuples((2, 0), (3, 1)))
        assert plan.eol is True


@pytest.mark.unit
class TestApplyFormat:
    """Tests for apply_format()."""

    def test_no_op_leaves_document_untouched(self):
        doc = TextDocument("x = 1\n")
        snapshot = take_snapshot(doc)
        tick = doc.changedtick
        assert apply_format(doc, snapshot, "x = 1\n") is False
        assert doc.changedtick == tick
        assert doc.modified is False

    def test_applies_minimal_edits(self):
        doc = TextDocument("keep\nfix  \nkeep\n")
        snapshot = take_snapshot(doc)
        assert apply_format(doc, snapshot, "keep\nfix\nkeep\n") is True
        assert doc.get_text() == "keep\nfix\nkeep\n"

    def test_trailing_newline_only_edit(self):
        doc = TextDocument("a\nb")
        snapshot = take_snapshot(doc)
        assert apply_format(doc, snapshot, "a\nb\n") is True
        assert doc.get_text() == "a\nb\n"
        assert doc.line_count == 2

    @pytest.mark.resilience
    def test_concurrent_modification_keeps_user_edit(self):
        doc = TextDocument("a\nb\n")
        snapshot = take_snapshot(doc)
        doc.set_text("a\nb\nuser typed\n")
        with pytest.raises(ConcurrentModificationError) as exc_info:
            apply_format(doc, snapshot, "A\nB\n")
        assert exc_info.value.code is ErrorCode.CONCURRENT_MODIFICATION
        assert doc.get_text() == "a\nb\nuser typed\n"

    @pytest.mark.resilience
    def test_tick_bump_with_same_content_is_accepted(self):
        doc = TextDocument("a\n")
        snapshot = take_snapshot(doc)
        doc.set_text("b\n")
        doc.set_text("a\n")
        assert check_unmodified(doc, snapshot) == "a\n"
        assert apply_format(doc, snapshot, "A\n") is True

    @pytest.mark.resilience
    def test_deleted_document(self):
        doc = TextDocument("a\n")
        snapshot = take_snapshot(doc)
        doc.close()
        with pytest.raises(ConcurrentModificationError):
            apply_format(doc, snapshot, "A\n")
