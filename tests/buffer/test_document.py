"""Tests for the in-memory document model."""

import pytest

from bufformat.buffer.document import (
    Document,
    LineEdit,
    TextDocument,
    join_lines,
    split_text,
)
from bufformat.models.range import Position


@pytest.mark.unit
class TestSplitText:
    """Tests for line splitting."""

    @pytest.mark.parametrize("text,expected", [
        ("", ([""], False)),
        ("\n", ([""], True)),
        ("a", (["a"], False)),
        ("a\nb\n", (["a", "b"], True)),
        ("a\n\n", (["a", ""], True)),
    ])
    def test_split(self, text, expected):
        assert split_text(text) == expected
        assert join_lines(*split_text(text)) == text


@pytest.mark.unit
class TestTextDocument:
    """Tests for TextDocument."""

    def test_satisfies_protocol(self):
        assert isinstance(TextDocument("x"), Document)

    def test_ids_are_unique(self):
        assert TextDocument().doc_id != TextDocument().doc_id

    def test_set_text_bumps_tick(self):
        doc = TextDocument("a\n")
        tick = doc.changedtick
        doc.set_text("b\n")
        assert doc.changedtick == tick + 1
        assert doc.modified is True

    def test_set_same_text_is_noop(self):
        doc = TextDocument("a\n")
        tick = doc.changedtick
        doc.set_text("a\n")
        assert doc.changedtick == tick
        assert doc.modified is False

    def test_apply_edits_is_one_change(self):
        doc = TextDocument("a\nb\nc\nd\n")
        tick = doc.changedtick
        changed = doc.apply_edits([LineEdit(0, 1, ("A",)), LineEdit(2, 3, ("C", "C2"))])
        assert changed is True
        assert doc.get_text() == "A\nb\nC\nC2\nd\n"
        assert doc.changedtick == tick + 1

    def test_empty_batch_is_noop(self):
        doc = TextDocument("a\n")
        tick = doc.changedtick
        assert doc.apply_edits([]) is False
        assert doc.changedtick == tick

    def test_eol_only_change(self):
        doc = TextDocument("a\nb")
        assert doc.apply_edits([], eol=True) is True
        assert doc.get_text() == "a\nb\n"

    def test_overlapping_edits_rejected(self):
        doc = TextDocument("a\nb\nc\n")
        with pytest.raises(ValueError):
            doc.apply_edits([LineEdit(0, 2, ()), LineEdit(1, 3, ())])

    def test_out_of_bounds_edit_rejected(self):
        doc = TextDocument("a\n")
        with pytest.raises(ValueError):
            doc.apply_edits([LineEdit(0, 5, ())])

    def test_deleting_everything_leaves_one_line(self):
        doc = TextDocument("a\nb")
        doc.apply_edits([LineEdit(0, 2, ())])
        assert doc.line_count == 1
        assert doc.get_text() == ""

    def test_cursor_shifts_with_edits_above(self):
        doc = TextDocument("a\nb\nc\nd\n")
        doc.cursor = Position(4, 1)
        doc.apply_edits([LineEdit(0, 1, ("x", "y", "z"))])
        assert doc.cursor == Position(6, 1)

    def test_cursor_stays_for_edits_below(self):
        doc = TextDocument("a\nb\nc\nd\n")
        doc.cursor = Position(2, 0)
        doc.apply_edits([LineEdit(3, 4, ("D",))])
        assert doc.cursor == Position(2, 0)

    def test_close_invalidates(self):
        doc = TextDocument("a")
        doc.close()
        assert doc.is_valid() is False

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("one\ntwo\n", encoding="utf-8")
        doc = TextDocument.from_file(str(path))
        doc.apply_edits([LineEdit(1, 2, ("TWO",))])
        doc.save()
        assert path.read_text(encoding="utf-8") == "one\nTWO\n"
        assert doc.modified is False

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            TextDocument("x").save()
