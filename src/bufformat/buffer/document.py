"""
Live document model.

The pipeline only ever talks to a document through the Document protocol: it
reads the text and change marker at the start of a run and applies one batch
of line edits at the end. TextDocument is the in-memory implementation used
by the CLI and the tests; an editor integration supplies its own.

Text is stored the way editors store it: a list of lines without their
terminators, plus a flag recording whether the last line ends in a newline.
"""

import itertools
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..models.range import Position

logger = logging.getLogger(__name__)

_doc_ids = itertools.count(1)


def split_text(text: str) -> Tuple[List[str], bool]:
    """
    Split text into lines and an end-of-line flag.

    Returns:
        (lines, eol) where ``lines`` always holds at least one entry and
        ``eol`` says whether the text ended with a newline.

    Example:
        >>> split_text("a\\nb\\n")
        (['a', 'b'], True)
    """
    eol = text.endswith("\n")
    body = text[:-1] if eol else text
    return body.split("\n"), eol


def join_lines(lines: Sequence[str], eol: bool) -> str:
    """Inverse of split_text()."""
    text = "\n".join(lines)
    return text + "\n" if eol else text


@dataclass(frozen=True)
class LineEdit:
    """
    Replace lines ``[start, end)`` (0-indexed) with ``lines``.

    ``start == end`` is a pure insertion before line ``start``; an empty
    ``lines`` is a pure deletion.
    """
    start: int
    end: int
    lines: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid line edit span [{self.start}, {self.end})")

    @property
    def line_delta(self) -> int:
        return len(self.lines) - (self.end - self.start)


@runtime_checkable
class Document(Protocol):
    """Interface the pipeline needs from a live document."""

    @property
    def doc_id(self) -> int:
        ...

    @property
    def path(self) -> str:
        ...

    @property
    def changedtick(self) -> int:
        ...

    def get_text(self) -> str:
        ...

    def is_valid(self) -> bool:
        ...

    def apply_edits(self, edits: Sequence[LineEdit], eol: Optional[bool] = None) -> bool:
        ...


class TextDocument:
    """
    In-memory document with an editor-like change marker and cursor.

    Every mutation bumps ``changedtick`` exactly once and marks the document
    modified. apply_edits() applies a whole batch as one change so observers
    never see intermediate states.

    Example:
        >>> doc = TextDocument("x = 1\\n", path="/tmp/a.py")
        >>> doc.apply_edits([LineEdit(0, 1, ("x = 2",))])
        True
        >>> doc.get_text()
        'x = 2\\n'
    """

    def __init__(self, text: str = "", path: str = "", doc_id: Optional[int] = None):
        self._doc_id = doc_id if doc_id is not None else next(_doc_ids)
        self._path = os.path.abspath(path) if path else ""
        self._lines, self._eol = split_text(text)
        self._changedtick = 1
        self._modified = False
        self._valid = True
        self.cursor = Position(1, 0)

    @classmethod
    def from_file(cls, path: str, encoding: str = "utf-8") -> "TextDocument":
        """Load a document from disk."""
        text = Path(path).read_text(encoding=encoding)
        return cls(text, path=path)

    # ------------------------------------------------------------------
    # Protocol surface
    # ------------------------------------------------------------------

    @property
    def doc_id(self) -> int:
        return self._doc_id

    @property
    def path(self) -> str:
        return self._path

    @property
    def changedtick(self) -> int:
        return self._changedtick

    @property
    def modified(self) -> bool:
        """Whether the document changed since it was loaded or saved."""
        return self._modified

    @property
    def eol(self) -> bool:
        return self._eol

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_text(self) -> str:
        return join_lines(self._lines, self._eol)

    def get_lines(self, start: int = 0, end: Optional[int] = None) -> List[str]:
        """Return lines ``[start, end)``, 0-indexed."""
        return list(self._lines[start:end])

    def is_valid(self) -> bool:
        return self._valid

    def close(self) -> None:
        """Invalidate the document, as when an editor buffer is deleted."""
        self._valid = False

    def set_text(self, text: str) -> None:
        """Replace the whole content, as a user edit would."""
        lines, eol = split_text(text)
        if lines == self._lines and eol == self._eol:
            return
        self._lines, self._eol = lines, eol
        self._clamp_cursor()
        self._touch()

    def apply_edits(self, edits: Sequence[LineEdit], eol: Optional[bool] = None) -> bool:
        """
        Apply a batch of non-overlapping line edits as one change.

        Args:
            edits: Edits addressed against the current line indices.
            eol: New end-of-line flag, or None to leave it unchanged.

        Returns:
            True if the document changed, False for an empty batch.

        Raises:
            ValueError: If edits overlap or fall outside the document.
        """
        ordered = sorted(edits, key=lambda e: (e.start, e.end))
        previous_end = 0
        for edit in ordered:
            if edit.start < previous_end:
                raise ValueError(f"overlapping line edits at line {edit.start}")
            if edit.end > len(self._lines):
                raise ValueError(
                    f"line edit [{edit.start}, {edit.end}) outside document of "
                    f"{len(self._lines)} lines"
                )
            previous_end = edit.end

        eol_changed = eol is not None and eol != self._eol
        if not ordered and not eol_changed:
            return False

        self.cursor = self._shift_cursor(ordered)
        lines = self._lines
        for edit in reversed(ordered):
            lines[edit.start:edit.end] = list(edit.lines)
        if not lines:
            lines.append("")
        if eol_changed:
            self._eol = eol
        self._clamp_cursor()
        self._touch()
        logger.debug(
            f"Applied {len(ordered)} line edit(s) to document {self._doc_id} "
            f"(changedtick={self._changedtick})"
        )
        return True

    def save(self, path: Optional[str] = None, encoding: str = "utf-8") -> str:
        """Write the document to disk and clear the modified flag."""
        target = path or self._path
        if not target:
            raise ValueError("document has no path to save to")
        Path(target).write_text(self.get_text(), encoding=encoding)
        self._modified = False
        return target

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        self._changedtick += 1
        self._modified = True

    def _shift_cursor(self, ordered: Sequence[LineEdit]) -> Position:
        row = self.cursor.line - 1
        shift = 0
        for edit in ordered:
            if edit.end <= row and not (edit.start == edit.end == row):
                shift += edit.line_delta
            elif edit.start == edit.end == row:
                # Insertion right before the cursor line pushes it down
                shift += len(edit.lines)
            elif edit.start <= row < edit.end:
                offset = min(row - edit.start, max(len(edit.lines) - 1, 0))
                return Position(edit.start + shift + offset + 1, self.cursor.col)
        return Position(row + shift + 1, self.cursor.col)

    def _clamp_cursor(self) -> None:
        line = min(self.cursor.line, len(self._lines))
        col = min(self.cursor.col, len(self._lines[line - 1]))
        self.cursor = Position(line, col)

    def __repr__(self) -> str:
        return f"TextDocument(id={self._doc_id}, path={self._path!r}, lines={len(self._lines)})"
