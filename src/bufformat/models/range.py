"""
Document positions, ranges and editor selections.

Lines are 1-indexed and columns are 0-indexed, matching what editors report
for the cursor. A Range is half-open on columns: the end column is the first
column not included.
"""

import re
from dataclasses import dataclass
from typing import Sequence, Tuple

_RANGE_PATTERN = re.compile(r"^\s*(\d+)(?::(\d+))?\s*-\s*(\d+)(?::(\d+))?\s*$")


@dataclass(frozen=True, order=True)
class Position:
    """A (line, column) location; ordered by line, then column."""
    line: int
    col: int = 0

    def __post_init__(self):
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")
        if self.col < 0:
            raise ValueError(f"col must be >= 0, got {self.col}")

    def to_tuple(self) -> Tuple[int, int]:
        return (self.line, self.col)


@dataclass(frozen=True)
class Range:
    """
    A span of a document between two positions.

    Attributes:
        start: First position in the span.
        end: Position just past the last column in the span.

    Example:
        >>> r = Range.from_tuples((1, 2), (3, 5))
        >>> r.line_span
        (1, 3)
    """
    start: Position
    end: Position

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(
                f"range end {self.end.to_tuple()} precedes start {self.start.to_tuple()}"
            )

    @classmethod
    def from_tuples(cls, start: Sequence[int], end: Sequence[int]) -> "Range":
        return cls(Position(start[0], start[1]), Position(end[0], end[1]))

    @classmethod
    def normalized(cls, a: Position, b: Position) -> "Range":
        """Build a range from two positions given in either order."""
        if b < a:
            a, b = b, a
        return cls(a, b)

    @classmethod
    def parse(cls, text: str) -> "Range":
        """
        Parse a range written as ``LINE[:COL]-LINE[:COL]``.

        Missing columns default to 0. Positions given backwards are swapped.

        Raises:
            ValueError: If the text is not a valid range.
        """
        match = _RANGE_PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid range '{text}', expected LINE[:COL]-LINE[:COL]")
        start_line, start_col, end_line, end_col = match.groups()
        return cls.normalized(
            Position(int(start_line), int(start_col or 0)),
            Position(int(end_line), int(end_col or 0)),
        )

    @property
    def line_span(self) -> Tuple[int, int]:
        """Inclusive (first line, last line), 1-indexed."""
        return (self.start.line, self.end.line)

    def contains_line(self, line: int) -> bool:
        return self.start.line <= line <= self.end.line

    def to_dict(self) -> dict:
        return {"start": list(self.start.to_tuple()), "end": list(self.end.to_tuple())}


@dataclass(frozen=True)
class Selection:
    """
    An active visual selection as reported by the editor.

    Attributes:
        anchor: Where the selection was started.
        cursor: Where the cursor currently is (may precede the anchor).
        mode: "v" for characterwise, "V" for linewise selection.
    """
    anchor: Position
    cursor: Position
    mode: str = "v"

    def __post_init__(self):
        if self.mode not in ("v", "V"):
            raise ValueError(f"Unsupported selection mode: {self.mode!r}")
