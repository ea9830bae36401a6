"""
Context Builder.

Produces the immutable ExecutionContext a formatter is resolved against, and
normalizes an editor selection into a Range.
"""

import os
import random
from typing import Optional, Sequence

from ..buffer.document import Document
from ..models.formatter import FormatterSpec
from ..models.pipeline import ExecutionContext
from ..models.range import Position, Range, Selection

TEMP_FILE_PREFIX = ".bufformat"


def temp_file_path(dirname: str, basename: str) -> str:
    """Path of the scratch file a non-stdin formatter operates on."""
    token = random.randint(1000000, 9999999)
    return os.path.join(dirname, f"{TEMP_FILE_PREFIX}.{token}.{basename or 'buffer'}")


def build_context(
    document: Document,
    spec: Optional[FormatterSpec] = None,
    range: Optional[Range] = None,
) -> ExecutionContext:
    """
    Build the execution context for one formatter invocation.

    Nothing is written to disk here. For formatters that do not read stdin
    the context's ``filename`` names the temp file the executor will create,
    and ``original_filename`` keeps the buffer's own path.

    Args:
        document: The document being formatted.
        spec: Formatter the context is for, if any.
        range: Optional range being formatted.

    Returns:
        A frozen ExecutionContext.
    """
    filename = os.path.abspath(document.path) if document.path else ""
    dirname = os.path.dirname(filename) if filename else os.getcwd()

    if spec is not None and not spec.stdin:
        tmp = temp_file_path(dirname, os.path.basename(filename))
        return ExecutionContext(
            document_id=document.doc_id,
            filename=tmp,
            dirname=dirname,
            range=range,
            original_filename=filename,
        )

    return ExecutionContext(
        document_id=document.doc_id,
        filename=filename,
        dirname=dirname,
        range=range,
        original_filename=filename,
    )


def range_from_selection(selection: Selection, lines: Sequence[str]) -> Range:
    """
    Normalize a visual selection into a Range.

    A selection made backwards is swapped so the range start always precedes
    the end. Linewise selections cover whole lines: column 0 of the first
    line through the length of the last.

    Args:
        selection: The editor's active selection.
        lines: Document lines, used to find the length of the last line.

    Example:
        >>> sel = Selection(Position(3, 5), Position(1, 2))
        >>> range_from_selection(sel, [])
        Range(start=Position(line=1, col=2), end=Position(line=3, col=5))
    """
    start_row, start_col = selection.anchor.line, selection.anchor.col
    end_row, end_col = selection.cursor.line, selection.cursor.col

    if start_row == end_row and end_col < start_col:
        start_col, end_col = end_col, start_col
    elif end_row < start_row:
        start_row, end_row = end_row, start_row
        start_col, end_col = end_col, start_col

    if selection.mode == "V":
        start_col = 0
        end_col = len(lines[end_row - 1]) if end_row <= len(lines) else 0

    return Range(Position(start_row, start_col), Position(end_row, end_col))
