"""Live document model used by the pipeline."""

from .document import (
    Document,
    TextDocument,
    LineEdit,
    split_text,
    join_lines,
)

__all__ = [
    "Document",
    "TextDocument",
    "LineEdit",
    "split_text",
    "join_lines",
]
