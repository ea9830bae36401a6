"""
Diff & Apply Engine.

Converts the pipeline's final text into the smallest batch of line
replacements against the live document and applies them as one change.
Replacing only the lines that differ keeps the cursor and any other line
anchored state in place.

Usage:
    from bufformat.runner.apply import apply_format

    snapshot = take_snapshot(doc)
    ...  # run formatters
    changed = apply_format(doc, snapshot, final_text)
"""

import difflib
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..buffer.document import Document, LineEdit, split_text
from ..core.errors import ConcurrentModificationError
from ..models.pipeline import DocumentSnapshot
from ..models.range import Range

logger = logging.getLogger(__name__)


@dataclass
class EditPlan:
    """
    Line edits turning one text into another.

    Attributes:
        edits: Non-overlapping replacements, ordered by start line.
        eol: New end-of-line flag, or None when it does not change.
        dropped: Hunks discarded because they fell outside the range.
    """
    edits: List[LineEdit] = field(default_factory=list)
    eol: Optional[bool] = None
    dropped: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.edits and self.eol is None


def take_snapshot(document: Document) -> DocumentSnapshot:
    """Capture the document's text and change marker."""
    return DocumentSnapshot(
        document_id=document.doc_id,
        text=document.get_text(),
        changedtick=document.changedtick,
    )


def _within(edit: LineEdit, span: Tuple[int, int]) -> bool:
    first, last = span
    if edit.start == edit.end:
        return first <= edit.start <= last
    return first <= edit.start and edit.end <= last


def _diff_lines(old_lines: List[str], new_lines: List[str], offset: int = 0) -> List[LineEdit]:
    edits: List[LineEdit] = []
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag == "replace" and i2 - i1 == j2 - j1:
            # Same-size blocks are replaced line by line so a range can clip them
            for k, (old, new) in enumerate(zip(old_lines[i1:i2], new_lines[j1:j2])):
                if old != new:
                    edits.append(LineEdit(offset + i1 + k, offset + i1 + k + 1, (new,)))
            continue
        edits.append(LineEdit(offset + i1, offset + i2, tuple(new_lines[j1:j2])))
    return edits


def _range_window(
    old_lines: List[str], new_lines: List[str], range: Range
) -> Optional[Tuple[int, int, int]]:
    """
    Line window of a range in both texts, when the lines around it are intact.

    Returns:
        (prefix, old_end, new_end): the range spans ``old_lines[prefix:old_end]``
        and ``new_lines[prefix:new_end]``. None when the new text changed
        lines before or after the range.
    """
    prefix = min(range.start.line - 1, len(old_lines))
    suffix = max(len(old_lines) - max(range.end.line, prefix), 0)
    old_end = len(old_lines) - suffix
    new_end = len(new_lines) - suffix
    if new_end < prefix:
        return None
    if new_lines[:prefix] != old_lines[:prefix] or new_lines[new_end:] != old_lines[old_end:]:
        return None
    return prefix, old_end, new_end


def compute_edits(old_text: str, new_text: str, range: Optional[Range] = None) -> EditPlan:
    """
    Compute minimal line edits from ``old_text`` to ``new_text``.

    A difference only in the trailing newline yields no line edit, just an
    ``eol`` change. With a range, only the lines inside it are compared
    when the lines before and after it are unchanged; otherwise the whole
    texts are compared and hunks not entirely inside the range's line span
    are dropped.

    Args:
        old_text: Current document text.
        new_text: Desired text.
        range: Optional range the formatting was scoped to.

    Returns:
        An EditPlan addressed against ``old_text``'s line indices.
    """
    old_lines, old_eol = split_text(old_text)
    new_lines, new_eol = split_text(new_text)

    plan = EditPlan()
    if new_eol != old_eol:
        plan.eol = new_eol

    window = _range_window(old_lines, new_lines, range) if range is not None else None
    if window is not None:
        prefix, old_end, new_end = window
        plan.edits = _diff_lines(old_lines[prefix:old_end], new_lines[prefix:new_end], prefix)
    else:
        plan.edits = _diff_lines(old_lines, new_lines)

    if range is not None:
        # 0-indexed, end-exclusive line span of the range
        span = (range.start.line - 1, min(range.end.line, len(old_lines)))
        kept = [e for e in plan.edits if _within(e, span)]
        plan.dropped = len(plan.edits) - len(kept)
        plan.edits = kept
        if plan.eol is not None and span[1] < len(old_lines):
            plan.eol = None
            plan.dropped += 1
        if plan.dropped:
            logger.debug(f"Dropped {plan.dropped} hunk(s) outside lines {range.line_span}")

    return plan


def check_unmodified(document: Document, snapshot: DocumentSnapshot) -> str:
    """
    Verify the live document still matches the snapshot.

    A bumped change marker is tolerated when the content is identical (an
    undo back to the same text, a write without changes).

    Returns:
        The live text.

    Raises:
        ConcurrentModificationError: The document was deleted or its content
            diverged from the snapshot.
    """
    if not document.is_valid():
        raise ConcurrentModificationError("Buffer was deleted during formatting")
    live = document.get_text()
    if document.changedtick != snapshot.changedtick and live != snapshot.text:
        raise ConcurrentModificationError(
            f"Buffer {snapshot.document_id} modified during formatting "
            f"(changedtick {snapshot.changedtick} -> {document.changedtick})"
        )
    return live


def apply_format(
    document: Document,
    snapshot: DocumentSnapshot,
    new_text: str,
    range: Optional[Range] = None,
) -> bool:
    """
    Reconcile the pipeline's final text into the live document.

    Args:
        document: Live document.
        snapshot: Snapshot taken before the pipeline started.
        new_text: Final pipeline output.
        range: Range the run was scoped to, if any.

    Returns:
        True if the document was edited, False for a no-op.

    Raises:
        ConcurrentModificationError: The document changed since the snapshot.
    """
    live = check_unmodified(document, snapshot)
    if live == new_text:
        logger.debug(f"Document {document.doc_id} already formatted")
        return False

    plan = compute_edits(live, new_text, range)
    if plan.is_empty:
        return False

    changed = document.apply_edits(plan.edits, plan.eol)
    logger.debug(
        f"Applied {len(plan.edits)} hunk(s) to document {document.doc_id}"
        + (" and updated trailing newline" if plan.eol is not None else "")
    )
    return changed
