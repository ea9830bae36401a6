"""
Pipeline request, context and result data types.

This module defines the data structures that flow through one formatting
run: the immutable ExecutionContext handed to resolvers, the snapshot taken
before the run, the request the caller builds, and the result it gets back.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .range import Range

if TYPE_CHECKING:
    from ..buffer.document import Document
    from ..core.errors import FormatError
    from .formatter import FormatterSpec


DEFAULT_TIMEOUT_MS = 1000


class ExecutionMode(str, Enum):
    """How the pipeline waits for formatter processes."""
    SYNC = "sync"
    ASYNC = "async"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExecutionContext:
    """
    Facts about the document a formatter is resolved against.

    Attributes:
        document_id: Identifier of the buffer being formatted.
        filename: Absolute path the formatter should see. For formatters that
            do not read stdin this is the temporary file holding the text.
        dirname: Directory containing ``filename``.
        range: Range being formatted, if any.
        original_filename: Absolute path of the buffer itself.
    """
    document_id: int
    filename: str
    dirname: str
    range: Optional[Range] = None
    original_filename: Optional[str] = None

    @property
    def uses_temp_file(self) -> bool:
        return self.original_filename is not None and self.original_filename != self.filename

    @property
    def basename(self) -> str:
        return os.path.basename(self.filename)


@dataclass(frozen=True)
class DocumentSnapshot:
    """Document content and change marker captured before a run."""
    document_id: int
    text: str
    changedtick: int


@dataclass
class PipelineRequest:
    """
    Everything needed to run one pipeline.

    Attributes:
        document: The live document to read from and apply to.
        formatters: Ordered formatters, already filtered to available ones.
        range: Optional range to restrict formatting to.
        timeout_ms: Deadline for the whole pipeline (sync mode only).
        mode: Synchronous or asynchronous execution.
    """
    document: "Document"
    formatters: List["FormatterSpec"]
    range: Optional[Range] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    mode: ExecutionMode = ExecutionMode.SYNC

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")
        self.mode = ExecutionMode(self.mode)

    @property
    def document_id(self) -> int:
        return self.document.doc_id

    @property
    def formatter_names(self) -> List[str]:
        return [f.name for f in self.formatters]


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    Attributes:
        output: Final text, or None when the run stopped early.
        error: The failure that stopped the run, if any.
        attempted: Names of formatters that were started, in order.
        applied: Whether the document was actually edited.
    """
    output: Optional[str] = None
    error: Optional["FormatError"] = None
    attempted: List[str] = field(default_factory=list)
    applied: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "attempted": list(self.attempted),
            "applied": self.applied,
            "error": self.error.to_dict() if self.error else None,
        }
