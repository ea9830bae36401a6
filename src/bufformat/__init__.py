"""bufformat: run external formatters over live documents as a pipeline."""

__version__ = "1.0.0"
__author__ = "bufformat contributors"

from .api import format
from .buffer import TextDocument, Document
from .config import FormatterRegistry, Config, parse_config, build_registry
from .core import (
    FormatError,
    ErrorCode,
    Severity,
    CancellationToken,
    Notifier,
    LoggingNotifier,
)
from .models import (
    FormatterSpec,
    FormatterMeta,
    Position,
    Range,
    Selection,
    PipelineRequest,
    PipelineResult,
    ExecutionMode,
)
from .runner import PipelineRunner

__all__ = [
    # Facade
    "format",
    # Documents
    "TextDocument",
    "Document",
    # Configuration
    "FormatterRegistry",
    "Config",
    "parse_config",
    "build_registry",
    # Errors and cancellation
    "FormatError",
    "ErrorCode",
    "Severity",
    "CancellationToken",
    "Notifier",
    "LoggingNotifier",
    # Models
    "FormatterSpec",
    "FormatterMeta",
    "Position",
    "Range",
    "Selection",
    "PipelineRequest",
    "PipelineResult",
    "ExecutionMode",
    # Runner
    "PipelineRunner",
]
