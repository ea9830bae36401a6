"""
Shared data models for the formatter pipeline.

Usage:
    from bufformat.models import FormatterSpec, Range, PipelineResult
"""

from .range import (
    Position,
    Range,
    Selection,
)
from .formatter import (
    Static,
    Computed,
    as_dynamic,
    FormatterMeta,
    FormatterSpec,
    ResolvedFormatter,
    FormatterInfo,
    Single,
    Alternation,
    FormatterUnit,
    parse_units,
    DEFAULT_EXIT_CODES,
)
from .pipeline import (
    ExecutionMode,
    ExecutionContext,
    DocumentSnapshot,
    PipelineRequest,
    PipelineResult,
    DEFAULT_TIMEOUT_MS,
)

__all__ = [
    # Ranges
    "Position",
    "Range",
    "Selection",
    # Formatter configuration
    "Static",
    "Computed",
    "as_dynamic",
    "FormatterMeta",
    "FormatterSpec",
    "ResolvedFormatter",
    "FormatterInfo",
    "Single",
    "Alternation",
    "FormatterUnit",
    "parse_units",
    "DEFAULT_EXIT_CODES",
    # Pipeline
    "ExecutionMode",
    "ExecutionContext",
    "DocumentSnapshot",
    "PipelineRequest",
    "PipelineResult",
    "DEFAULT_TIMEOUT_MS",
]
