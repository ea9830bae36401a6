"""
Formatter Pipeline Runner.

- context.py: Context Builder (build_context, range_from_selection)
- resolver.py: Config Resolver (resolve_formatter)
- executor.py: Process Executor (execute_sync, execute_async)
- composer.py: Pipeline Composer (compose_sync, compose_async)
- apply.py: Diff & Apply Engine (compute_edits, apply_format)
- pipeline.py: PipelineRunner tying the stages together
"""

from .context import build_context, range_from_selection
from .resolver import resolve_formatter
from .executor import (
    ExecutorOptions,
    ProcessOutput,
    execute_sync,
    execute_async,
    kill_process_tree,
)
from .composer import compose_sync, compose_async
from .apply import EditPlan, compute_edits, apply_format, take_snapshot
from .pipeline import PipelineRunner

__all__ = [
    "build_context",
    "range_from_selection",
    "resolve_formatter",
    "ExecutorOptions",
    "ProcessOutput",
    "execute_sync",
    "execute_async",
    "kill_process_tree",
    "compose_sync",
    "compose_async",
    "EditPlan",
    "compute_edits",
    "apply_format",
    "take_snapshot",
    "PipelineRunner",
]
