"""
Pipeline Composer.

Runs an ordered list of formatters, feeding each one's output to the next.
The first stage receives the document text; the run stops at the first
failure and discards the text produced so far (files a formatter touched on
disk are not restored).

Formatting a range with a formatter that has no range arguments sends only
the range's lines to it and splices the output back between the untouched
lines before and after the range.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Tuple

from ..buffer.document import Document, join_lines, split_text
from ..core.cancellation import CancellationToken
from ..core.errors import FormatError, FormatTimeoutError, NoFormattersError
from ..models.formatter import FormatterSpec, ResolvedFormatter
from ..models.pipeline import DEFAULT_TIMEOUT_MS, ExecutionContext, PipelineResult
from ..models.range import Range
from .context import build_context
from .executor import (
    ExecutorOptions,
    ProcessOutput,
    execute_async,
    execute_sync,
    interpret_output,
)
from .resolver import resolve_formatter

logger = logging.getLogger(__name__)

Splice = Callable[[str], str]


@dataclass
class Stage:
    """One formatter, resolved and ready to execute."""
    spec: FormatterSpec
    ctx: ExecutionContext
    formatter: ResolvedFormatter
    input_text: str
    splice: Splice


def _whole_text(output: str) -> str:
    return output


class _PipelineState:
    """Running text and bookkeeping shared by the sync and async loops."""

    def __init__(
        self,
        document: Document,
        text: str,
        range: Optional[Range],
        options: ExecutorOptions,
        base_env: Optional[Mapping[str, str]],
    ):
        self.document = document
        self.current = text
        self.range = range
        self.options = options
        self.base_env = base_env
        self.result = PipelineResult()
        if range is not None:
            total = len(split_text(text)[0])
            self._prefix = min(range.start.line - 1, total)
            self._suffix = max(total - range.end.line, 0)

    def begin(self, spec: FormatterSpec) -> Stage:
        ctx = build_context(self.document, spec, self.range)
        formatter = resolve_formatter(spec, ctx, self.base_env)
        input_text, splice = self._window(spec)
        self.result.attempted.append(spec.name)
        logger.debug(f"Stage {len(self.result.attempted)}: '{spec.name}'")
        return Stage(spec, ctx, formatter, input_text, splice)

    def finish(self, stage: Stage, output: ProcessOutput) -> None:
        new_text = interpret_output(stage.formatter, stage.input_text, output, self.options)
        if new_text is not None:
            self.current = stage.splice(new_text)

    def fail(self, error: FormatError) -> PipelineResult:
        logger.log(error.severity.log_level, error.message)
        self.result.error = error
        self.result.output = None
        return self.result

    def succeed(self) -> PipelineResult:
        self.result.output = self.current
        return self.result

    def _window(self, spec: FormatterSpec) -> Tuple[str, Splice]:
        if self.range is None or spec.is_range_aware:
            return self.current, _whole_text

        lines, eol = split_text(self.current)
        prefix, suffix = self._prefix, self._suffix
        body_end = max(len(lines) - suffix, prefix)
        body = lines[prefix:body_end]
        # The range is followed by more lines, so its last line always ends in a newline
        body_eol = True if suffix else eol

        def splice(output: str) -> str:
            out_lines, out_eol = split_text(output) if output else ([], body_eol)
            merged = lines[:prefix] + out_lines + lines[body_end:]
            return join_lines(merged or [""], eol if suffix else out_eol)

        return join_lines(body, body_eol), splice


def compose_sync(
    specs: List[FormatterSpec],
    document: Document,
    text: str,
    range: Optional[Range] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    token: Optional[CancellationToken] = None,
    options: Optional[ExecutorOptions] = None,
    base_env: Optional[Mapping[str, str]] = None,
) -> PipelineResult:
    """
    Run the pipeline, blocking the caller.

    ``timeout_ms`` bounds the whole pipeline: each stage gets whatever time
    the earlier stages left.

    Args:
        specs: Ordered formatters, already filtered to available ones.
        document: Document the text came from (for context building).
        text: Text the first stage receives.
        range: Optional range to restrict formatting to.
        timeout_ms: Deadline for the whole pipeline.
        token: Cancellation token checked between stages.
        options: Output interpretation options.
        base_env: Environment formatters inherit.

    Returns:
        PipelineResult with the final text or the error that stopped the run.
    """
    state = _PipelineState(document, text, range, options or ExecutorOptions(), base_env)
    if not specs:
        return state.fail(NoFormattersError())

    deadline = time.monotonic() + timeout_ms / 1000.0
    for spec in specs:
        try:
            if token is not None:
                token.throw_if_cancelled(spec.name)
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            if remaining_ms <= 0:
                raise FormatTimeoutError(spec.name, timeout_ms)
            stage = state.begin(spec)
            output = execute_sync(
                stage.formatter, stage.ctx, stage.input_text, remaining_ms, token, state.options
            )
            state.finish(stage, output)
        except FormatError as e:
            return state.fail(e)
    return state.succeed()


async def compose_async(
    specs: List[FormatterSpec],
    document: Document,
    text: str,
    range: Optional[Range] = None,
    token: Optional[CancellationToken] = None,
    options: Optional[ExecutorOptions] = None,
    base_env: Optional[Mapping[str, str]] = None,
) -> PipelineResult:
    """
    Run the pipeline on the event loop.

    No deadline is enforced; the token is checked before every stage and
    kills a running process when cancelled.
    """
    state = _PipelineState(document, text, range, options or ExecutorOptions(), base_env)
    if not specs:
        return state.fail(NoFormattersError())

    for spec in specs:
        try:
            if token is not None:
                token.throw_if_cancelled(spec.name)
            stage = state.begin(spec)
            output = await execute_async(
                stage.formatter, stage.ctx, stage.input_text, token, state.options
            )
            state.finish(stage, output)
        except FormatError as e:
            return state.fail(e)
    return state.succeed()
