"""
Caller facade.

format() is what an editor integration or the CLI calls: it resolves the
requested formatter names against a registry, runs the pipeline through a
PipelineRunner, and decides which outcomes to surface to the user. The
pipeline itself never notifies.

Usage:
    from bufformat import api
    from bufformat.config import FormatterRegistry

    registry = FormatterRegistry().setup()
    api.format(doc, ["isort", "black"], registry, callback=print)
"""

import logging
from typing import Any, Callable, Iterable, Optional

from .buffer.document import Document, split_text
from .config.registry import FormatterRegistry
from .core.cancellation import CancellationToken
from .core.errors import FormatError, NoFormattersError, Severity
from .core.notify import LoggingNotifier, Notifier
from .models.pipeline import DEFAULT_TIMEOUT_MS, ExecutionMode, PipelineRequest, PipelineResult
from .models.range import Range, Selection
from .runner.context import range_from_selection
from .runner.pipeline import PipelineRunner

logger = logging.getLogger(__name__)

MSG_FORMATTER_FAILED = "Formatter failed. See `bufformat info` for details"
MSG_BUFFER_DELETED = "buffer was deleted"

FormatCallback = Callable[[Optional[str]], None]

_default_runner: Optional[PipelineRunner] = None


def get_default_runner() -> PipelineRunner:
    """Shared runner used when the caller does not supply one."""
    global _default_runner
    if _default_runner is None:
        _default_runner = PipelineRunner()
    return _default_runner


def report_error(
    error: FormatError,
    notifier: Notifier,
    quiet: bool = False,
    notify_on_error: bool = True,
) -> None:
    """
    Surface a pipeline error according to the caller's preferences.

    Execution failures get a short pointer to `bufformat info` when
    ``notify_on_error`` is set. Other errors at WARNING or above are shown
    unless ``quiet``; INFO errors are only logged.
    """
    if error.is_execution_error:
        if notify_on_error:
            notifier.notify(MSG_FORMATTER_FAILED, Severity.ERROR)
        return
    if not quiet and error.severity >= Severity.WARNING:
        notifier.notify(error.message, error.severity)


def format(
    document: Document,
    formatters: Iterable[Any],
    registry: FormatterRegistry,
    runner: Optional[PipelineRunner] = None,
    range: Optional[Range] = None,
    selection: Optional[Selection] = None,
    async_: bool = False,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    quiet: bool = False,
    notify_on_error: bool = True,
    explicit: bool = True,
    notifier: Optional[Notifier] = None,
    callback: Optional[FormatCallback] = None,
    token: Optional[CancellationToken] = None,
) -> bool:
    """
    Format a document with the named formatters.

    Args:
        document: Live document to format.
        formatters: Formatter names; a nested list names alternatives of
            which the first available one runs.
        registry: Registry the names are resolved against.
        runner: Pipeline runner; a shared one is used by default.
        range: Restrict formatting to this range.
        selection: Editor selection to derive the range from (ignored when
            ``range`` is given).
        async_: Run on the event loop and return immediately. Requires a
            running event loop.
        timeout_ms: Deadline for synchronous runs.
        quiet: Do not surface warnings (missing formatters, timeouts).
        notify_on_error: Surface formatter failures.
        explicit: The caller named ``formatters`` itself. When False (names
            came from per-file defaults) unavailable formatters are only
            logged.
        notifier: Where messages go; defaults to logging.
        callback: Called with None on success or the error message.
        token: Extra token that cancels the run (e.g. bound to Ctrl+C).

    Returns:
        True if at least one formatter was attempted.
    """
    notifier = notifier or LoggingNotifier()
    runner = runner or get_default_runner()

    def finish(err: Optional[str]) -> None:
        if callback is not None:
            callback(err)

    if not document.is_valid():
        logger.debug(f"Document {document.doc_id} is no longer valid")
        finish(MSG_BUFFER_DELETED)
        return False

    if range is None and selection is not None:
        range = range_from_selection(selection, split_text(document.get_text())[0])

    units = list(formatters)
    specs = registry.resolve_units(
        units, document, warn_on_missing=explicit and not quiet, notifier=notifier
    )
    if not specs:
        error = NoFormattersError()
        if units:
            logger.log(error.severity.log_level, error.message)
            report_error(error, notifier, quiet, notify_on_error)
        else:
            logger.debug(f"No formatters configured for document {document.doc_id}")
        finish(error.message)
        return False

    request = PipelineRequest(
        document=document,
        formatters=specs,
        range=range,
        timeout_ms=timeout_ms,
        mode=ExecutionMode.ASYNC if async_ else ExecutionMode.SYNC,
    )

    def handle_result(result: PipelineResult) -> None:
        if result.error is not None:
            report_error(result.error, notifier, quiet, notify_on_error)
            finish(result.error.message)
        else:
            finish(None)

    runner.submit(request, handle_result, token)
    return True
