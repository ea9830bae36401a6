"""
Formatter Pipeline Runner.

Entry points that take a PipelineRequest through the whole run: snapshot
the document, compose the formatter outputs, and reconcile the final text
into the live document.

Each run gets its own CancellationToken. A new request for a document whose
previous run is still in flight cancels that run first, which kills its
formatter process and turns its result into an INTERRUPTED error; its output
never reaches the document.

Usage:
    runner = PipelineRunner()

    # Blocking
    result = runner.run(PipelineRequest(doc, specs, timeout_ms=500))

    # On the event loop
    task = runner.format_async(PipelineRequest(doc, specs, mode="async"), on_done)
"""

import asyncio
import logging
from typing import Callable, Dict, Mapping, Optional, Union

from ..core.cancellation import CancellationToken, CancellationTokenSource
from ..core.errors import FormatError, RunCancelledError
from ..models.pipeline import ExecutionMode, PipelineRequest, PipelineResult
from .apply import apply_format, take_snapshot
from .composer import compose_async, compose_sync
from .executor import ExecutorOptions

logger = logging.getLogger(__name__)

ResultCallback = Callable[[PipelineResult], None]


class PipelineRunner:
    """
    Runs formatter pipelines against live documents.

    Attributes:
        options: How formatter output is interpreted.
        base_env: Environment formatters inherit (defaults to os.environ).
    """

    def __init__(
        self,
        options: Optional[ExecutorOptions] = None,
        base_env: Optional[Mapping[str, str]] = None,
    ):
        self.options = options or ExecutorOptions()
        self.base_env = base_env
        self._source = CancellationTokenSource()
        self._inflight: Dict[int, CancellationToken] = {}

    # ------------------------------------------------------------------
    # Run bookkeeping
    # ------------------------------------------------------------------

    def _begin(self, document_id: int) -> CancellationToken:
        previous = self._inflight.get(document_id)
        if previous is not None:
            logger.debug(f"Superseding in-flight run for document {document_id}")
            previous.cancel("superseded by a newer request")
        token = self._source.create_linked_token()
        self._inflight[document_id] = token
        return token

    def _end(self, document_id: int, token: CancellationToken) -> None:
        if self._inflight.get(document_id) is token:
            del self._inflight[document_id]
        self._source.release(token)

    def is_running(self, document_id: int) -> bool:
        """Whether a run for the document is in flight."""
        return document_id in self._inflight

    def cancel(self, document_id: int, reason: str = "cancelled by caller") -> bool:
        """
        Abandon the in-flight run for a document, killing its process.

        Returns:
            True if a run was cancelled.
        """
        token = self._inflight.get(document_id)
        if token is None:
            return False
        token.cancel(reason)
        return True

    def shutdown(self) -> None:
        """Cancel every run in flight."""
        self._source.cancel("runner shut down")

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def run(self, request: PipelineRequest, token: Optional[CancellationToken] = None) -> PipelineResult:
        """
        Run a pipeline synchronously and apply its result.

        Args:
            request: The pipeline request; its mode is ignored.
            token: Extra token (e.g. bound to Ctrl+C) that also cancels the run.

        Returns:
            PipelineResult; ``applied`` tells whether the document changed.
        """
        document = request.document
        snapshot = take_snapshot(document)
        run_token = self._begin(request.document_id)

        def forward():
            run_token.cancel(token.cancel_reason)

        if token is not None:
            token.register_callback(forward)
        logger.debug(
            f"Running formatters on {document.path or request.document_id}: "
            f"{request.formatter_names}"
        )
        try:
            result = compose_sync(
                request.formatters,
                document,
                snapshot.text,
                range=request.range,
                timeout_ms=request.timeout_ms,
                token=run_token,
                options=self.options,
                base_env=self.base_env,
            )
            return self._apply(request, snapshot, result)
        finally:
            if token is not None:
                token.unregister_callback(forward)
            self._end(request.document_id, run_token)

    # ------------------------------------------------------------------
    # Async
    # ------------------------------------------------------------------

    async def run_async(
        self,
        request: PipelineRequest,
        token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """Run a pipeline on the event loop and apply its result."""
        document = request.document
        snapshot = take_snapshot(document)
        run_token = self._begin(request.document_id)

        def forward():
            run_token.cancel(token.cancel_reason)

        if token is not None:
            token.register_callback(forward)
        logger.debug(
            f"Running formatters async on {document.path or request.document_id}: "
            f"{request.formatter_names}"
        )
        try:
            result = await compose_async(
                request.formatters,
                document,
                snapshot.text,
                range=request.range,
                token=run_token,
                options=self.options,
                base_env=self.base_env,
            )
            if result.ok and run_token.is_cancelled():
                result.error = RunCancelledError(
                    f"Formatting interrupted: {run_token.cancel_reason or 'cancelled'}"
                )
                result.output = None
            return self._apply(request, snapshot, result)
        finally:
            if token is not None:
                token.unregister_callback(forward)
            self._end(request.document_id, run_token)

    def format_async(
        self,
        request: PipelineRequest,
        callback: Optional[ResultCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> "asyncio.Task[PipelineResult]":
        """
        Schedule a run on the running event loop.

        The callback is invoked on the loop with the PipelineResult once the
        run finishes, including when the task itself is cancelled.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.run_async(request, token))

        def on_done(done: "asyncio.Task[PipelineResult]") -> None:
            if done.cancelled():
                result = PipelineResult(error=RunCancelledError("Formatting task cancelled"))
            else:
                result = done.result()
            if callback is not None:
                callback(result)

        task.add_done_callback(on_done)
        return task

    def submit(
        self,
        request: PipelineRequest,
        callback: Optional[ResultCallback] = None,
        token: Optional[CancellationToken] = None,
    ) -> Union[PipelineResult, "asyncio.Task[PipelineResult]"]:
        """Dispatch a request by its mode."""
        if request.mode is ExecutionMode.ASYNC:
            return self.format_async(request, callback, token)
        result = self.run(request, token)
        if callback is not None:
            callback(result)
        return result

    # ------------------------------------------------------------------

    def _apply(self, request: PipelineRequest, snapshot, result: PipelineResult) -> PipelineResult:
        if not result.ok:
            return result
        try:
            result.applied = apply_format(request.document, snapshot, result.output, request.range)
        except FormatError as e:
            logger.log(e.severity.log_level, e.message)
            result.error = e
        return result
