"""
Process Executor.

Runs one resolved formatter as an external process, feeds it the current
text, and collects its output. Two entry points share the same result
handling:

- execute_sync() blocks up to a timeout and kills the process tree when the
  deadline passes while the process is still running.
- execute_async() runs on the asyncio event loop without a deadline; the
  run's CancellationToken kills the process when the run is abandoned.

Formatters that do not read stdin get the text through a temp file next to
the original (its path is already in the ExecutionContext); the file is read
back as the formatter's output and always removed afterwards.
"""

import asyncio
import contextlib
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import psutil

from ..core.cancellation import CancellationToken
from ..core.errors import (
    ErrorCode,
    ExecutionError,
    FormatTimeoutError,
)
from ..models.formatter import ResolvedFormatter
from ..models.pipeline import ExecutionContext

logger = logging.getLogger(__name__)

# Seconds to wait for a killed process to be reaped
KILL_GRACE_SECONDS = 2.0

_NEW_SESSION = os.name == "posix"


@dataclass
class ExecutorOptions:
    """
    Knobs for how process results are interpreted.

    Attributes:
        empty_output_is_error: A stdin formatter that succeeds with empty
            stdout for non-empty input is treated as having exited before
            consuming its input (ExecutionError NO_OUTPUT). When False the
            pipeline keeps the current text instead.
        encoding: Encoding used for the payload and the captured output.
    """
    empty_output_is_error: bool = True
    encoding: str = "utf-8"


@dataclass
class ProcessOutput:
    """
    Captured result of one formatter process.

    Attributes:
        stdout: Captured standard output.
        stderr: Captured standard error.
        exit_code: Process exit status.
        text: The formatter's result: stdout for stdin formatters, the temp
            file's content otherwise.
    """
    stdout: str
    stderr: str
    exit_code: int
    text: str


def kill_process_tree(pid: int, wait: bool = True) -> None:
    """
    Kill a process and every descendant it spawned.

    With ``wait`` the killed descendants are reaped before returning. Callers
    on the event loop pass False and await the process themselves.
    """
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    try:
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        children = []
    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass
    if wait:
        psutil.wait_procs(children, timeout=KILL_GRACE_SECONDS)
    logger.warning(f"Killed formatter process {pid} ({len(children)} child process(es))")


@contextlib.contextmanager
def temp_input(
    ctx: ExecutionContext,
    text: str,
    encoding: str = "utf-8",
    formatter: Optional[str] = None,
) -> Iterator[Optional[str]]:
    """Write the text to the context's temp file for the duration of a run."""
    if not ctx.uses_temp_file:
        yield None
        return
    path = ctx.filename
    try:
        Path(path).write_text(text, encoding=encoding)
    except OSError as e:
        raise ExecutionError(
            ErrorCode.SPAWN_FAILED,
            f"Could not write temp file {path}: {e}",
            formatter=formatter,
            details=str(e),
        )
    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def _spawn_failed(formatter: ResolvedFormatter, error: OSError) -> ExecutionError:
    return ExecutionError(
        ErrorCode.SPAWN_FAILED,
        f"Formatter '{formatter.name}' failed to start: {error}",
        formatter=formatter.name,
        details=str(error),
    )


def _finish(
    formatter: ResolvedFormatter,
    ctx: ExecutionContext,
    stdout: bytes,
    stderr: bytes,
    exit_code: int,
    options: ExecutorOptions,
) -> ProcessOutput:
    out = (stdout or b"").decode(options.encoding, errors="replace")
    err = (stderr or b"").decode(options.encoding, errors="replace")

    if exit_code not in formatter.exit_codes:
        detail = err.strip()
        message = (
            f"Formatter '{formatter.name}' error: {detail}"
            if detail
            else f"Formatter '{formatter.name}' exited with code {exit_code}"
        )
        logger.debug(f"{message} (exit code {exit_code})")
        raise ExecutionError(
            ErrorCode.NON_ZERO_EXIT,
            message,
            formatter=formatter.name,
            details=err or None,
            exit_code=exit_code,
        )

    if formatter.stdin:
        text = out
    else:
        try:
            text = Path(ctx.filename).read_text(encoding=options.encoding)
        except FileNotFoundError:
            raise ExecutionError(
                ErrorCode.NO_OUTPUT,
                f"Formatter '{formatter.name}' removed its input file",
                formatter=formatter.name,
                exit_code=exit_code,
            )
    return ProcessOutput(stdout=out, stderr=err, exit_code=exit_code, text=text)


def interpret_output(
    formatter: ResolvedFormatter,
    input_text: str,
    output: ProcessOutput,
    options: Optional[ExecutorOptions] = None,
) -> Optional[str]:
    """
    Decide what a successful stage contributes to the pipeline.

    Returns:
        The new current text, or None meaning "no change, keep current text".

    Raises:
        ExecutionError: NO_OUTPUT when a stdin formatter produced nothing for
            non-empty input and the policy treats that as a failure.
    """
    options = options or ExecutorOptions()
    if output.text or not input_text or formatter.allow_empty_output:
        return output.text
    if formatter.stdin and options.empty_output_is_error:
        raise ExecutionError(
            ErrorCode.NO_OUTPUT,
            f"Formatter '{formatter.name}' exited without producing output",
            formatter=formatter.name,
            details=output.stderr or None,
            exit_code=output.exit_code,
        )
    logger.debug(f"Formatter '{formatter.name}' produced no output; keeping current text")
    return None


def _payload(formatter: ResolvedFormatter, text: str, options: ExecutorOptions) -> Optional[bytes]:
    return text.encode(options.encoding) if formatter.stdin else None


def execute_sync(
    formatter: ResolvedFormatter,
    ctx: ExecutionContext,
    text: str,
    timeout_ms: Optional[int] = None,
    token: Optional[CancellationToken] = None,
    options: Optional[ExecutorOptions] = None,
) -> ProcessOutput:
    """
    Run a formatter and block until it finishes or the deadline passes.

    Args:
        formatter: The resolved formatter to run.
        ctx: Context it was resolved against (used for temp-file formatters).
        text: Current pipeline text.
        timeout_ms: Time budget in milliseconds; None waits forever.
        token: Cancellation token that kills the process when cancelled.
        options: Output interpretation options.

    Returns:
        The captured ProcessOutput.

    Raises:
        FormatTimeoutError: The process was still running at the deadline.
        ExecutionError: The process failed to start or exited unsuccessfully.
        RunCancelledError: The token was cancelled while the process ran.
    """
    options = options or ExecutorOptions()
    timeout = timeout_ms / 1000.0 if timeout_ms is not None else None

    with temp_input(ctx, text, options.encoding, formatter.name):
        logger.debug(f"Run {formatter.argv} (cwd={formatter.cwd}, timeout={timeout_ms}ms)")
        try:
            proc = subprocess.Popen(
                formatter.argv,
                stdin=subprocess.PIPE if formatter.stdin else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=formatter.cwd,
                env=formatter.env,
                start_new_session=_NEW_SESSION,
            )
        except OSError as e:
            raise _spawn_failed(formatter, e)

        def kill():
            kill_process_tree(proc.pid)

        if token is not None:
            token.register_callback(kill)
        try:
            try:
                stdout, stderr = proc.communicate(_payload(formatter, text, options), timeout=timeout)
            except subprocess.TimeoutExpired:
                if proc.poll() is None:
                    kill()
                    _reap(proc)
                    raise FormatTimeoutError(formatter.name, timeout_ms)
                # Exited right at the deadline: not a timeout
                stdout, stderr = proc.communicate()
        finally:
            if token is not None:
                token.unregister_callback(kill)

        if token is not None:
            token.throw_if_cancelled(formatter.name)
        return _finish(formatter, ctx, stdout, stderr, proc.returncode, options)


def _reap(proc: subprocess.Popen) -> None:
    try:
        proc.communicate(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()


async def execute_async(
    formatter: ResolvedFormatter,
    ctx: ExecutionContext,
    text: str,
    token: Optional[CancellationToken] = None,
    options: Optional[ExecutorOptions] = None,
) -> ProcessOutput:
    """
    Run a formatter on the event loop.

    No deadline is enforced. Cancelling the token (or the surrounding task)
    kills the process tree and discards its output.

    Raises:
        ExecutionError: The process failed to start or exited unsuccessfully.
        RunCancelledError: The token was cancelled while the process ran.
    """
    options = options or ExecutorOptions()

    with temp_input(ctx, text, options.encoding, formatter.name):
        logger.debug(f"Run async {formatter.argv} (cwd={formatter.cwd})")
        try:
            proc = await asyncio.create_subprocess_exec(
                *formatter.argv,
                stdin=asyncio.subprocess.PIPE if formatter.stdin else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=formatter.cwd,
                env=formatter.env,
                start_new_session=_NEW_SESSION,
            )
        except OSError as e:
            raise _spawn_failed(formatter, e)

        def kill():
            if proc.returncode is None:
                kill_process_tree(proc.pid, wait=False)

        if token is not None:
            token.register_callback(kill)
        try:
            stdout, stderr = await proc.communicate(_payload(formatter, text, options))
        except asyncio.CancelledError:
            kill()
            await proc.wait()
            raise
        finally:
            if token is not None:
                token.unregister_callback(kill)

        if token is not None:
            token.throw_if_cancelled(formatter.name)
        return _finish(formatter, ctx, stdout, stderr, proc.returncode, options)

