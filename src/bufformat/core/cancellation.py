"""
Cancellation support for formatter pipeline runs.

Every pipeline run owns a CancellationToken. The token is checked at each
stage boundary, and the Process Executor registers a callback on it that
kills the running formatter process, so superseding a run stops its work
eagerly instead of only discarding the result.

Example:
    ```python
    from bufformat.core.cancellation import CancellationTokenSource

    source = CancellationTokenSource()
    token = source.create_linked_token()

    # Kill the child process if the run is abandoned
    token.register_callback(lambda: kill(proc))

    for stage in stages:
        token.throw_if_cancelled(stage.name)
        run(stage)
    ```
"""

import signal
import threading
import logging
from typing import Callable, Dict, List, Optional

from .errors import RunCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Thread-safe cancellation token for cooperative cancellation.

    Callbacks registered before cancel() run once, in registration order,
    when the token is cancelled. Callbacks registered after cancellation run
    immediately.

    Attributes:
        is_cancelled: Whether cancellation has been requested.
    """

    def __init__(self):
        """Initialize a new cancellation token."""
        self._cancelled = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()
        self._cancel_reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """
        Mark the token as cancelled and notify all callbacks.

        This method is thread-safe and can be called from any thread,
        including signal handlers.

        Args:
            reason: Optional reason for the cancellation.
        """
        with self._lock:
            if self._cancelled.is_set():
                return  # Already cancelled

            self._cancel_reason = reason
            self._cancelled.set()
            callbacks = list(self._callbacks)

        logger.debug(f"Cancellation requested: {reason or 'no reason given'}")

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Cancellation callback failed: {e}")

    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled.is_set()

    def throw_if_cancelled(self, formatter: Optional[str] = None) -> None:
        """
        Raise RunCancelledError if cancellation was requested.

        Args:
            formatter: Name of the stage about to run, for the error message.

        Raises:
            RunCancelledError: If cancel() has been called.
        """
        if self.is_cancelled():
            message = "Formatting interrupted"
            if self._cancel_reason:
                message = f"Formatting interrupted: {self._cancel_reason}"
            raise RunCancelledError(message, formatter=formatter)

    def register_callback(self, callback: Callable[[], None]) -> None:
        """
        Register a callback to run when cancelled.

        Args:
            callback: A callable with no arguments.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def unregister_callback(self, callback: Callable[[], None]) -> bool:
        """
        Remove a previously registered callback.

        Returns:
            True if the callback was found and removed, False otherwise.
        """
        with self._lock:
            try:
                self._callbacks.remove(callback)
                return True
            except ValueError:
                return False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until cancellation is requested or timeout expires.

        Returns:
            True if cancelled, False if timeout expired.
        """
        return self._cancelled.wait(timeout)

    @property
    def cancel_reason(self) -> Optional[str]:
        """Get the reason for cancellation, if provided."""
        return self._cancel_reason


class CancellationTokenSource:
    """
    Factory for linked cancellation tokens.

    The pipeline runner keeps one source and hands a linked child token to
    every run, so shutting the runner down cancels every run in flight.

    Example:
        ```python
        source = CancellationTokenSource()
        child_token = source.create_linked_token()

        source.cancel()
        assert child_token.is_cancelled()
        ```
    """

    def __init__(self):
        """Initialize a new cancellation token source."""
        self._token = CancellationToken()
        self._links: Dict[int, Callable[[], None]] = {}
        self._lock = threading.Lock()

    @property
    def token(self) -> CancellationToken:
        """Get the main cancellation token."""
        return self._token

    def create_linked_token(self) -> CancellationToken:
        """
        Create a child token cancelled together with this source.

        Returns:
            A new CancellationToken linked to this source.
        """
        child = CancellationToken()

        def cancel_child():
            child.cancel(self._token.cancel_reason)

        with self._lock:
            self._links[id(child)] = cancel_child
        self._token.register_callback(cancel_child)

        return child

    def release(self, child: CancellationToken) -> None:
        """Unlink a child token once the work it guarded has finished."""
        with self._lock:
            callback = self._links.pop(id(child), None)
        if callback is not None:
            self._token.unregister_callback(callback)

    @property
    def linked_count(self) -> int:
        """Number of child tokens still linked to this source."""
        with self._lock:
            return len(self._links)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel the source token and all linked tokens."""
        self._token.cancel(reason)

    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._token.is_cancelled()


_original_sigint_handler = None


def setup_cancellation_handler(
    token: Optional[CancellationToken] = None,
    show_message: bool = True,
    message: str = "\n⚠️  Cancellation requested. Stopping formatters...",
) -> CancellationToken:
    """
    Install a SIGINT (Ctrl+C) handler that cancels a token.

    The first Ctrl+C cancels the token; a second one forces immediate exit.

    Args:
        token: Token to cancel. A new one is created when omitted.
        show_message: Whether to print a message on cancellation.
        message: The message to print when cancelled.

    Returns:
        The CancellationToken that will be cancelled on SIGINT.
    """
    global _original_sigint_handler

    if token is None:
        token = CancellationToken()

    # Track if we're in graceful shutdown
    graceful_shutdown = [False]

    def signal_handler(sig: int, frame) -> None:
        """Handle SIGINT signal."""
        if graceful_shutdown[0]:
            print("\n⚠️  Forced exit.")
            if _original_sigint_handler:
                signal.signal(signal.SIGINT, _original_sigint_handler)
            raise KeyboardInterrupt

        graceful_shutdown[0] = True

        if show_message:
            print(message)

        token.cancel("user interrupted (SIGINT)")

    _original_sigint_handler = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, signal_handler)

    return token


def restore_default_handler() -> None:
    """Restore the SIGINT handler that was active before setup."""
    global _original_sigint_handler

    if _original_sigint_handler:
        signal.signal(signal.SIGINT, _original_sigint_handler)
        _original_sigint_handler = None
