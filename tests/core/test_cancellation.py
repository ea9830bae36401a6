"""
Tests for the cancellation module.

Tests cover the CancellationToken class, CancellationTokenSource and
signal handling.
"""

import pytest
import threading
import time
import signal

from bufformat.core.cancellation import (
    CancellationToken,
    CancellationTokenSource,
    setup_cancellation_handler,
    restore_default_handler,
)
from bufformat.core.errors import ErrorCode, RunCancelledError


@pytest.mark.resilience
class TestCancellationToken:
    """Tests for CancellationToken class."""

    def test_initial_state(self):
        """Test that token starts in non-cancelled state."""
        token = CancellationToken()
        assert token.is_cancelled() is False
        assert token.cancel_reason is None

    def test_cancel_with_reason(self):
        """Test cancellation with reason."""
        token = CancellationToken()
        token.cancel(reason="superseded by a newer request")
        assert token.is_cancelled() is True
        assert token.cancel_reason == "superseded by a newer request"

    def test_cancel_idempotent(self):
        """Test that multiple cancel() calls are safe."""
        token = CancellationToken()
        token.cancel("First")
        token.cancel("Second")
        assert token.is_cancelled() is True
        assert token.cancel_reason == "First"

    def test_throw_if_cancelled_when_not_cancelled(self):
        """Test throw_if_cancelled() does nothing when not cancelled."""
        token = CancellationToken()
        token.throw_if_cancelled()
        token.throw_if_cancelled("black")

    def test_throw_if_cancelled_raises_interrupted(self):
        """Test throw_if_cancelled() raises an INTERRUPTED error."""
        token = CancellationToken()
        token.cancel("superseded")

        with pytest.raises(RunCancelledError) as exc_info:
            token.throw_if_cancelled("black")

        assert exc_info.value.code is ErrorCode.INTERRUPTED
        assert exc_info.value.formatter == "black"
        assert "superseded" in exc_info.value.message

    def test_multiple_callbacks_executed(self):
        """Test that all callbacks are executed in order."""
        token = CancellationToken()
        call_order = []

        token.register_callback(lambda: call_order.append(1))
        token.register_callback(lambda: call_order.append(2))
        token.register_callback(lambda: call_order.append(3))

        token.cancel()

        assert call_order == [1, 2, 3]

    def test_callback_exception_does_not_prevent_others(self):
        """Test that callback exceptions don't prevent other callbacks."""
        token = CancellationToken()
        results = []

        def callback_ok():
            results.append("ok")

        def callback_error():
            raise RuntimeError("Callback failed")

        token.register_callback(callback_ok)
        token.register_callback(callback_error)
        token.register_callback(callback_ok)

        token.cancel()

        assert results == ["ok", "ok"]

    def test_callback_registered_after_cancel_runs_immediately(self):
        """A late callback still runs, so a late process is still killed."""
        token = CancellationToken()
        token.cancel()
        called = []

        token.register_callback(lambda: called.append(True))

        assert called == [True]

    def test_unregister_callback(self):
        """Test callback unregistration."""
        token = CancellationToken()
        callback_called = [False]

        def on_cancel():
            callback_called[0] = True

        token.register_callback(on_cancel)
        assert token.unregister_callback(on_cancel) is True
        token.cancel()
        assert callback_called[0] is False

    def test_unregister_nonexistent_callback(self):
        """Test unregistering callback that was never registered."""
        token = CancellationToken()
        assert token.unregister_callback(lambda: None) is False

    def test_wait_returns_true_when_cancelled(self):
        """Test wait() returns True when cancelled from another thread."""
        token = CancellationToken()

        def cancel_later():
            time.sleep(0.05)
            token.cancel()

        thread = threading.Thread(target=cancel_later)
        thread.start()
        result = token.wait(timeout=1.0)
        thread.join()

        assert result is True

    def test_wait_returns_false_on_timeout(self):
        """Test wait() returns False on timeout."""
        token = CancellationToken()
        assert token.wait(timeout=0.05) is False
        assert token.is_cancelled() is False


@pytest.mark.resilience
class TestCancellationTokenSource:
    """Tests for CancellationTokenSource class."""

    def test_source_cancel_cancels_token(self):
        """Test that cancelling source cancels its token."""
        source = CancellationTokenSource()
        assert source.is_cancelled() is False

        source.cancel()

        assert source.is_cancelled() is True
        assert source.token.is_cancelled() is True

    def test_linked_token_cancelled_with_parent(self):
        """Test that linked tokens are cancelled with parent."""
        source = CancellationTokenSource()
        child = source.create_linked_token()

        source.cancel("runner shut down")

        assert child.is_cancelled() is True
        assert child.cancel_reason == "runner shut down"

    def test_cancelling_child_leaves_siblings_alone(self):
        """Superseding one run must not affect runs on other documents."""
        source = CancellationTokenSource()
        first = source.create_linked_token()
        second = source.create_linked_token()

        first.cancel("superseded")

        assert first.is_cancelled() is True
        assert second.is_cancelled() is False
        assert source.is_cancelled() is False

    def test_release_unlinks_child(self):
        """Released children are no longer cancelled with the source."""
        source = CancellationTokenSource()
        child = source.create_linked_token()
        assert source.linked_count == 1

        source.release(child)
        source.cancel()

        assert source.linked_count == 0
        assert child.is_cancelled() is False


class TestSignalHandler:
    """Tests for signal handler setup."""

    def test_setup_returns_token(self):
        """Test that setup returns a cancellation token."""
        try:
            token = setup_cancellation_handler(show_message=False)
            assert isinstance(token, CancellationToken)
            assert token.is_cancelled() is False
        finally:
            restore_default_handler()

    def test_setup_uses_given_token(self):
        """The handler cancels the token it was given."""
        token = CancellationToken()
        try:
            assert setup_cancellation_handler(token, show_message=False) is token
        finally:
            restore_default_handler()

    def test_restore_handler(self):
        """Test that restore_default_handler works."""
        original_handler = signal.getsignal(signal.SIGINT)

        try:
            setup_cancellation_handler(show_message=False)
            assert signal.getsignal(signal.SIGINT) != original_handler

            restore_default_handler()
            assert signal.getsignal(signal.SIGINT) == original_handler
        finally:
            signal.signal(signal.SIGINT, original_handler)
