"""
Cross-cutting concerns for the formatter pipeline.

- Error taxonomy (FormatError and subclasses, ErrorCode, Severity)
- Cancellation handling (CancellationToken, CancellationTokenSource)
- User notifications (Notifier, LoggingNotifier)

Usage:
    from bufformat.core import CancellationToken, ExecutionError, ErrorCode
"""

from .errors import (
    Severity,
    ErrorCode,
    FormatError,
    ResolutionError,
    ExecutionError,
    FormatTimeoutError,
    ConcurrentModificationError,
    NoFormattersError,
    RunCancelledError,
    level_for_code,
    is_execution_error,
)

from .cancellation import (
    CancellationToken,
    CancellationTokenSource,
    setup_cancellation_handler,
    restore_default_handler,
)

from .notify import Notifier, LoggingNotifier, RecordingNotifier

__all__ = [
    # Errors
    "Severity",
    "ErrorCode",
    "FormatError",
    "ResolutionError",
    "ExecutionError",
    "FormatTimeoutError",
    "ConcurrentModificationError",
    "NoFormattersError",
    "RunCancelledError",
    "level_for_code",
    "is_execution_error",
    # Cancellation
    "CancellationToken",
    "CancellationTokenSource",
    "setup_cancellation_handler",
    "restore_default_handler",
    # Notifications
    "Notifier",
    "LoggingNotifier",
    "RecordingNotifier",
]
