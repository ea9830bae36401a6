"""
Error taxonomy for formatter pipeline runs.

Every failure a pipeline run can produce is a FormatError subclass carrying a
stable ErrorCode and a Severity derived from it. Errors are never raised out
of the pipeline entry points; they travel through the PipelineResult (or the
async callback) so the caller decides whether to surface or merely log them.

Usage:
    from bufformat.core.errors import ExecutionError, ErrorCode, level_for_code

    err = ExecutionError(ErrorCode.NON_ZERO_EXIT, "black exited 123", formatter="black")
    if err.severity is Severity.ERROR:
        ...
"""

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Severity(Enum):
    """
    Severity levels for pipeline errors.

    - INFO: Expected outcome worth logging (superseded run, stale buffer).
    - WARNING: Something the user may want to know about (timeout, missing tool).
    - ERROR: A formatter failed.
    """
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def log_level(self) -> int:
        """Matching stdlib logging level."""
        return {
            Severity.INFO: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.ERROR: logging.ERROR,
        }[self]

    def __ge__(self, other: "Severity") -> bool:
        return self.log_level >= other.log_level

    def __gt__(self, other: "Severity") -> bool:
        return self.log_level > other.log_level

    def __le__(self, other: "Severity") -> bool:
        return self.log_level <= other.log_level

    def __lt__(self, other: "Severity") -> bool:
        return self.log_level < other.log_level


class ErrorCode(Enum):
    """Stable error codes reported alongside every pipeline failure."""
    # Formatter could not be resolved into a runnable command
    UNAVAILABLE = "unavailable"
    # Process exited with a code outside the success set
    NON_ZERO_EXIT = "non_zero_exit"
    # Process exited before consuming its input and produced nothing
    NO_OUTPUT = "no_output"
    # Process could not be started at all
    SPAWN_FAILED = "spawn_failed"
    TIMEOUT = "timeout"
    # Run abandoned because a newer request superseded it
    INTERRUPTED = "interrupted"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    NO_FORMATTERS = "no_formatters"


_EXECUTION_CODES = frozenset({
    ErrorCode.NON_ZERO_EXIT,
    ErrorCode.NO_OUTPUT,
    ErrorCode.SPAWN_FAILED,
})


def level_for_code(code: ErrorCode) -> Severity:
    """
    Map an error code to the severity it should be reported with.

    Args:
        code: The error code of a pipeline failure.

    Returns:
        INFO for concurrent modification and interrupted runs, WARNING for
        timeouts and availability problems, ERROR for everything else.
    """
    if code in (ErrorCode.CONCURRENT_MODIFICATION, ErrorCode.INTERRUPTED):
        return Severity.INFO
    if code in (ErrorCode.TIMEOUT, ErrorCode.UNAVAILABLE, ErrorCode.NO_FORMATTERS):
        return Severity.WARNING
    return Severity.ERROR


def is_execution_error(code: ErrorCode) -> bool:
    """Check whether a code means a formatter process itself misbehaved."""
    return code in _EXECUTION_CODES


class FormatError(Exception):
    """
    Base exception for all pipeline failures.

    Attributes:
        code: Stable classification of the failure.
        message: Human-readable description.
        formatter: Name of the formatter involved, if any.
        details: Extra diagnostic output (usually the process's stderr).
    """

    default_code = ErrorCode.NON_ZERO_EXIT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        formatter: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.formatter = formatter
        self.details = details
        super().__init__(self.message)

    @property
    def severity(self) -> Severity:
        """Severity derived from the error code."""
        return level_for_code(self.code)

    @property
    def is_execution_error(self) -> bool:
        return is_execution_error(self.code)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        result = {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.formatter:
            result["formatter"] = self.formatter
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return self.message


class ResolutionError(FormatError):
    """Formatter unavailable: command not found, condition failed, or cwd missing."""

    default_code = ErrorCode.UNAVAILABLE

    def __init__(self, formatter: str, reason: str):
        self.reason = reason
        super().__init__(
            f"Formatter '{formatter}' unavailable: {reason}",
            formatter=formatter,
        )


class ExecutionError(FormatError):
    """A formatter process failed or produced no usable output."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        formatter: Optional[str] = None,
        details: Optional[str] = None,
        exit_code: Optional[int] = None,
    ):
        if not is_execution_error(code):
            raise ValueError(f"{code} is not an execution error code")
        self.exit_code = exit_code
        super().__init__(message, code=code, formatter=formatter, details=details)


class FormatTimeoutError(FormatError):
    """A synchronous formatter run exceeded its deadline and was killed."""

    default_code = ErrorCode.TIMEOUT

    def __init__(self, formatter: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Formatter '{formatter}' timeout after {timeout_ms}ms",
            formatter=formatter,
        )


class ConcurrentModificationError(FormatError):
    """The live document diverged from the snapshot the pipeline ran against."""

    default_code = ErrorCode.CONCURRENT_MODIFICATION

    def __init__(self, message: str = "Buffer modified during formatting"):
        super().__init__(message)


class NoFormattersError(FormatError):
    """Zero formatters were configured or available for the request."""

    default_code = ErrorCode.NO_FORMATTERS

    def __init__(self, message: str = "No formatters found for buffer"):
        super().__init__(message)


class RunCancelledError(FormatError):
    """The run was abandoned, typically because a newer request superseded it."""

    default_code = ErrorCode.INTERRUPTED

    def __init__(self, message: str = "Formatting interrupted", formatter: Optional[str] = None):
        super().__init__(message, formatter=formatter)
