"""Tests for the pipeline error taxonomy."""

import logging

import pytest

from bufformat.core.errors import (
    ConcurrentModificationError,
    ErrorCode,
    ExecutionError,
    FormatError,
    FormatTimeoutError,
    NoFormattersError,
    ResolutionError,
    RunCancelledError,
    Severity,
    is_execution_error,
    level_for_code,
)


@pytest.mark.unit
class TestLevelForCode:
    """Severity mapping for every error code."""

    @pytest.mark.parametrize("code", [ErrorCode.CONCURRENT_MODIFICATION, ErrorCode.INTERRUPTED])
    def test_info_codes(self, code):
        assert level_for_code(code) is Severity.INFO

    @pytest.mark.parametrize(
        "code", [ErrorCode.TIMEOUT, ErrorCode.UNAVAILABLE, ErrorCode.NO_FORMATTERS]
    )
    def test_warning_codes(self, code):
        assert level_for_code(code) is Severity.WARNING

    @pytest.mark.parametrize(
        "code", [ErrorCode.NON_ZERO_EXIT, ErrorCode.NO_OUTPUT, ErrorCode.SPAWN_FAILED]
    )
    def test_error_codes(self, code):
        assert level_for_code(code) is Severity.ERROR
        assert is_execution_error(code) is True

    def test_timeout_is_not_an_execution_error(self):
        assert is_execution_error(ErrorCode.TIMEOUT) is False

    def test_severity_ordering(self):
        assert Severity.INFO < Severity.WARNING < Severity.ERROR
        assert Severity.ERROR >= Severity.WARNING
        assert Severity.WARNING.log_level == logging.WARNING


@pytest.mark.unit
class TestErrorClasses:
    """Each subclass carries its code and message."""

    def test_resolution_error(self):
        err = ResolutionError("black", "Command not found")
        assert err.code is ErrorCode.UNAVAILABLE
        assert err.reason == "Command not found"
        assert str(err) == "Formatter 'black' unavailable: Command not found"
        assert err.severity is Severity.WARNING

    def test_execution_error(self):
        err = ExecutionError(
            ErrorCode.NON_ZERO_EXIT, "boom", formatter="black", details="stderr", exit_code=1
        )
        assert err.exit_code == 1
        assert err.is_execution_error is True
        assert err.to_dict() == {
            "code": "non_zero_exit",
            "severity": "error",
            "message": "boom",
            "formatter": "black",
            "details": "stderr",
        }

    def test_execution_error_rejects_other_codes(self):
        with pytest.raises(ValueError):
            ExecutionError(ErrorCode.TIMEOUT, "not an execution failure")

    def test_timeout_error(self):
        err = FormatTimeoutError("slow", 100)
        assert err.code is ErrorCode.TIMEOUT
        assert err.timeout_ms == 100
        assert err.message == "Formatter 'slow' timeout after 100ms"

    def test_defaults(self):
        assert ConcurrentModificationError().code is ErrorCode.CONCURRENT_MODIFICATION
        assert NoFormattersError().message == "No formatters found for buffer"
        assert RunCancelledError().severity is Severity.INFO

    def test_all_are_format_errors(self):
        for err in (
            ResolutionError("x", "y"),
            FormatTimeoutError("x", 1),
            ConcurrentModificationError(),
            NoFormattersError(),
            RunCancelledError(),
        ):
            assert isinstance(err, FormatError)
