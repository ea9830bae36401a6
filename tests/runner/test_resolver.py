"""Tests for the config resolver."""

import sys
from unittest import mock

import pytest

from bufformat.core.errors import ErrorCode, ResolutionError
from bufformat.models.formatter import FormatterSpec
from bufformat.models.pipeline import ExecutionContext
from bufformat.models.range import Range
from bufformat.runner.resolver import (
    REASON_COMMAND_NOT_FOUND,
    REASON_CONDITION_FAILED,
    REASON_NO_CWD,
    expand_args,
    merge_env,
    placeholders,
    resolve_formatter,
)


@pytest.fixture
def ctx():
    return ExecutionContext(
        document_id=1,
        filename="/work/my project/app.py",
        dirname="/work/my project",
        original_filename="/work/my project/app.py",
    )


@pytest.fixture
def range_ctx(ctx):
    return ExecutionContext(
        document_id=ctx.document_id,
        filename=ctx.filename,
        dirname=ctx.dirname,
        range=Range.from_tuples((2, 0), (4, 7)),
        original_filename=ctx.original_filename,
    )


@pytest.mark.unit
class TestExpandArgs:
    """Tests for placeholder substitution."""

    def test_filename_and_dirname(self, ctx):
        args = expand_args(["--stdin-filename", "$FILENAME", "--root=$DIRNAME"], ctx)
        assert args == ["--stdin-filename", "/work/my project/app.py", "--root=/work/my project"]

    def test_string_template_is_split_before_substitution(self, ctx):
        args = expand_args("--quiet --stdin-filename $FILENAME -", ctx)
        assert args == ["--quiet", "--stdin-filename", "/work/my project/app.py", "-"]

    def test_range_placeholders(self, range_ctx):
        args = expand_args(["--range", "$RANGE_START_LINE:$RANGE_START_COL-$RANGE_END_LINE:$RANGE_END_COL"], range_ctx)
        assert args == ["--range", "2:0-4:7"]

    def test_range_placeholders_absent_without_range(self, ctx):
        assert "$RANGE_START_LINE" not in placeholders(ctx)


@pytest.mark.unit
class TestMergeEnv:
    """Tests for environment merging."""

    def test_override_and_remove(self):
        env = merge_env({"A": "1", "B": None, "C": 3}, {"B": "x", "D": "keep"})
        assert env == {"A": "1", "C": "3", "D": "keep"}


@pytest.mark.unit
class TestResolveFormatter:
    """Tests for resolve_formatter()."""

    def test_resolves_concrete_command(self, ctx):
        spec = FormatterSpec(
            name="py",
            command=sys.executable,
            args=["-c", "pass", "$FILENAME"],
            env={"FORMATTER_MODE": "strict"},
            exit_codes=[0, 2],
        )
        resolved = resolve_formatter(spec, ctx, base_env={"PATH": "/bin"})
        assert resolved.argv == [sys.executable, "-c", "pass", "/work/my project/app.py"]
        assert resolved.env == {"PATH": "/bin", "FORMATTER_MODE": "strict"}
        assert resolved.exit_codes == frozenset({0, 2})
        assert resolved.cwd is None

    def test_computed_fields_see_context(self, ctx):
        spec = FormatterSpec(
            name="py",
            command=lambda c: sys.executable,
            args=lambda c: ["-c", "pass", c.dirname],
            cwd=lambda c: c.dirname,
        )
        resolved = resolve_formatter(spec, ctx)
        assert resolved.args[-1] == "/work/my project"
        assert resolved.cwd == "/work/my project"

    def test_range_args_preferred_with_range(self, range_ctx, ctx):
        spec = FormatterSpec(
            name="py",
            command=sys.executable,
            args=["whole"],
            range_args=["part", "$RANGE_START_LINE"],
        )
        assert resolve_formatter(spec, range_ctx).args == ("part", "2")
        assert resolve_formatter(spec, ctx).args == ("whole",)

    def test_missing_command(self, ctx):
        spec = FormatterSpec(name="nope", command="definitely-not-a-real-formatter-xyz")
        with pytest.raises(ResolutionError) as exc_info:
            resolve_formatter(spec, ctx)
        assert exc_info.value.reason == REASON_COMMAND_NOT_FOUND
        assert exc_info.value.code is ErrorCode.UNAVAILABLE

    def test_command_lookup_uses_path(self, ctx):
        spec = FormatterSpec(name="py", command=sys.executable)
        with mock.patch("bufformat.runner.resolver.shutil.which", return_value=None) as which:
            with pytest.raises(ResolutionError):
                resolve_formatter(spec, ctx)
        which.assert_called_once_with(sys.executable)

    def test_condition_false(self, ctx):
        spec = FormatterSpec(name="py", command=sys.executable, condition=lambda c: False)
        with pytest.raises(ResolutionError) as exc_info:
            resolve_formatter(spec, ctx)
        assert exc_info.value.reason == REASON_CONDITION_FAILED

    def test_required_cwd_missing(self, ctx):
        spec = FormatterSpec(name="py", command=sys.executable, cwd=lambda c: None, require_cwd=True)
        with pytest.raises(ResolutionError) as exc_info:
            resolve_formatter(spec, ctx)
        assert exc_info.value.reason == REASON_NO_CWD

    def test_optional_cwd_missing_is_fine(self, ctx):
        spec = FormatterSpec(name="py", command=sys.executable, cwd=lambda c: None)
        assert resolve_formatter(spec, ctx).cwd is None
