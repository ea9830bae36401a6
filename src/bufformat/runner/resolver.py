"""
Config Resolver.

Turns a FormatterSpec into a ResolvedFormatter for one ExecutionContext:
concrete command, argument list with placeholders substituted, working
directory and environment. A formatter that cannot run in this context
raises ResolutionError instead.
"""

import logging
import os
import shlex
import shutil
from typing import Dict, List, Mapping, Optional

from ..core.errors import ResolutionError
from ..models.formatter import FormatterSpec, ResolvedFormatter
from ..models.pipeline import ExecutionContext

logger = logging.getLogger(__name__)

REASON_COMMAND_NOT_FOUND = "Command not found"
REASON_CONDITION_FAILED = "Condition failed"
REASON_NO_CWD = "Root directory not found"


def placeholders(ctx: ExecutionContext) -> Dict[str, str]:
    """Placeholder values available to argument templates."""
    values = {
        "$FILENAME": ctx.filename,
        "$DIRNAME": ctx.dirname,
    }
    if ctx.range is not None:
        values.update({
            "$RANGE_START_LINE": str(ctx.range.start.line),
            "$RANGE_START_COL": str(ctx.range.start.col),
            "$RANGE_END_LINE": str(ctx.range.end.line),
            "$RANGE_END_COL": str(ctx.range.end.col),
        })
    return values


def expand_args(raw_args, ctx: ExecutionContext) -> List[str]:
    """
    Expand an argument template into a concrete argument list.

    A string template is split with shell rules before substitution so a
    path containing spaces stays one argument.
    """
    if isinstance(raw_args, str):
        raw_args = shlex.split(raw_args)
    values = placeholders(ctx)
    # Longest names first so $RANGE_START_LINE is not eaten by a shorter key
    keys = sorted(values, key=len, reverse=True)
    expanded = []
    for arg in raw_args:
        arg = str(arg)
        for key in keys:
            if key in arg:
                arg = arg.replace(key, values[key])
        expanded.append(arg)
    return expanded


def merge_env(
    overrides: Optional[Mapping[str, object]],
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Merge formatter environment entries over the inherited environment.

    Entries from the formatter win. A value of None removes the variable.
    """
    env = dict(os.environ if base_env is None else base_env)
    for key, value in (overrides or {}).items():
        if value is None:
            env.pop(key, None)
        else:
            env[str(key)] = str(value)
    return env


def resolve_command(spec: FormatterSpec, ctx: ExecutionContext) -> str:
    """Evaluate the command field."""
    command = spec.command.resolve(ctx)
    if not command:
        raise ResolutionError(spec.name, REASON_COMMAND_NOT_FOUND)
    return str(command)


def resolve_cwd(spec: FormatterSpec, ctx: ExecutionContext) -> Optional[str]:
    """Evaluate the working-directory resolver, if the formatter has one."""
    if spec.cwd is None:
        return None
    cwd = spec.cwd.resolve(ctx)
    return str(cwd) if cwd else None


def resolve_formatter(
    spec: FormatterSpec,
    ctx: ExecutionContext,
    base_env: Optional[Mapping[str, str]] = None,
) -> ResolvedFormatter:
    """
    Resolve a formatter's dynamic fields against a context.

    Args:
        spec: The formatter configuration.
        ctx: Context of the document being formatted.
        base_env: Environment to inherit; defaults to ``os.environ``.

    Returns:
        A ResolvedFormatter ready to execute.

    Raises:
        ResolutionError: If the command is not executable, a required working
            directory is missing, or the formatter's condition is false.
    """
    command = resolve_command(spec, ctx)
    if shutil.which(command) is None:
        raise ResolutionError(spec.name, REASON_COMMAND_NOT_FOUND)

    if ctx.range is not None and spec.range_args is not None:
        raw_args = spec.range_args.resolve(ctx)
    else:
        raw_args = spec.args.resolve(ctx)
    args = expand_args(raw_args or [], ctx)

    cwd = resolve_cwd(spec, ctx)
    if cwd is None and spec.require_cwd:
        raise ResolutionError(spec.name, REASON_NO_CWD)

    env = merge_env(spec.env.resolve(ctx), base_env)

    if spec.condition is not None and not spec.condition.resolve(ctx):
        raise ResolutionError(spec.name, REASON_CONDITION_FAILED)

    logger.debug(f"Resolved '{spec.name}': {[command, *args]} (cwd={cwd})")
    return ResolvedFormatter(
        name=spec.name,
        command=command,
        args=tuple(args),
        cwd=cwd,
        env=env,
        exit_codes=frozenset(spec.exit_codes),
        stdin=spec.stdin,
        allow_empty_output=spec.allow_empty_output,
    )
