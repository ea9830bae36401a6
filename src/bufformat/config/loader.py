"""
Configuration loader.

Turns the JSON configuration into a Config and a ready FormatterRegistry.

Example configuration (bufformat.json):

    {
        "timeout_ms": 2000,
        "notify_on_error": true,
        "log_level": "INFO",
        "formatters_by_ext": {
            ".py": ["isort", ["ruff_format", "black"]],
            "_": ["trim_whitespace"]
        },
        "formatters": {
            "trim_whitespace": {
                "command": "sed",
                "args": ["-e", "s/[ \\t]*$//"]
            },
            "black": {"inherit": "black", "args": ["--fast", "-q", "-"]}
        }
    }
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..formatters.builtin import get_builtin
from ..formatters.util import root_file
from ..models.formatter import FormatterSpec, FormatterUnit, parse_units
from ..models.pipeline import DEFAULT_TIMEOUT_MS
from .registry import FormatterRegistry

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TOP_LEVEL_KEYS = {
    "formatters",
    "formatters_by_ext",
    "timeout_ms",
    "notify_on_error",
    "log_level",
    "log_file",
}

_FORMATTER_KEYS = {
    "command",
    "args",
    "range_args",
    "stdin",
    "exit_codes",
    "env",
    "cwd",
    "root_markers",
    "require_cwd",
    "allow_empty_output",
    "inherit",
}

FALLBACK_KEY = "_"
ALWAYS_KEY = "*"


@dataclass
class Config:
    """
    Parsed configuration.

    Attributes:
        formatters: Formatter definitions by name.
        formatters_by_ext: Raw formatter units by file extension.
        timeout_ms: Default deadline for synchronous runs.
        notify_on_error: Surface formatter failures to the user.
        log_level: Logging level name.
        log_file: Optional log file path.
    """
    formatters: Dict[str, FormatterSpec] = field(default_factory=dict)
    formatters_by_ext: Dict[str, List[Any]] = field(default_factory=dict)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    notify_on_error: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def units_for(self, path: str) -> List[FormatterUnit]:
        """
        Formatter units configured for a file path.

        The extension's list is used when present, the ``"_"`` list
        otherwise; ``"*"`` units are appended in both cases.
        """
        ext = os.path.splitext(path)[1].lower()
        raw = self.formatters_by_ext.get(ext)
        if raw is None:
            raw = self.formatters_by_ext.get(FALLBACK_KEY, [])
        raw = list(raw) + list(self.formatters_by_ext.get(ALWAYS_KEY, []))
        return parse_units(raw)


def _check_type(value: Any, expected, what: str) -> Any:
    if not isinstance(value, expected):
        names = expected.__name__ if isinstance(expected, type) else "/".join(t.__name__ for t in expected)
        raise ValueError(f"{what} must be {names}, got {type(value).__name__}")
    return value


def _check_str_list(value: Any, what: str) -> List[str]:
    if isinstance(value, str):
        return value
    _check_type(value, list, what)
    for item in value:
        _check_type(item, str, f"{what} entries")
    return list(value)


def load_formatter(name: str, raw: Mapping[str, Any]) -> FormatterSpec:
    """
    Build a FormatterSpec from one ``formatters`` entry.

    Args:
        name: Formatter name.
        raw: The entry's JSON object.

    Returns:
        The formatter definition.

    Raises:
        ValueError: If the entry is malformed.
    """
    what = f"formatters.{name}"
    _check_type(raw, dict, what)
    unknown = set(raw) - _FORMATTER_KEYS
    if unknown:
        raise ValueError(f"{what}: unknown key(s) {', '.join(sorted(unknown))}")
    if "cwd" in raw and "root_markers" in raw:
        raise ValueError(f"{what}: 'cwd' and 'root_markers' are mutually exclusive")

    fields: Dict[str, Any] = {}
    base_name = raw.get("inherit")
    if base_name is not None:
        _check_type(base_name, str, f"{what}.inherit")
        base = get_builtin(base_name)
        if base is None:
            raise ValueError(f"{what}: cannot inherit from unknown built-in '{base_name}'")
        fields = {
            "command": base.command,
            "args": base.args,
            "range_args": base.range_args,
            "cwd": base.cwd,
            "env": base.env,
            "condition": base.condition,
            "require_cwd": base.require_cwd,
            "exit_codes": base.exit_codes,
            "stdin": base.stdin,
            "allow_empty_output": base.allow_empty_output,
            "meta": base.meta,
        }

    if "command" in raw:
        fields["command"] = _check_type(raw["command"], str, f"{what}.command")
    if "command" not in fields:
        raise ValueError(f"{what}: 'command' is required")
    if "args" in raw:
        fields["args"] = _check_str_list(raw["args"], f"{what}.args")
    if "range_args" in raw:
        fields["range_args"] = _check_str_list(raw["range_args"], f"{what}.range_args")
    for flag in ("stdin", "require_cwd", "allow_empty_output"):
        if flag in raw:
            fields[flag] = _check_type(raw[flag], bool, f"{what}.{flag}")
    if "exit_codes" in raw:
        codes = _check_type(raw["exit_codes"], list, f"{what}.exit_codes")
        for code in codes:
            if isinstance(code, bool) or not isinstance(code, int):
                raise ValueError(f"{what}.exit_codes entries must be integers, got {code!r}")
        if not codes:
            raise ValueError(f"{what}.exit_codes cannot be empty")
        fields["exit_codes"] = codes
    if "env" in raw:
        env = _check_type(raw["env"], dict, f"{what}.env")
        for key, value in env.items():
            if value is not None and not isinstance(value, (str, int, float)):
                raise ValueError(f"{what}.env.{key} must be a string or null")
        fields["env"] = dict(env)
    if "cwd" in raw:
        fields["cwd"] = _check_type(raw["cwd"], str, f"{what}.cwd")
    if "root_markers" in raw:
        markers = _check_str_list(raw["root_markers"], f"{what}.root_markers")
        fields["cwd"] = root_file([markers] if isinstance(markers, str) else markers)

    return FormatterSpec(name=name, **fields)


def parse_config(data: Mapping[str, Any]) -> Config:
    """
    Validate a configuration dictionary and build a Config.

    Raises:
        ValueError: If the configuration is malformed.
    """
    _check_type(data, dict, "configuration")
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")

    config = Config()

    raw_formatters = _check_type(data.get("formatters", {}), dict, "formatters")
    for name, raw in raw_formatters.items():
        config.formatters[name] = load_formatter(name, raw)

    by_ext = _check_type(data.get("formatters_by_ext", {}), dict, "formatters_by_ext")
    for ext, units in by_ext.items():
        _check_type(units, list, f"formatters_by_ext.{ext}")
        try:
            parse_units(units)
        except TypeError as e:
            raise ValueError(f"formatters_by_ext.{ext}: {e}")
        key = ext if ext in (FALLBACK_KEY, ALWAYS_KEY) or ext.startswith(".") else f".{ext}"
        config.formatters_by_ext[key.lower()] = list(units)

    if "timeout_ms" in data:
        timeout = data["timeout_ms"]
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ValueError(f"timeout_ms must be a positive integer, got {timeout!r}")
        config.timeout_ms = timeout
    if "notify_on_error" in data:
        config.notify_on_error = _check_type(data["notify_on_error"], bool, "notify_on_error")
    if "log_level" in data:
        level = _check_type(data["log_level"], str, "log_level").upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {level!r}")
        config.log_level = level
    if data.get("log_file") is not None:
        config.log_file = _check_type(data["log_file"], str, "log_file")

    logger.debug(
        f"Loaded configuration: {len(config.formatters)} formatter(s), "
        f"{len(config.formatters_by_ext)} extension mapping(s)"
    )
    return config


def build_registry(config: Config, use_builtins: bool = True) -> FormatterRegistry:
    """Create a registry set up with the configured formatters."""
    return FormatterRegistry(use_builtins=use_builtins).setup(config.formatters)
