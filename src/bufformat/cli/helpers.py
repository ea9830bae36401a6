"""
Console and configuration helpers shared by the CLI commands.
"""

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from ..core.errors import Severity

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_CONFIG_NAME = "bufformat.json"
DEFAULT_LOG_NAME = "bufformat.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
RULE_WIDTH = 60


def configure_console() -> None:
    """Let status lines with ✓/✗/⚠ through on consoles that are not UTF-8."""
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if sys.platform == 'win32' and reconfigure is not None:
        reconfigure(encoding='utf-8', errors='replace')


def get_default_config_path() -> str:
    """bufformat.json in the working directory."""
    return os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)


def _log_file_candidates(log_file: str) -> List[str]:
    name = os.path.basename(log_file) or DEFAULT_LOG_NAME
    return [
        log_file,
        os.path.join(tempfile.gettempdir(), name),
        os.path.join(str(Path.home()), name),
    ]


def _open_log_file(log_file: str) -> Tuple[Optional[logging.Handler], Optional[str]]:
    """Open the first writable candidate location for the log file."""
    for candidate in _log_file_candidates(log_file):
        try:
            Path(candidate).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(candidate, encoding='utf-8')
        except OSError as e:
            print(f"⚠ Cannot log to {candidate}: {e}", file=sys.stderr)
            continue
        if candidate != log_file:
            print(f"⚠ Logging to {candidate} instead of {log_file}", file=sys.stderr)
        return handler, candidate
    return None, None


def setup_logging(level: LogLevel = "INFO", log_file: Optional[str] = None) -> Optional[str]:
    """
    Send log records to stderr and, if requested, to a log file.

    A log file that cannot be created is retried in the temp directory and
    then the home directory before giving up on file logging. Stdout is left
    to command output so ``info --json`` stays parseable.

    Returns:
        Path of the log file actually in use, or None.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    path = None
    if log_file:
        handler, path = _open_log_file(log_file)
        if handler is None:
            print(f"⚠ No writable location for {log_file}; logging to stderr only", file=sys.stderr)
        else:
            handlers.append(handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    if path:
        logging.getLogger(__name__).debug(f"Log file: {path}")
    return path


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Read a bufformat.json file.

    Raises:
        FileNotFoundError: The file does not exist.
        ValueError: The path is not a readable .json file, or the content is
            not a JSON object.
    """
    path = Path(config_path)
    if path.suffix.lower() != '.json':
        raise ValueError(f"Configuration file must have a .json extension: {config_path}")
    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path} "
            f"(create {DEFAULT_CONFIG_NAME} or pass --config)"
        )
    if not path.is_file():
        raise ValueError(f"Configuration path is not a file: {config_path}")

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {config_path} at line {e.lineno}, column {e.colno}: {e.msg}")
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Cannot read {config_path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a JSON object, got {type(data).__name__}")
    return data


def print_section(title: str) -> None:
    """Print a section title between rules."""
    print("\n" + "=" * RULE_WIDTH)
    print(title)
    print("=" * RULE_WIDTH)


def print_rule() -> None:
    print("=" * RULE_WIDTH + "\n")


def format_status_counts(counts: Dict[str, int], order: Iterable[str] = ()) -> str:
    """
    One ``  status: count`` line per status.

    Statuses listed in ``order`` come first in that order, the rest follow
    alphabetically.
    """
    order = list(order)
    ranked = sorted(counts, key=lambda s: (order.index(s) if s in order else len(order), s))
    return "\n".join(f"  {status}: {counts[status]}" for status in ranked)


class ConsoleNotifier:
    """Notifier printing ✗/⚠ prefixed lines for the CLI."""

    _PREFIXES = {
        Severity.ERROR: "✗",
        Severity.WARNING: "⚠",
        Severity.INFO: " ",
    }

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def notify(self, message: str, severity: Severity) -> None:
        if self.quiet and severity < Severity.ERROR:
            return
        print(f"{self._PREFIXES[severity]} {message}")
