"""
CLI module for bufformat.

- commands/: Command implementations
  - base.py: Base command class and exit codes
  - format.py: format command
  - info.py: info command
- parsers.py: Argument parsing configuration
- helpers.py: Shared CLI utilities
"""

from .commands import (
    BaseCommand,
    FormatCommand,
    InfoCommand,
)

from .parsers import create_argument_parser

from .helpers import (
    ConsoleNotifier,
    load_config,
    get_default_config_path,
    setup_logging,
)

__all__ = [
    # Commands
    'BaseCommand',
    'FormatCommand',
    'InfoCommand',
    # Parsers
    'create_argument_parser',
    # Helpers
    'ConsoleNotifier',
    'load_config',
    'get_default_config_path',
    'setup_logging',
]
