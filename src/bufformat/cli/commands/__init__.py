"""
CLI command implementations.

- base.py: Base command class and exit codes
- format.py: Format files in place
- info.py: Formatter availability report
"""

from .base import (
    BaseCommand,
    EXIT_OK,
    EXIT_FAILED,
    EXIT_USAGE,
    EXIT_CANCELLED,
)
from .format import FormatCommand
from .info import InfoCommand


__all__ = [
    # Base
    'BaseCommand',
    'EXIT_OK',
    'EXIT_FAILED',
    'EXIT_USAGE',
    'EXIT_CANCELLED',
    # Commands
    'FormatCommand',
    'InfoCommand',
]
