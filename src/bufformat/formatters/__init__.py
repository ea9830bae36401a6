"""Built-in formatter definitions and helpers for writing new ones."""

from .builtin import BUILTIN_FORMATTERS, get_builtin
from .util import find_upward, root_file, has_root_file

__all__ = [
    "BUILTIN_FORMATTERS",
    "get_builtin",
    "find_upward",
    "root_file",
    "has_root_file",
]
