"""
Helpers for writing formatter definitions.

Example:
    ```python
    FormatterSpec(
        name="prettier",
        command="prettier",
        args=["--stdin-filepath", "$FILENAME"],
        cwd=root_file([".prettierrc", "package.json"]),
    )
    ```
"""

import os
from typing import Callable, Iterable, Optional, Sequence

from ..models.pipeline import ExecutionContext


def find_upward(start: str, markers: Sequence[str]) -> Optional[str]:
    """
    Walk up from ``start`` looking for a directory containing any marker.

    Returns:
        The first directory containing a marker, or None.
    """
    current = os.path.abspath(start)
    while True:
        for marker in markers:
            if os.path.exists(os.path.join(current, marker)):
                return current
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def root_file(markers: Iterable[str]) -> Callable[[ExecutionContext], Optional[str]]:
    """
    Build a cwd resolver returning the nearest directory with a marker file.

    The search starts at the buffer's directory, not the temp file's.
    """
    markers = tuple(markers)

    def resolve(ctx: ExecutionContext) -> Optional[str]:
        return find_upward(ctx.dirname, markers)

    return resolve


def has_root_file(markers: Iterable[str]) -> Callable[[ExecutionContext], bool]:
    """Build a condition that is true when a marker file is found upward."""
    resolver = root_file(markers)

    def condition(ctx: ExecutionContext) -> bool:
        return resolver(ctx) is not None

    return condition
