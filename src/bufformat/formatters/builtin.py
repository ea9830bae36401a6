"""
Built-in formatter definitions.

These are used when a formatter name has no entry in the user's
configuration. Each definition only describes how to invoke the tool; the
tools themselves must be installed separately.
"""

from typing import Callable, Dict, Optional

from ..models.formatter import FormatterMeta, FormatterSpec
from .util import root_file

_PYTHON_ROOT = ["pyproject.toml", "setup.cfg", "setup.py", ".git"]


def black() -> FormatterSpec:
    return FormatterSpec(
        name="black",
        command="black",
        args=["--stdin-filename", "$FILENAME", "--quiet", "-"],
        cwd=root_file(_PYTHON_ROOT),
        meta=FormatterMeta(
            url="https://github.com/psf/black",
            description="The uncompromising Python code formatter.",
        ),
    )


def isort() -> FormatterSpec:
    return FormatterSpec(
        name="isort",
        command="isort",
        args=["--stdout", "--filename", "$FILENAME", "-"],
        cwd=root_file([".isort.cfg", "pyproject.toml", "setup.cfg", "tox.ini", ".editorconfig"]),
        meta=FormatterMeta(
            url="https://github.com/PyCQA/isort",
            description="Python utility to sort imports alphabetically and by section.",
        ),
    )


def ruff_format() -> FormatterSpec:
    return FormatterSpec(
        name="ruff_format",
        command="ruff",
        args=["format", "--force-exclude", "--stdin-filename", "$FILENAME", "-"],
        range_args=[
            "format",
            "--force-exclude",
            "--range",
            "$RANGE_START_LINE:$RANGE_START_COL-$RANGE_END_LINE:$RANGE_END_COL",
            "--stdin-filename",
            "$FILENAME",
            "-",
        ],
        cwd=root_file(["pyproject.toml", "ruff.toml", ".ruff.toml"]),
        meta=FormatterMeta(
            url="https://docs.astral.sh/ruff/",
            description="An extremely fast Python formatter.",
        ),
    )


def prettier() -> FormatterSpec:
    return FormatterSpec(
        name="prettier",
        command="prettier",
        args=["--stdin-filepath", "$FILENAME"],
        cwd=root_file([".prettierrc", ".prettierrc.json", "prettier.config.js", "package.json"]),
        meta=FormatterMeta(
            url="https://prettier.io/",
            description="Opinionated code formatter for web languages.",
        ),
    )


def shfmt() -> FormatterSpec:
    # Formats in place; the text travels through a temp file
    return FormatterSpec(
        name="shfmt",
        command="shfmt",
        args=["-w", "$FILENAME"],
        stdin=False,
        meta=FormatterMeta(
            url="https://github.com/mvdan/sh",
            description="A shell parser, formatter, and interpreter.",
        ),
    )


BUILTIN_FORMATTERS: Dict[str, Callable[[], FormatterSpec]] = {
    "black": black,
    "isort": isort,
    "ruff_format": ruff_format,
    "prettier": prettier,
    "shfmt": shfmt,
}


def get_builtin(name: str) -> Optional[FormatterSpec]:
    """Return a fresh built-in definition, or None if the name is unknown."""
    factory = BUILTIN_FORMATTERS.get(name)
    return factory() if factory else None
