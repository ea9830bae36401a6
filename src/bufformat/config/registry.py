"""
Formatter registry.

Holds the named formatter table the caller facade resolves formatter names
against. Entries are either a FormatterSpec or a factory called with the
document being formatted, so a definition can depend on the buffer (return
None from the factory to opt out). Names with no entry fall back to the
built-in definitions.

The registry is explicit state: build one, call setup() with the configured
formatters, pass it to api.format(), and teardown() when done.

Usage:
    registry = FormatterRegistry().setup({"black": black_spec})
    specs = registry.resolve_units(["isort", ["black", "ruff_format"]], doc)
"""

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ..buffer.document import Document
from ..core.errors import ResolutionError, Severity
from ..core.notify import Notifier
from ..formatters.builtin import BUILTIN_FORMATTERS, get_builtin
from ..models.formatter import (
    Alternation,
    FormatterInfo,
    FormatterSpec,
    Single,
    parse_units,
)
from ..runner.context import build_context
from ..runner.resolver import resolve_command, resolve_cwd, resolve_formatter

logger = logging.getLogger(__name__)

FormatterFactory = Callable[[Document], Optional[FormatterSpec]]
FormatterEntry = Union[FormatterSpec, FormatterFactory]

MSG_NO_CONFIG = "No config found"


class FormatterRegistry:
    """
    Named table of formatter definitions with availability checks.

    Attributes:
        use_builtins: Fall back to built-in definitions for unknown names.
    """

    def __init__(self, use_builtins: bool = True):
        self.use_builtins = use_builtins
        self._entries: Dict[str, FormatterEntry] = {}
        self._active = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self, formatters: Optional[Mapping[str, FormatterEntry]] = None) -> "FormatterRegistry":
        """
        Install the configured formatters.

        Calling setup() again replaces the previous table.

        Returns:
            The registry itself, for chaining.
        """
        self._entries.clear()
        for name, entry in (formatters or {}).items():
            self.register(name, entry)
        self._active = True
        logger.debug(f"Formatter registry set up with {len(self._entries)} formatter(s)")
        return self

    def teardown(self) -> None:
        """Drop every configured formatter."""
        self._entries.clear()
        self._active = False
        logger.debug("Formatter registry torn down")

    @property
    def is_active(self) -> bool:
        return self._active

    # ------------------------------------------------------------------
    # Table access
    # ------------------------------------------------------------------

    def register(self, name: str, entry: FormatterEntry) -> None:
        """
        Add or replace a formatter definition.

        Raises:
            TypeError: If the entry is neither a FormatterSpec nor callable.
        """
        if not isinstance(entry, FormatterSpec) and not callable(entry):
            raise TypeError(f"Formatter '{name}' must be a FormatterSpec or a factory, got {entry!r}")
        self._entries[name] = entry

    def unregister(self, name: str) -> bool:
        return self._entries.pop(name, None) is not None

    def names(self) -> List[str]:
        """All known formatter names, configured and built-in, sorted."""
        names: Set[str] = set(self._entries)
        if self.use_builtins:
            names.update(BUILTIN_FORMATTERS)
        return sorted(names)

    def get_formatter_config(self, name: str, document: Document) -> Optional[FormatterSpec]:
        """
        Look up the definition for a name.

        Factories are called with the document on every lookup.

        Returns:
            The FormatterSpec, or None if nothing defines the name.
        """
        entry = self._entries.get(name)
        if entry is None:
            return get_builtin(name) if self.use_builtins else None
        if isinstance(entry, FormatterSpec):
            return entry
        spec = entry(document)
        if spec is not None and not isinstance(spec, FormatterSpec):
            raise TypeError(f"Factory for formatter '{name}' returned {type(spec).__name__}")
        return spec

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def _check(self, name: str, document: Document) -> Tuple[Optional[FormatterSpec], FormatterInfo]:
        spec = self.get_formatter_config(name, document)
        if spec is None:
            return None, FormatterInfo(name, name, available=False, available_msg=MSG_NO_CONFIG)

        ctx = build_context(document, spec)
        try:
            command = resolve_command(spec, ctx)
        except ResolutionError as e:
            return spec, FormatterInfo(name, name, available=False, available_msg=e.reason)

        cwd = resolve_cwd(spec, ctx)
        try:
            resolve_formatter(spec, ctx)
        except ResolutionError as e:
            return spec, FormatterInfo(name, command, available=False, available_msg=e.reason, cwd=cwd)
        return spec, FormatterInfo(name, command, available=True, cwd=cwd)

    def get_formatter_info(self, name: str, document: Document) -> FormatterInfo:
        """
        Report whether a formatter can run for a document, and why not.

        Args:
            name: Formatter name.
            document: Document the formatter would run on.

        Returns:
            FormatterInfo with ``available_msg`` set to one of "No config
            found", "Command not found", "Condition failed" or "Root
            directory not found" when unavailable.
        """
        return self._check(name, document)[1]

    def list_all_formatters(self, document: Document) -> List[FormatterInfo]:
        """Availability of every known formatter, sorted by name."""
        return [self.get_formatter_info(name, document) for name in self.names()]

    def resolve_units(
        self,
        units: Iterable[Union[str, Iterable[str], Single, Alternation]],
        document: Document,
        warn_on_missing: bool = True,
        notifier: Optional[Notifier] = None,
    ) -> List[FormatterSpec]:
        """
        Flatten formatter units into the ordered list of formatters to run.

        Names already selected are skipped. For an alternation the first
        available candidate is used; when none is, only the last candidate
        is reported missing.

        Args:
            units: Names and lists of alternative names.
            document: Document being formatted.
            warn_on_missing: Report explicitly requested formatters that are
                unavailable.
            notifier: Where to report missing formatters.

        Returns:
            Available FormatterSpecs in pipeline order.
        """
        specs: List[FormatterSpec] = []
        seen: Set[str] = set()
        for unit in parse_units(units):
            candidates = (unit.name,) if isinstance(unit, Single) else unit.names
            for i, name in enumerate(candidates):
                spec, info = self._check(name, document)
                if info.available:
                    if name not in seen:
                        seen.add(name)
                        specs.append(spec)
                    break
                if i < len(candidates) - 1:
                    continue
                message = f"Formatter '{name}' unavailable: {info.available_msg}"
                if not warn_on_missing:
                    logger.debug(message)
                    continue
                logger.warning(message)
                if notifier is not None:
                    notifier.notify(message, Severity.WARNING)
        return specs
