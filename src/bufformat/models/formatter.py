"""
Formatter configuration types.

A FormatterSpec describes how to invoke an external formatter. Most of its
fields may be either a plain value or a function of the ExecutionContext;
both are normalized into a Dynamic (Static or Computed) when the FormatterSpec is
built, so the resolver never has to type-check them.

Usage:
    from bufformat.models import FormatterSpec

    spec = FormatterSpec(
        name="black",
        command="black",
        args=["--quiet", "--stdin-filename", "$FILENAME", "-"],
        cwd=root_file(["pyproject.toml"]),
    )
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

T = TypeVar("T")

DEFAULT_EXIT_CODES: FrozenSet[int] = frozenset({0})


@dataclass(frozen=True)
class Static(Generic[T]):
    """A configuration value that does not depend on the context."""
    value: T

    def resolve(self, ctx: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Computed(Generic[T]):
    """A configuration value computed from the ExecutionContext."""
    fn: Callable[[Any], T]

    def resolve(self, ctx: Any) -> T:
        return self.fn(ctx)


Dynamic = Union[Static, Computed]


def as_dynamic(value: Any) -> Optional[Dynamic]:
    """
    Wrap a plain value or callable into a Dynamic field.

    None stays None so optional resolvers can be told apart from a
    resolver that returns None.
    """
    if value is None or isinstance(value, (Static, Computed)):
        return value
    if callable(value):
        return Computed(value)
    return Static(value)


@dataclass(frozen=True)
class FormatterMeta:
    """Descriptive metadata shown by `bufformat info`."""
    url: str = ""
    description: str = ""


@dataclass
class FormatterSpec:
    """
    Configuration for one external formatter.

    Attributes:
        name: Unique formatter name.
        command: Executable name or path (value or function of context).
        args: Arguments for whole-buffer formatting.
        range_args: Arguments used instead of ``args`` when a range is given.
        cwd: Working-directory resolver; may return None.
        env: Extra environment variables (map or function of context).
        condition: Predicate deciding whether the formatter applies.
        require_cwd: Refuse to run when ``cwd`` resolves to None.
        exit_codes: Exit codes that indicate success.
        stdin: Send the buffer on stdin (True) or through a temp file (False).
        allow_empty_output: Accept empty stdout as a legitimate result.
        meta: Descriptive metadata.
    """
    name: str
    command: Any
    args: Any = field(default_factory=list)
    range_args: Any = None
    cwd: Any = None
    env: Any = field(default_factory=dict)
    condition: Any = None
    require_cwd: bool = False
    exit_codes: Iterable[int] = DEFAULT_EXIT_CODES
    stdin: bool = True
    allow_empty_output: bool = False
    meta: FormatterMeta = field(default_factory=FormatterMeta)

    def __post_init__(self):
        if not self.name:
            raise ValueError("formatter name cannot be empty")
        self.command = as_dynamic(self.command)
        if self.command is None:
            raise ValueError(f"formatter '{self.name}' has no command")
        self.args = as_dynamic(self.args if self.args is not None else [])
        self.range_args = as_dynamic(self.range_args)
        self.cwd = as_dynamic(self.cwd)
        self.env = as_dynamic(self.env if self.env is not None else {})
        self.condition = as_dynamic(self.condition)
        self.exit_codes = frozenset(self.exit_codes)
        if not self.exit_codes:
            raise ValueError(f"formatter '{self.name}' must accept at least one exit code")

    @property
    def is_range_aware(self) -> bool:
        """Whether the formatter knows how to format a sub-range itself."""
        return self.range_args is not None


@dataclass(frozen=True)
class ResolvedFormatter:
    """A FormatterSpec resolved against one ExecutionContext."""
    name: str
    command: str
    args: Tuple[str, ...]
    cwd: Optional[str]
    env: Dict[str, str]
    exit_codes: FrozenSet[int] = DEFAULT_EXIT_CODES
    stdin: bool = True
    allow_empty_output: bool = False

    @property
    def argv(self) -> List[str]:
        return [self.command, *self.args]


@dataclass(frozen=True)
class FormatterInfo:
    """Availability report for one formatter."""
    name: str
    command: str
    available: bool
    available_msg: Optional[str] = None
    cwd: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "command": self.command,
            "cwd": self.cwd,
            "available": self.available,
            "available_msg": self.available_msg,
        }


@dataclass(frozen=True)
class Single:
    """One formatter slot naming a single formatter."""
    name: str


@dataclass(frozen=True)
class Alternation:
    """One formatter slot where the first available candidate runs."""
    names: Tuple[str, ...]


FormatterUnit = Union[Single, Alternation]


def parse_units(raw: Iterable[Union[str, Iterable[str], Single, Alternation]]) -> List[FormatterUnit]:
    """
    Turn a configuration list like ``["isort", ["black", "ruff_format"]]``
    into formatter units.

    Raises:
        TypeError: If an entry is neither a name nor a list of names.
    """
    units: List[FormatterUnit] = []
    for entry in raw:
        if isinstance(entry, (Single, Alternation)):
            units.append(entry)
        elif isinstance(entry, str):
            units.append(Single(entry))
        elif isinstance(entry, (list, tuple)):
            names = tuple(entry)
            if not all(isinstance(n, str) for n in names):
                raise TypeError(f"Alternation entries must be names, got {entry!r}")
            units.append(Alternation(names))
        else:
            raise TypeError(f"Invalid formatter entry: {entry!r}")
    return units
