"""Tests for the formatter registry and availability checks."""

import sys

import pytest

from conftest import UPPERCASE, script_formatter

from bufformat.buffer.document import TextDocument
from bufformat.config.registry import MSG_NO_CONFIG, FormatterRegistry
from bufformat.core.errors import Severity
from bufformat.core.notify import RecordingNotifier
from bufformat.formatters.builtin import BUILTIN_FORMATTERS
from bufformat.models.formatter import Alternation, FormatterSpec

MISSING = "definitely-not-a-real-formatter-xyz"


@pytest.fixture
def doc(tmp_path):
    return TextDocument("x\n", path=str(tmp_path / "mod.py"))


@pytest.fixture
def registry():
    registry = FormatterRegistry(use_builtins=False).setup({
        "upper": script_formatter("upper", UPPERCASE),
        "lower": script_formatter("lower", "import sys; sys.stdout.write(sys.stdin.read().lower())"),
        "missing": FormatterSpec(name="missing", command=MISSING),
        "never": FormatterSpec(name="never", command=sys.executable, condition=lambda ctx: False),
        "rooted": FormatterSpec(name="rooted", command=sys.executable, cwd=lambda ctx: None, require_cwd=True),
    })
    yield registry
    registry.teardown()


@pytest.mark.unit
class TestLifecycle:
    """Tests for setup() and teardown()."""

    def test_setup_and_teardown(self):
        registry = FormatterRegistry()
        assert registry.is_active is False
        registry.setup({"upper": script_formatter("upper", UPPERCASE)})
        assert registry.is_active is True
        registry.teardown()
        assert registry.is_active is False
        assert "upper" not in registry.names()

    def test_register_rejects_junk(self):
        with pytest.raises(TypeError):
            FormatterRegistry().register("bad", 42)

    def test_builtins_listed(self):
        registry = FormatterRegistry().setup()
        assert set(BUILTIN_FORMATTERS) <= set(registry.names())


@pytest.mark.unit
class TestFormatterInfo:
    """Tests for get_formatter_info() and list_all_formatters()."""

    def test_available(self, registry, doc):
        info = registry.get_formatter_info("upper", doc)
        assert info.available is True
        assert info.available_msg is None
        assert info.command == sys.executable

    def test_no_config(self, registry, doc):
        info = registry.get_formatter_info("unknown", doc)
        assert info.available is False
        assert info.available_msg == MSG_NO_CONFIG

    @pytest.mark.parametrize("name,message", [
        ("missing", "Command not found"),
        ("never", "Condition failed"),
        ("rooted", "Root directory not found"),
    ])
    def test_unavailable_reasons(self, registry, doc, name, message):
        info = registry.get_formatter_info(name, doc)
        assert info.available is False
        assert info.available_msg == message

    def test_list_sorted(self, registry, doc):
        names = [info.name for info in registry.list_all_formatters(doc)]
        assert names == sorted(names)
        assert names == ["lower", "missing", "never", "rooted", "upper"]

    def test_factory_sees_document(self, doc):
        seen = []

        def factory(document):
            seen.append(document)
            if document.path.endswith(".py"):
                return script_formatter("py-only", UPPERCASE)
            return None

        registry = FormatterRegistry(use_builtins=False).setup({"py-only": factory})
        assert registry.get_formatter_info("py-only", doc).available is True
        other = TextDocument("x", path="/tmp/readme.md")
        assert registry.get_formatter_info("py-only", other).available_msg == MSG_NO_CONFIG
        assert seen == [doc, other]

    def test_builtin_fallback(self, doc):
        registry = FormatterRegistry().setup()
        spec = registry.get_formatter_config("black", doc)
        assert spec is not None
        assert spec.name == "black"
        assert FormatterRegistry(use_builtins=False).setup().get_formatter_config("black", doc) is None


@pytest.mark.unit
class TestResolveUnits:
    """Tests for resolve_units()."""

    def test_names_in_order(self, registry, doc):
        specs = registry.resolve_units(["lower", "upper"], doc)
        assert [s.name for s in specs] == ["lower", "upper"]

    def test_duplicates_removed(self, registry, doc):
        specs = registry.resolve_units(["upper", "upper", ["upper", "lower"]], doc)
        assert [s.name for s in specs] == ["upper"]

    def test_alternation_picks_first_available(self, registry, doc):
        specs = registry.resolve_units([["missing", "lower", "upper"]], doc)
        assert [s.name for s in specs] == ["lower"]

    def test_missing_single_is_reported(self, registry, doc):
        notifier = RecordingNotifier()
        specs = registry.resolve_units(["missing", "upper"], doc, notifier=notifier)
        assert [s.name for s in specs] == ["upper"]
        assert notifier.messages == [
            ("Formatter 'missing' unavailable: Command not found", Severity.WARNING)
        ]

    def test_alternation_reports_only_last_candidate(self, registry, doc):
        notifier = RecordingNotifier()
        specs = registry.resolve_units([Alternation(("missing", "never"))], doc, notifier=notifier)
        assert specs == []
        assert len(notifier.messages) == 1
        assert "'never'" in notifier.messages[0][0]

    def test_warnings_can_be_silenced(self, registry, doc):
        notifier = RecordingNotifier()
        registry.resolve_units(["missing"], doc, warn_on_missing=False, notifier=notifier)
        assert notifier.messages == []
