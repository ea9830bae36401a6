"""
Pytest configuration and fixtures for the test suite.

Defines markers for selective test execution:
    pytest -m unit          # Fast unit tests
    pytest -m integration   # Tests that spawn real formatter processes
    pytest -m slow          # Tests that take >1s
    pytest -m resilience    # Timeouts, cancellation, concurrent modification

Formatter processes are real: each test formatter runs the current Python
interpreter with a small ``-c`` script, so no external tool is required.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bufformat.buffer.document import TextDocument
from bufformat.models.formatter import FormatterSpec


UPPERCASE = "import sys; sys.stdout.write(sys.stdin.read().upper())"
IDENTITY = "import sys; sys.stdout.write(sys.stdin.read())"
STRIP_TRAILING = (
    "import sys\n"
    "for line in sys.stdin.read().splitlines(True):\n"
    "    body = line.rstrip('\\n').rstrip()\n"
    "    sys.stdout.write(body + ('\\n' if line.endswith('\\n') else ''))"
)
SYNTAX_ERROR = "import sys; sys.stdin.read(); sys.stderr.write('syntax error'); sys.exit(1)"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests that spawn formatter processes")
    config.addinivalue_line("markers", "slow: Tests that take more than 1 second")
    config.addinivalue_line("markers", "resilience: Timeouts, cancellation, concurrent modification")


def script_formatter(name, script, extra_args=None, **kwargs):
    """Build a FormatterSpec that runs a Python snippet."""
    return FormatterSpec(
        name=name,
        command=sys.executable,
        args=["-c", script] + list(extra_args or []),
        **kwargs,
    )


def counting_script(counter_path, body=IDENTITY):
    """Wrap a script so every invocation appends one line to a counter file."""
    return f"open({str(counter_path)!r}, 'a').write('x\\n')\n{body}"


def spawn_count(counter_path):
    """Number of processes a counting_script formatter started."""
    if not os.path.exists(counter_path):
        return 0
    with open(counter_path, encoding="utf-8") as f:
        return len(f.read().splitlines())


@pytest.fixture
def doc_factory(tmp_path):
    """Create TextDocuments backed by a path under tmp_path."""
    def make(text, name="buffer.py"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return TextDocument.from_file(str(path))
    return make
