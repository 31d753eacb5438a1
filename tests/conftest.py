# FILE: tests/conftest.py
"""
Pytest configuration for the declfix test suite.

Configures:
- shared sample sources

Async tests (KV client, smoke probes) are marked `@pytest.mark.asyncio`;
pytest-asyncio registers itself through its entry point.
"""
import pytest


EXAMPLE_SOURCE = (
    "processData(x) {\n"
    "  return x;\n"
    "}\n"
    "const obj = { handler: function(y) { return y; } };"
)


@pytest.fixture
def example_source() -> str:
    return EXAMPLE_SOURCE


@pytest.fixture
def js_file(tmp_path, example_source):
    """A .js file holding the example source."""
    path = tmp_path / "configManager.js"
    path.write_text(example_source, encoding="utf-8")
    return path
