"""Global pytest configuration and fixtures."""

import pytest
import sys
import tempfile
import shutil
from pathlib import Path
from typing import Generator, Dict

# Add the project root to Python path for testing
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from tests.fixtures.sample_code import (
    SAMPLE_TS_MODULE,
    SAMPLE_PYTHON_MODULE,
    SAMPLE_MARKDOWN,
    SAMPLE_JEST_TEST,
    SAMPLE_GENERATED,
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line("markers", "chunking: Code chunking tests")
    config.addinivalue_line("markers", "parsers: Parser and registry tests")
    config.addinivalue_line("markers", "filtering: Negative filter tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path_str = str(item.fspath).replace("\\", "/")

        if "tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)

        name = Path(path_str).name
        if "parser" in name or "registry" in name:
            item.add_marker(pytest.mark.parsers)
        elif "filter" in name:
            item.add_marker(pytest.mark.filtering)
        else:
            item.add_marker(pytest.mark.chunking)


@pytest.fixture(autouse=True)
def reset_grammar_cache():
    """Tests that fake grammar loading must not leak into other tests."""
    yield
    from parsers.tree_sitter import load_grammar
    load_grammar.cache_clear()


@pytest.fixture
def temp_project_dir() -> Generator[Path, None, None]:
    """Create a temporary project directory."""
    temp_dir = tempfile.mkdtemp()
    project_path = Path(temp_dir) / "test_project"
    project_path.mkdir(parents=True)

    yield project_path

    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_project(temp_project_dir: Path) -> Dict[str, Path]:
    """A small mixed-language project, including paths that must be skipped."""
    files = {}

    src_dir = temp_project_dir / "src"
    src_dir.mkdir()
    docs_dir = temp_project_dir / "docs"
    docs_dir.mkdir()
    tests_dir = temp_project_dir / "tests"
    tests_dir.mkdir()
    ignored_dir = temp_project_dir / "node_modules" / "left-pad"
    ignored_dir.mkdir(parents=True)

    files['service'] = src_dir / "service.ts"
    files['service'].write_text(SAMPLE_TS_MODULE)

    files['tokens'] = src_dir / "tokens.py"
    files['tokens'].write_text(SAMPLE_PYTHON_MODULE)

    files['readme'] = docs_dir / "README.md"
    files['readme'].write_text(SAMPLE_MARKDOWN)

    files['spec'] = tests_dir / "service.spec.ts"
    files['spec'].write_text(SAMPLE_JEST_TEST)

    files['ignored'] = ignored_dir / "index.js"
    files['ignored'].write_text(SAMPLE_GENERATED)

    return files
