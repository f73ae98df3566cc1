"""Shared fixtures and helpers for tests."""

import textwrap
from collections.abc import Callable
from pathlib import Path, PurePath

import pytest
from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from api_doc_generator.core.ast import SyntaxTree, parse_source

_REPO_ROOT = Path(__file__).parent.parent

FIXTURES_DIR = _REPO_ROOT / "tests" / "fixtures"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def go_parser() -> Parser:
    """Return a tree-sitter parser for Go."""
    return get_parser("go")


@pytest.fixture
def parse_go() -> Callable[..., SyntaxTree]:
    """Return a helper that parses dedented Go source as if it lived at relative_path."""

    def _parse(source: str, relative_path: str = "main.go") -> SyntaxTree:
        rel = PurePath(relative_path)
        return parse_source(textwrap.dedent(source).encode("utf-8"), Path(rel.name), rel)

    return _parse


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes {relative path: Go source} into a fresh project root."""

    def _write(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        for relative, source in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _write
