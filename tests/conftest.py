"""Shared test fixtures for the awesome-claude-code test suite.

Provides:
- A small component source tree on disk
- A project directory with no .claude directory yet
- A lister for backup directories next to the target
- Reset of the package logger after CLI tests configure it
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from tests.helpers import SOURCE_FILES, write_tree


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo handlers and levels installed by ``setup_logging``."""
    package_logger = logging.getLogger("awesome_claude_code")
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """Bundled component tree with one command, one agent and one skill."""
    return write_tree(tmp_path / "vendor" / ".claude", SOURCE_FILES)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Consumer project without a .claude directory yet."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def target_root(project_root: Path) -> Path:
    return project_root / ".claude"


@pytest.fixture
def backups_of(project_root: Path) -> Callable[[], list[Path]]:
    """List backup directories created next to the target."""

    def _list() -> list[Path]:
        return sorted(p for p in project_root.iterdir() if p.name.startswith(".claude.backup-"))

    return _list
