"""Locations of the bundled components and of a project's ``.claude`` dir."""

from pathlib import Path

PACKAGE_NAME = "awesome-claude-code"


def get_bundled_source() -> Path:
    """Get path to the component tree shipped inside this package.

    Returns:
        Directory holding ``commands/``, ``agents/`` and ``skills/``
    """
    return Path(__file__).resolve().parent.parent / "components"


def get_claude_dir(project_root: Path) -> Path:
    """Get the .claude directory of a project.

    Args:
        project_root: Consumer project root (always explicit)

    Returns:
        Path to .claude directory (may not exist)
    """
    return Path(project_root) / ".claude"
