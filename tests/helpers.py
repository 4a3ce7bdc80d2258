"""Helpers shared by unit and integration tests."""
from __future__ import annotations

import builtins
import errno
import os
from collections.abc import Callable
from pathlib import Path

from awesome_claude_code.core.fs import LocalFileSystem

SOURCE_FILES = {
    "commands/acc-commit.md": b"# Commit\n\nBundled commit command.\n",
    "agents/acc-code-reviewer.md": b"# Reviewer\n\nBundled reviewer agent.\n",
    "skills/acc-git-workflow/SKILL.md": b"# Git workflow\n",
}


def write_tree(root: Path, files: dict[str, bytes | str]) -> Path:
    """Write ``files`` (relative path -> content) below ``root``."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        path.write_bytes(data)
    return root


def read_tree(root: Path) -> dict[str, bytes]:
    """Relative path -> bytes for every file under ``root``."""
    if not root.exists():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def in_backup(path: Path) -> bool:
    return any(part.startswith(".claude.backup-") for part in path.parts)


class FailingFileSystem(LocalFileSystem):
    """LocalFileSystem that raises OSError on matching writes.

    The first ``fail_after`` matching writes succeed; the next one fails.
    """

    def __init__(
        self,
        match: Callable[[Path], bool],
        fail_after: int = 0,
        errno_code: int = errno.ENOSPC,
    ):
        self.match = match
        self.fail_after = fail_after
        self.errno_code = errno_code
        self.matched = 0

    def write_bytes(self, path: Path, data: bytes) -> None:
        if self.match(path):
            if self.matched >= self.fail_after:
                raise OSError(self.errno_code, os.strerror(self.errno_code), str(path))
            self.matched += 1
        super().write_bytes(path, data)


class TruncatingWriter:
    """File handle that writes half of the data, then fails with ENOSPC."""

    def __init__(self, handle):
        self.handle = handle

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.handle.close()
        return False

    def write(self, data: bytes) -> int:
        self.handle.write(data[: len(data) // 2])
        self.handle.flush()
        raise OSError(errno.ENOSPC, os.strerror(errno.ENOSPC))


def truncating_open(name: str) -> Callable:
    """Replacement for ``open`` that truncates writes to files named ``name``.

    Local writes go through a ``.<name>.<random>.tmp`` sibling, so that is
    the file name matched here.
    """

    def _open(file, mode="r", *args, **kwargs):
        handle = builtins.open(file, mode, *args, **kwargs)
        if "w" in mode or "x" in mode:
            if Path(file).name.startswith(f".{name}."):
                return TruncatingWriter(handle)
        return handle

    return _open
