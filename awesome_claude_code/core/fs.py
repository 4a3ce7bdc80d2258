"""Filesystem access used by the sync engine.

The engine never touches ``pathlib``/``shutil`` directly; it goes through a
``FileSystem`` so planning and backups can be exercised against an
in-memory tree in tests and against the real disk in production.
"""

from __future__ import annotations

import errno
import os
import shutil
import stat
import uuid
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Operations the sync engine needs from a filesystem."""

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def iter_files(self, root: Path) -> Iterator[str]:
        """Yield POSIX-style paths, relative to ``root``, of every file below it."""
        ...

    def read_bytes(self, path: Path) -> bytes: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...

    def mkdir(self, path: Path) -> None:
        """Create ``path`` and any missing parents; existing dirs are fine."""
        ...

    def rename(self, src: Path, dst: Path) -> None: ...

    def remove_tree(self, path: Path) -> None: ...

    def make_read_only(self, path: Path) -> None: ...


class LocalFileSystem:
    """Real disk access via pathlib."""

    def exists(self, path: Path) -> bool:
        # A dangling symlink has no content, so it does not count as existing.
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def iter_files(self, root: Path) -> Iterator[str]:
        # is_file() follows symlinks, so linked files are copied by content
        for item in sorted(root.rglob("*")):
            if item.is_file():
                yield item.relative_to(root).as_posix()

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        """Write via a sibling temp file so ``path`` is never left truncated."""
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            with open(tmp, "xb") as handle:
                handle.write(data)
            if path.is_file():
                shutil.copymode(path, tmp)
            os.replace(tmp, path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def mkdir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def rename(self, src: Path, dst: Path) -> None:
        if dst.exists():
            raise FileExistsError(errno.EEXIST, "Destination already exists", str(dst))
        os.rename(src, dst)

    def remove_tree(self, path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)

    def make_read_only(self, path: Path) -> None:
        os.chmod(path, stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)


class MemoryFileSystem:
    """Dict-backed filesystem for tests and dry runs.

    Paths are stored as given (no resolution). ``written`` records every
    path opened for writing, in order.
    """

    def __init__(self, files: dict[Path | str, bytes | str] | None = None):
        self.files: dict[Path, bytes] = {}
        self.dirs: set[Path] = set()
        self.read_only: set[Path] = set()
        self.written: list[Path] = []
        for path, content in (files or {}).items():
            self.seed(Path(path), content)

    def seed(self, path: Path, content: bytes | str) -> None:
        """Place a file without recording it as a write."""
        data = content.encode("utf-8") if isinstance(content, str) else content
        self.mkdir(path.parent)
        self.files[path] = data

    def exists(self, path: Path) -> bool:
        return path in self.files or path in self.dirs

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def iter_files(self, root: Path) -> Iterator[str]:
        for path in sorted(self.files):
            if root in path.parents:
                yield path.relative_to(root).as_posix()

    def read_bytes(self, path: Path) -> bytes:
        if path in self.dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(errno.ENOENT, "No such file", str(path)) from None

    def write_bytes(self, path: Path, data: bytes) -> None:
        if path in self.dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))
        if path.parent not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(path.parent))
        if path in self.read_only:
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        self.written.append(path)
        self.files[path] = bytes(data)

    def mkdir(self, path: Path) -> None:
        for candidate in [path, *path.parents]:
            if candidate in self.files:
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(candidate))
        self.dirs.add(path)
        self.dirs.update(path.parents)

    def rename(self, src: Path, dst: Path) -> None:
        if self.exists(dst):
            raise FileExistsError(errno.EEXIST, "Destination already exists", str(dst))
        if not self.exists(src):
            raise FileNotFoundError(errno.ENOENT, "No such file", str(src))
        self.mkdir(dst.parent)
        for old in [p for p in self.files if p == src or src in p.parents]:
            new = dst / old.relative_to(src)
            self.files[new] = self.files.pop(old)
            if old in self.read_only:
                self.read_only.discard(old)
                self.read_only.add(new)
        for old in [d for d in self.dirs if d == src or src in d.parents]:
            self.dirs.discard(old)
            self.dirs.add(dst / old.relative_to(src))

    def remove_tree(self, path: Path) -> None:
        for old in [p for p in self.files if p == path or path in p.parents]:
            del self.files[old]
            self.read_only.discard(old)
        self.dirs = {d for d in self.dirs if not (d == path or path in d.parents)}

    def make_read_only(self, path: Path) -> None:
        if path not in self.files:
            raise FileNotFoundError(errno.ENOENT, "No such file", str(path))
        self.read_only.add(path)
