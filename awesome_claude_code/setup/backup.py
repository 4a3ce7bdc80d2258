"""Backups of target files taken before a forced upgrade overwrites them.

A snapshot holds exactly the files an upgrade is about to overwrite,
mirrored under a timestamped sibling of the target directory::

    project/.claude/commands/acc-commit.md
    project/.claude.backup-20250101-120000/commands/acc-commit.md

Files that exist only in the target are never copied. The snapshot is
built in a ``.partial`` staging directory and renamed into place once
every file has been written and verified, so a visible backup directory is
always complete.
"""

from __future__ import annotations

import errno
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath

from awesome_claude_code.core.errors import BackupIncomplete, hint_for
from awesome_claude_code.core.fs import FileSystem, LocalFileSystem
from awesome_claude_code.core.logging_config import get_logger

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
DEFAULT_PREFIX = ".backup-"
STAGING_SUFFIX = ".partial"
# Upper bound on same-second snapshots before giving up on a name.
MAX_NAME_ATTEMPTS = 100


@dataclass(frozen=True)
class BackupSnapshot:
    """A completed, read-only copy of files about to be overwritten.

    Attributes:
        path: Backup directory
        created_at: Clock time the snapshot was started
        files: Relative paths held by the snapshot
    """

    path: Path
    created_at: datetime
    files: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self.files


def _check_relative(relative_path: str) -> None:
    pure = PurePosixPath(relative_path)
    if pure.is_absolute() or ".." in pure.parts or not pure.parts:
        raise ValueError(f"Backup paths must be relative to the target root: {relative_path!r}")


class BackupManager:
    """Creates snapshots next to the target directory."""

    def __init__(
        self,
        fs: FileSystem | None = None,
        clock: Callable[[], datetime] = datetime.now,
        prefix: str = DEFAULT_PREFIX,
    ):
        self.fs = fs or LocalFileSystem()
        self.clock = clock
        self.prefix = prefix

    def backup_path_for(self, target_root: Path, when: datetime) -> Path:
        """Pick an unused backup directory name for ``target_root``.

        Same-second collisions get a ``-1``, ``-2``... suffix.

        Raises:
            BackupIncomplete: If no free name is found
        """
        base = f"{target_root.name}{self.prefix}{when.strftime(TIMESTAMP_FORMAT)}"
        for counter in range(MAX_NAME_ATTEMPTS):
            name = base if counter == 0 else f"{base}-{counter}"
            candidate = target_root.parent / name
            staging = candidate.with_name(candidate.name + STAGING_SUFFIX)
            if not self.fs.exists(candidate) and not self.fs.exists(staging):
                return candidate
        raise BackupIncomplete(
            "Too many backups share the same timestamp",
            path=target_root.parent / base,
            hint="remove old backup directories or retry in a second",
        )

    def snapshot(self, target_root: Path, affected_paths: Iterable[str]) -> BackupSnapshot | None:
        """Copy every affected file of ``target_root`` into a new backup.

        Either every file is backed up or none is: on any error the staging
        directory is removed and ``BackupIncomplete`` is raised. The target
        tree is only read.

        Args:
            target_root: Consumer's ``.claude`` directory
            affected_paths: Relative paths the upgrade will overwrite

        Returns:
            The snapshot, or None if there was nothing to back up

        Raises:
            BackupIncomplete: If any file could not be backed up
        """
        target_root = Path(target_root)
        paths = sorted(set(affected_paths))
        for rel in paths:
            _check_relative(rel)
        if not paths:
            logger.debug("Nothing to back up", target=target_root)
            return None

        created_at = self.clock()
        final = self.backup_path_for(target_root, created_at)
        staging = final.with_name(final.name + STAGING_SUFFIX)
        current = staging
        copied = 0

        try:
            self.fs.mkdir(staging)
            for rel in paths:
                current = target_root / rel
                data = self.fs.read_bytes(current)

                current = staging / rel
                self.fs.mkdir(current.parent)
                self.fs.write_bytes(current, data)
                if self.fs.read_bytes(current) != data:
                    raise OSError(errno.EIO, "Backup copy does not match original", str(current))
                copied += 1

            for rel in paths:
                current = staging / rel
                self.fs.make_read_only(current)

            current = final
            self.fs.rename(staging, final)
        except OSError as exc:
            self._discard(staging)
            logger.error(
                "Backup failed",
                target=target_root,
                failed_at=current,
                copied=copied,
                total=len(paths),
                error=str(exc),
            )
            raise BackupIncomplete(
                f"Backup aborted after {copied} of {len(paths)} files; nothing was overwritten",
                path=current,
                hint=hint_for(exc),
            ) from exc

        logger.info("Backup created", backup=final, files_backed_up=len(paths))
        return BackupSnapshot(path=final, created_at=created_at, files=tuple(paths))

    def _discard(self, staging: Path) -> None:
        try:
            self.fs.remove_tree(staging)
        except OSError as exc:
            logger.warning(
                "Could not remove incomplete backup; delete it by hand",
                staging=staging,
                error=str(exc),
            )
