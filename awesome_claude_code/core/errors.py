"""Error taxonomy for component synchronization.

Every fatal condition raised by the sync engine is a ``SyncError`` that names
the offending path and carries a remediation hint, so the CLI can print a
single actionable line and the install hook can downgrade it to a warning.
"""

from __future__ import annotations

import errno
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from awesome_claude_code.setup.tree_merger import PlanEntry, UpgradeReport


_HINTS = {
    errno.EACCES: "check file and directory permissions",
    errno.EPERM: "check file and directory permissions",
    errno.EROFS: "the filesystem is mounted read-only",
    errno.ENOSPC: "free some disk space and retry",
    errno.ENAMETOOLONG: "move the project to a shorter path",
    errno.ENOENT: "make sure the path exists",
    errno.ENOTDIR: "a file is in the way of a required directory",
}

DEFAULT_HINT = "check permissions and free disk space, then rerun"


def hint_for(exc: BaseException | None) -> str:
    """Map an OS error to a remediation hint.

    Args:
        exc: The underlying exception, if any

    Returns:
        Short human-readable hint
    """
    if isinstance(exc, OSError) and exc.errno in _HINTS:
        return _HINTS[exc.errno]
    return DEFAULT_HINT


class SyncError(Exception):
    """Base class for fatal synchronization errors."""

    def __init__(self, message: str, path: Path | str | None = None, hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.hint = hint or DEFAULT_HINT

    def __str__(self) -> str:
        parts = [self.message]
        if self.path is not None:
            parts.append(f"path: {self.path}")
        parts.append(f"hint: {self.hint}")
        return " | ".join(parts)


class SourceUnavailable(SyncError):
    """Bundled component tree is missing or unreadable."""


class TargetUnwritable(SyncError):
    """Target root (or an ancestor) cannot be created or written."""


class BackupIncomplete(SyncError):
    """A backup snapshot could not be fully written. Nothing was overwritten."""


class InvalidSettings(SyncError):
    """Ambient settings from the environment or ``.env`` failed validation."""


class PartialExecution(SyncError):
    """Plan execution stopped on one file after earlier entries completed.

    Attributes:
        report: Counts accumulated before the failure
        completed: Entries that were fully applied
        pending: Entries never attempted, including the failing one
    """

    def __init__(
        self,
        message: str,
        path: Path | str | None,
        report: UpgradeReport,
        completed: list[PlanEntry],
        pending: list[PlanEntry],
        hint: str | None = None,
    ):
        super().__init__(message, path=path, hint=hint)
        self.report = report
        self.completed = completed
        self.pending = pending
