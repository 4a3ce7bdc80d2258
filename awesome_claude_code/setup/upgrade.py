"""Forced upgrade of installed components, backing up first.

Order of operations for one upgrade:

1. Capture the bundled tree and plan in FORCE mode.
2. If anything will be overwritten, snapshot exactly those files.
3. Execute the plan.
4. Return the report with the backup location attached.

Step 3 never starts unless step 2 finished. Running the upgrade again on an
already-upgraded project rewrites the same bytes and converges to the same
tree.
"""

from __future__ import annotations

from pathlib import Path

from awesome_claude_code.core.errors import PartialExecution
from awesome_claude_code.core.fs import FileSystem, LocalFileSystem
from awesome_claude_code.core.logging_config import get_logger, run_context
from awesome_claude_code.setup.backup import BackupManager
from awesome_claude_code.setup.tree_merger import (
    ComponentSourceTree,
    CopyPlan,
    SyncMode,
    UpgradeReport,
    execute,
    plan,
)

logger = get_logger(__name__)


class UpgradeEngine:
    """Runs FORCE-mode synchronization behind a backup."""

    def __init__(
        self,
        fs: FileSystem | None = None,
        backups: BackupManager | None = None,
    ):
        self.fs = fs or LocalFileSystem()
        self.backups = backups or BackupManager(self.fs)

    def plan(self, source_root: Path, target_root: Path) -> CopyPlan:
        """Compute a fresh FORCE plan without touching the target."""
        source = ComponentSourceTree.capture(Path(source_root), self.fs)
        return plan(source, Path(target_root), SyncMode.FORCE, self.fs)

    def upgrade(
        self,
        source_root: Path,
        target_root: Path,
        dry_run: bool = False,
    ) -> UpgradeReport:
        """Overwrite every bundled file in ``target_root`` with the source copy.

        Args:
            source_root: Bundled ``.claude`` directory
            target_root: Consumer's ``.claude`` directory
            dry_run: Only report what would happen

        Returns:
            UpgradeReport with ``backup_path`` set when files were overwritten

        Raises:
            SourceUnavailable: Bundled tree missing or unreadable
            BackupIncomplete: Snapshot failed; nothing was overwritten
            TargetUnwritable: Target root cannot be created
            PartialExecution: A write failed mid-run; ``report.backup_path``
                still points at the snapshot
        """
        target_root = Path(target_root)
        with run_context("upgrade"):
            copy_plan = self.plan(source_root, target_root)

            if dry_run:
                logger.info("Dry run, nothing written", target=target_root)
                return UpgradeReport.from_plan(copy_plan)

            snapshot = self.backups.snapshot(target_root, copy_plan.overwrites)
            backup_path = snapshot.path if snapshot else None

            try:
                report = execute(copy_plan, self.fs)
            except PartialExecution as exc:
                exc.report.backup_path = backup_path
                raise

            report.backup_path = backup_path
            logger.info(
                "Upgrade finished",
                target=target_root,
                backup=backup_path,
                files_created=report.total_created,
                files_overwritten=report.total_overwritten,
            )
            return report


def upgrade(
    source_root: Path,
    target_root: Path,
    fs: FileSystem | None = None,
    dry_run: bool = False,
) -> UpgradeReport:
    """Convenience wrapper around ``UpgradeEngine(fs).upgrade``."""
    return UpgradeEngine(fs).upgrade(source_root, target_root, dry_run=dry_run)
