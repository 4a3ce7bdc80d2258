"""Package-manager install/update hook.

Host package managers hand over loosely shaped event payloads. This module
narrows them to a ``PackageEvent`` (package name, component source,
target ``.claude`` dir) and runs a PRESERVE-mode sync: missing files are
created, nothing existing is ever overwritten, and no backup is taken.

A failed sync never fails the host install. Every error is logged as a
warning and the hook returns None.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from awesome_claude_code.core.errors import SyncError
from awesome_claude_code.core.fs import FileSystem, LocalFileSystem
from awesome_claude_code.core.logging_config import get_logger, run_context
from awesome_claude_code.setup.paths import PACKAGE_NAME, get_bundled_source, get_claude_dir
from awesome_claude_code.setup.tree_merger import SyncMode, UpgradeReport, execute, plan

logger = get_logger(__name__)


@dataclass(frozen=True)
class PackageEvent:
    """What the hook needs from a host install/update event."""

    package_name: str
    source_path: Path
    target_root: Path

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        project_root: Path | None = None,
    ) -> PackageEvent:
        """Extract an event from a host payload.

        Accepted keys: ``name`` or ``package.name``; ``source_path`` or
        ``package.source_path`` (defaults to the bundled components);
        ``project_root`` (or the ``project_root`` argument).

        Raises:
            ValueError: If the package name or project root is missing
        """
        package = payload.get("package")
        package = package if isinstance(package, Mapping) else {}

        name = payload.get("name") or package.get("name")
        if not name:
            raise ValueError("Package event has no package name")

        root = payload.get("project_root") or project_root
        if not root:
            raise ValueError("Package event has no project root")

        source = payload.get("source_path") or package.get("source_path")
        return cls(
            package_name=str(name),
            source_path=Path(source) if source else get_bundled_source(),
            target_root=get_claude_dir(Path(root)),
        )


class InstallHook:
    """Runs the non-destructive sync for our own package's events."""

    def __init__(
        self,
        fs: FileSystem | None = None,
        console: Console | None = None,
        package_name: str = PACKAGE_NAME,
    ):
        self.fs = fs or LocalFileSystem()
        self.console = console or Console()
        self.package_name = package_name

    def on_package_install(self, event: PackageEvent) -> UpgradeReport | None:
        return self.handle(event)

    def on_package_update(self, event: PackageEvent) -> UpgradeReport | None:
        return self.handle(event)

    def handle_payload(
        self,
        payload: Mapping[str, Any],
        project_root: Path | None = None,
    ) -> UpgradeReport | None:
        """Parse a raw host payload and handle it; malformed payloads only warn."""
        try:
            event = PackageEvent.from_payload(payload, project_root)
        except ValueError as exc:
            logger.warning("Ignoring malformed package event", error=str(exc))
            return None
        return self.handle(event)

    def handle(self, event: PackageEvent, dry_run: bool = False) -> UpgradeReport | None:
        """Create missing components in the project's ``.claude`` directory.

        Args:
            event: Narrowed host event
            dry_run: Plan only, write nothing

        Returns:
            Report of the run, or None if skipped or failed
        """
        if event.package_name != self.package_name:
            logger.debug("Ignoring event for another package", package=event.package_name)
            return None

        if not self.fs.is_dir(event.source_path):
            logger.debug("No bundled components to install", source=event.source_path)
            return None

        try:
            with run_context("install"):
                copy_plan = plan(event.source_path, event.target_root, SyncMode.PRESERVE, self.fs)
                if dry_run:
                    return UpgradeReport.from_plan(copy_plan)
                report = execute(copy_plan, self.fs)
        except (SyncError, OSError) as exc:
            logger.warning(
                "Claude Code components were not installed; continuing",
                target=event.target_root,
                error=str(exc),
            )
            self.console.print(
                f"  [yellow]WARN[/yellow] Claude Code components not installed: {escape(str(exc))}",
                soft_wrap=True,
            )
            return None

        if report.total_created:
            self.console.print(
                f"[green]Claude Code components installed to .claude/[/green] "
                f"({report.total_created} new, {report.total_skipped} kept)"
            )
        return report
