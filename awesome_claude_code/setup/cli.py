#!/usr/bin/env python3
"""awesome-claude-code command line.

Installs the bundled Claude Code commands, agents and skills into a
project's ``.claude/`` directory.

USAGE:
    awesome-claude-code install [--project-root DIR] [--dry-run]
    awesome-claude-code upgrade [--project-root DIR] [--dry-run] [--yes]
    awesome-claude-code list [--project-root DIR]

COMMANDS:
    install    Create missing components; never touches existing files
    upgrade    Back up, then overwrite every bundled component
    list       Show installed components per category

EXAMPLES:
    awesome-claude-code install                 # After adding the package
    awesome-claude-code upgrade --dry-run       # Preview an upgrade
    awesome-claude-code upgrade --yes           # Non-interactive upgrade (CI)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from awesome_claude_code.core.config import Settings, load_settings
from awesome_claude_code.core.errors import InvalidSettings, PartialExecution, SyncError
from awesome_claude_code.core.fs import FileSystem, LocalFileSystem
from awesome_claude_code.core.logging_config import get_logger, setup_logging
from awesome_claude_code.setup.backup import BackupManager
from awesome_claude_code.setup.install_hook import InstallHook, PackageEvent
from awesome_claude_code.setup.paths import PACKAGE_NAME, get_bundled_source, get_claude_dir
from awesome_claude_code.setup.tree_merger import COMPONENT_CATEGORIES, SyncMode, UpgradeReport
from awesome_claude_code.setup.upgrade import UpgradeEngine

console = Console()
logger = get_logger(__name__)


# =============================================================================
# Output
# =============================================================================

def print_report(report: UpgradeReport, dry_run: bool = False) -> None:
    """Print per-category counts of a run."""
    title = "Planned changes" if dry_run else "Changes"
    table = Table(title=title)
    table.add_column("Category")
    table.add_column("Created", justify="right")
    if report.mode is SyncMode.FORCE:
        table.add_column("Overwritten", justify="right")
    else:
        table.add_column("Kept", justify="right")

    for category in report.categories:
        second = report.overwritten[category] if report.mode is SyncMode.FORCE else report.skipped[category]
        table.add_row(category, str(report.created[category]), str(second))

    if report.categories:
        console.print(table)

    if report.mode is SyncMode.FORCE:
        console.print(f"Created: {report.total_created}  Overwritten: {report.total_overwritten}")
    else:
        console.print(f"Created: {report.total_created}  Kept: {report.total_skipped}")


def print_error(exc: SyncError) -> None:
    console.print(f"[red]ERROR[/red] {escape(exc.message)}", soft_wrap=True)
    if exc.path is not None:
        console.print(f"  Path: {escape(str(exc.path))}", soft_wrap=True)
    console.print(f"  Hint: {escape(exc.hint)}", soft_wrap=True)


def settings_error(exc: ValidationError) -> InvalidSettings:
    """Name the offending ACC_* variables of a failed settings load."""
    problems = "; ".join(
        f"ACC_{'_'.join(str(part) for part in err['loc']).upper()}: {err['msg']}"
        for err in exc.errors()
    )
    return InvalidSettings(
        f"Invalid settings ({problems})",
        hint="fix the ACC_* environment variables or the project's .env file",
    )


def installed_components(target_root: Path, fs: FileSystem) -> dict[str, list[str]]:
    """Names of installed components per category.

    Commands and agents are named by file stem, skills by directory name.
    File contents are not read.
    """
    result: dict[str, list[str]] = {category: [] for category in COMPONENT_CATEGORIES}
    for category in COMPONENT_CATEGORIES:
        base = target_root / category
        if not fs.is_dir(base):
            continue
        for rel in fs.iter_files(base):
            parts = rel.split("/")
            if category == "skills":
                if len(parts) == 2 and parts[1] == "SKILL.md":
                    result[category].append(parts[0])
            elif len(parts) == 1 and rel.endswith(".md"):
                result[category].append(rel[: -len(".md")])
    return {category: sorted(names) for category, names in result.items()}


# =============================================================================
# Commands
# =============================================================================

def cmd_install(args: argparse.Namespace, settings: Settings, fs: FileSystem) -> int:
    if not fs.is_dir(args.source):
        console.print(f"[dim]No components found at {escape(str(args.source))}[/dim]", soft_wrap=True)
        return 0

    event = PackageEvent(
        package_name=PACKAGE_NAME,
        source_path=args.source,
        target_root=get_claude_dir(args.project_root),
    )
    report = InstallHook(fs, console).handle(event, dry_run=args.dry_run)
    if report is not None and (args.dry_run or args.verbose):
        print_report(report, dry_run=args.dry_run)
    # Install is a package-manager step: never fail it.
    return 0


def cmd_upgrade(args: argparse.Namespace, settings: Settings, fs: FileSystem) -> int:
    target = get_claude_dir(args.project_root)
    engine = UpgradeEngine(fs, BackupManager(fs))

    if not args.yes and not args.dry_run and sys.stdin.isatty():
        question = f"Overwrite bundled components in {escape(str(target))}? Existing files are backed up first"
        if not Confirm.ask(question, default=True):
            console.print("Cancelled.")
            return 0

    try:
        report = engine.upgrade(args.source, target, dry_run=args.dry_run)
    except PartialExecution as exc:
        print_error(exc)
        print_report(exc.report)
        if exc.report.backup_path:
            console.print(f"Backup: {escape(str(exc.report.backup_path))}", soft_wrap=True)
        console.print(f"  {len(exc.pending)} file(s) not written; rerun upgrade to finish")
        return 1
    except SyncError as exc:
        print_error(exc)
        return 1

    if args.dry_run:
        print_report(report, dry_run=True)
        console.print("[bold yellow][DRY-RUN][/bold yellow] Nothing was written.")
        return 0

    if report.backup_path:
        console.print(f"Backup: {escape(str(report.backup_path))}", soft_wrap=True)
    else:
        console.print("Backup: none (no existing files were overwritten)")
    print_report(report)
    console.print("[bold green]Upgrade complete![/bold green]")
    return 0


def cmd_list(args: argparse.Namespace, settings: Settings, fs: FileSystem) -> int:
    target = get_claude_dir(args.project_root)
    components = installed_components(target, fs)
    for category in COMPONENT_CATEGORIES:
        names = components[category]
        console.print(f"[bold]{category}[/bold] ({len(names)})")
        if not names:
            console.print("  [dim]none[/dim]")
        for name in names:
            console.print(f"  {escape(name)}", soft_wrap=True)
    return 0


# =============================================================================
# CLI Argument Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awesome-claude-code",
        description="Install or upgrade bundled Claude Code components",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="More log output (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Project containing .claude/ (default: current directory)",
    )

    sync_options = argparse.ArgumentParser(add_help=False)
    sync_options.add_argument(
        "--source",
        type=Path,
        default=None,
        help="Component tree to install from (default: bundled components)",
    )
    sync_options.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing anything",
    )

    install = subparsers.add_parser(
        "install",
        parents=[common, sync_options],
        help="Create missing components, keep existing files",
    )
    install.set_defaults(func=cmd_install)

    upgrade = subparsers.add_parser(
        "upgrade",
        parents=[common, sync_options],
        help="Back up and overwrite all bundled components",
    )
    upgrade.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    upgrade.set_defaults(func=cmd_upgrade)

    list_parser = subparsers.add_parser(
        "list",
        parents=[common],
        help="List installed components",
    )
    list_parser.set_defaults(func=cmd_list)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    args.project_root = (args.project_root or Path.cwd()).resolve()
    if hasattr(args, "source"):
        args.source = (args.source or get_bundled_source()).resolve()
    return args


def main(argv: list[str] | None = None, fs: FileSystem | None = None) -> int:
    """Main entry point with CLI argument parsing."""
    args = parse_args(argv)

    overrides = {}
    if args.verbose:
        overrides["log_level"] = "DEBUG" if args.verbose > 1 else "INFO"
    problem = None
    try:
        settings = load_settings(**overrides)
    except ValidationError as exc:
        problem = settings_error(exc)
        if args.command != "install":
            print_error(problem)
            return 1
        # Package-manager installs must not fail; run with defaults instead.
        settings = Settings.model_construct(**overrides)
    setup_logging(settings)

    if problem is not None:
        logger.warning("Ignoring invalid settings", error=str(problem))
        console.print(
            f"  [yellow]WARN[/yellow] {escape(problem.message)}; using defaults",
            soft_wrap=True,
        )

    try:
        return args.func(args, settings, fs or LocalFileSystem())
    except KeyboardInterrupt:
        logger.warning("Interrupted", command=args.command)
        console.print("\n[yellow]Cancelled.[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
