"""Plan and apply file-level synchronization of bundled components.

Synchronization is split in two steps:

1. ``plan()`` looks at the captured source tree and the target ``.claude/``
   directory and decides, for every source file on its own, whether to
   skip, create or overwrite it. Nothing is written.
2. ``execute()`` applies a plan. It is the only function here that writes.

Two modes exist:

- PRESERVE (package install/update): missing files are created, existing
  ones are skipped.
- FORCE (explicit upgrade): missing files are created, existing ones are
  overwritten. Callers must back up the overwritten paths first; see
  ``awesome_claude_code.setup.upgrade``.

Files present only in the target are never looked at.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from awesome_claude_code.core.errors import (
    PartialExecution,
    SourceUnavailable,
    TargetUnwritable,
    hint_for,
)
from awesome_claude_code.core.fs import FileSystem, LocalFileSystem
from awesome_claude_code.core.logging_config import get_logger

logger = get_logger(__name__)

# Top-level directories of the bundled tree that are distributed.
COMPONENT_CATEGORIES = ("commands", "agents", "skills")


class SyncMode(str, Enum):
    """How existing target files are treated."""

    PRESERVE = "preserve"
    FORCE = "force"


class Action(str, Enum):
    """What a run does with one source file."""

    SKIP = "skip"
    CREATE = "create"
    OVERWRITE = "overwrite"


def category_of(relative_path: str) -> str:
    """Return the component category (first path segment) of a relative path."""
    return relative_path.split("/", 1)[0]


# =============================================================================
# Source snapshot
# =============================================================================

@dataclass(frozen=True)
class ComponentSourceTree:
    """Immutable snapshot of the bundled component files.

    Attributes:
        root: Directory the snapshot was taken from
        files: POSIX relative path -> file bytes
    """

    root: Path
    files: Mapping[str, bytes]

    @classmethod
    def capture(
        cls,
        root: Path,
        fs: FileSystem | None = None,
        categories: tuple[str, ...] = COMPONENT_CATEGORIES,
    ) -> ComponentSourceTree:
        """Read every file under ``root/<category>`` into memory.

        Args:
            root: Bundled ``.claude`` directory
            fs: Filesystem to read from
            categories: Category directories to include

        Returns:
            Snapshot of the source tree

        Raises:
            SourceUnavailable: If ``root`` is missing or a file cannot be read
        """
        fs = fs or LocalFileSystem()
        root = Path(root)
        if not fs.is_dir(root):
            raise SourceUnavailable(
                "Bundled component directory not found",
                path=root,
                hint="reinstall the awesome-claude-code package",
            )

        files: dict[str, bytes] = {}
        for category in categories:
            base = root / category
            if not fs.is_dir(base):
                continue
            current = base
            try:
                for rel in fs.iter_files(base):
                    current = base / rel
                    files[f"{category}/{rel}"] = fs.read_bytes(current)
            except OSError as exc:
                raise SourceUnavailable(
                    "Cannot read bundled component",
                    path=current,
                    hint=hint_for(exc),
                ) from exc

        logger.debug("Captured component source", source=root, files=len(files))
        return cls(root=root, files=MappingProxyType(files))

    def __len__(self) -> int:
        return len(self.files)


# =============================================================================
# Plan
# =============================================================================

@dataclass(frozen=True)
class PlanEntry:
    """One file and what will happen to it."""

    relative_path: str
    action: Action

    @property
    def category(self) -> str:
        return category_of(self.relative_path)


@dataclass(frozen=True)
class CopyPlan:
    """Everything a run will do, computed before any write."""

    source: ComponentSourceTree
    target_root: Path
    mode: SyncMode
    entries: tuple[PlanEntry, ...]

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def paths(self, action: Action) -> list[str]:
        """Relative paths planned for ``action``, in plan order."""
        return [entry.relative_path for entry in self.entries if entry.action is action]

    @property
    def overwrites(self) -> list[str]:
        return self.paths(Action.OVERWRITE)

    def counts(self) -> dict[Action, int]:
        counter = Counter(entry.action for entry in self.entries)
        return {action: counter.get(action, 0) for action in Action}


def _decide(mode: SyncMode, exists: bool) -> Action:
    if not exists:
        return Action.CREATE
    return Action.OVERWRITE if mode is SyncMode.FORCE else Action.SKIP


def plan(
    source: ComponentSourceTree | Path | str,
    target_root: Path | str,
    mode: SyncMode | str,
    fs: FileSystem | None = None,
) -> CopyPlan:
    """Compute the copy plan for one run.

    Each source file is decided independently from its own target path.
    Directories are not planned; they are created as needed by ``execute``.

    Args:
        source: Captured source tree, or its root directory
        target_root: Consumer's ``.claude`` directory
        mode: PRESERVE or FORCE
        fs: Filesystem to inspect

    Returns:
        CopyPlan sorted by relative path
    """
    fs = fs or LocalFileSystem()
    mode = SyncMode(mode)
    target_root = Path(target_root)
    if not isinstance(source, ComponentSourceTree):
        source = ComponentSourceTree.capture(Path(source), fs)

    entries = tuple(
        PlanEntry(rel, _decide(mode, fs.exists(target_root / rel)))
        for rel in sorted(source.files)
    )
    copy_plan = CopyPlan(source=source, target_root=target_root, mode=mode, entries=entries)

    counts = copy_plan.counts()
    logger.info(
        "Built copy plan",
        mode=mode.value,
        target=target_root,
        files_create=counts[Action.CREATE],
        files_skip=counts[Action.SKIP],
        files_overwrite=counts[Action.OVERWRITE],
    )
    return copy_plan


# =============================================================================
# Report
# =============================================================================

@dataclass
class UpgradeReport:
    """Per-category counts of what a run did.

    Attributes:
        mode: Mode of the run that produced the report
        skipped: Files left untouched, by category
        created: Files newly written, by category
        overwritten: Existing files replaced, by category
        completed: Relative paths fully handled, in order
        backup_path: Snapshot directory, when one was taken
    """

    mode: SyncMode = SyncMode.PRESERVE
    skipped: Counter = field(default_factory=Counter)
    created: Counter = field(default_factory=Counter)
    overwritten: Counter = field(default_factory=Counter)
    completed: list[str] = field(default_factory=list)
    backup_path: Path | None = None

    @classmethod
    def from_plan(cls, copy_plan: CopyPlan) -> UpgradeReport:
        """Predicted report for a plan that has not been executed."""
        report = cls(mode=copy_plan.mode)
        for entry in copy_plan:
            report.record(entry)
        return report

    def record(self, entry: PlanEntry, action: Action | None = None) -> None:
        action = action or entry.action
        bucket = {
            Action.SKIP: self.skipped,
            Action.CREATE: self.created,
            Action.OVERWRITE: self.overwritten,
        }[action]
        bucket[entry.category] += 1
        self.completed.append(entry.relative_path)

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    @property
    def total_created(self) -> int:
        return sum(self.created.values())

    @property
    def total_overwritten(self) -> int:
        return sum(self.overwritten.values())

    @property
    def categories(self) -> list[str]:
        """Known categories first, then anything else seen, sorted."""
        seen = set(self.skipped) | set(self.created) | set(self.overwritten)
        extra = sorted(seen - set(COMPONENT_CATEGORIES))
        return [c for c in COMPONENT_CATEGORIES if c in seen] + extra

    def as_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "skipped": self.total_skipped,
            "created": self.total_created,
            "overwritten": self.total_overwritten,
            "by_category": {
                category: {
                    "skipped": self.skipped[category],
                    "created": self.created[category],
                    "overwritten": self.overwritten[category],
                }
                for category in self.categories
            },
            "backup_path": str(self.backup_path) if self.backup_path else None,
        }


# =============================================================================
# Execute
# =============================================================================

def execute(copy_plan: CopyPlan, fs: FileSystem | None = None) -> UpgradeReport:
    """Apply a copy plan.

    SKIP entries are counted and never opened. The first write error stops
    the run; a rerun with a fresh plan finishes the remaining files.

    Args:
        copy_plan: Plan from ``plan()``
        fs: Filesystem to write to

    Returns:
        Report of what was done

    Raises:
        TargetUnwritable: If the target root cannot be created
        PartialExecution: If a file write fails after the run started
    """
    fs = fs or LocalFileSystem()
    report = UpgradeReport(mode=copy_plan.mode)
    target_root = copy_plan.target_root

    try:
        fs.mkdir(target_root)
    except OSError as exc:
        raise TargetUnwritable(
            "Cannot create target directory",
            path=target_root,
            hint=hint_for(exc),
        ) from exc

    entries = list(copy_plan.entries)
    for index, entry in enumerate(entries):
        destination = target_root / entry.relative_path

        if entry.action is Action.SKIP:
            logger.debug("Skipping (exists)", file=entry.relative_path)
            report.record(entry)
            continue

        # Something may have appeared since planning; preserve mode still wins.
        if (
            copy_plan.mode is SyncMode.PRESERVE
            and entry.action is Action.CREATE
            and fs.exists(destination)
        ):
            logger.debug("Skipping (appeared after planning)", file=entry.relative_path)
            report.record(entry, Action.SKIP)
            continue

        try:
            fs.mkdir(destination.parent)
            fs.write_bytes(destination, copy_plan.source.files[entry.relative_path])
        except OSError as exc:
            logger.error(
                "Write failed, stopping run",
                file=entry.relative_path,
                applied=index,
                total=len(entries),
                error=str(exc),
            )
            raise PartialExecution(
                f"Stopped after {index} of {len(entries)} files; rerun to finish",
                path=destination,
                report=report,
                completed=entries[:index],
                pending=entries[index:],
                hint=hint_for(exc),
            ) from exc

        verb = "Overwrote" if entry.action is Action.OVERWRITE else "Copied"
        logger.debug(verb, file=entry.relative_path)
        report.record(entry)

    logger.info(
        "Applied copy plan",
        mode=copy_plan.mode.value,
        target=target_root,
        files_created=report.total_created,
        files_skipped=report.total_skipped,
        files_overwritten=report.total_overwritten,
    )
    return report
