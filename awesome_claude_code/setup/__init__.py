"""Install, backup and upgrade of bundled components.

    plan / execute      awesome_claude_code.setup.tree_merger
    BackupManager       awesome_claude_code.setup.backup
    UpgradeEngine       awesome_claude_code.setup.upgrade
    InstallHook         awesome_claude_code.setup.install_hook
"""

from awesome_claude_code.setup.backup import BackupManager, BackupSnapshot
from awesome_claude_code.setup.install_hook import InstallHook, PackageEvent
from awesome_claude_code.setup.tree_merger import (
    Action,
    ComponentSourceTree,
    CopyPlan,
    PlanEntry,
    SyncMode,
    UpgradeReport,
    execute,
    plan,
)
from awesome_claude_code.setup.upgrade import UpgradeEngine

__all__ = [
    "Action",
    "BackupManager",
    "BackupSnapshot",
    "ComponentSourceTree",
    "CopyPlan",
    "InstallHook",
    "PackageEvent",
    "PlanEntry",
    "SyncMode",
    "UpgradeEngine",
    "UpgradeReport",
    "execute",
    "plan",
]
