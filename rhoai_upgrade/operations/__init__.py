"""Operation executors, one per upgrade tool."""

from rhoai_upgrade.operations.deadlock_operations import GPUDeadlockExecutor, detect_deadlocks
from rhoai_upgrade.operations.deployment_operations import DeploymentPatchExecutor
from rhoai_upgrade.operations.metrics_operations import (
    MetricsBackupExecutor,
    MetricsRestoreExecutor,
    load_backup,
)
from rhoai_upgrade.operations.migration_operations import MigrationMode, OtelMigrationExecutor
from rhoai_upgrade.operations.preupgrade_operations import PreUpgradeCheckExecutor

__all__ = [
    "DeploymentPatchExecutor",
    "GPUDeadlockExecutor",
    "MetricsBackupExecutor",
    "MetricsRestoreExecutor",
    "MigrationMode",
    "OtelMigrationExecutor",
    "PreUpgradeCheckExecutor",
    "detect_deadlocks",
    "load_backup",
]
