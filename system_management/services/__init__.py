from .backup import BackupOrchestrator, default_backup_name
from .health import HealthChecker, aggregate_health, get_cached_health, remember_health, store_health
from .maintenance import AVAILABLE_TASKS, MaintenanceRunner, optimize_tables
from .metrics import MetricsCollector
from .notifier import EmailChannel, InAppChannel, Notifier
from .process import ProcessResult, ProcessRunner
from .scheduler import JobState, backup_due, purge_old_logs, run_job
from .types import (
    BackupArtifact,
    BackupKind,
    HealthReport,
    HealthStatus,
    MetricsSnapshot,
    ProbeResult,
    TaskResult,
)

__all__ = [
    'AVAILABLE_TASKS',
    'BackupArtifact',
    'BackupKind',
    'BackupOrchestrator',
    'EmailChannel',
    'HealthChecker',
    'HealthReport',
    'HealthStatus',
    'InAppChannel',
    'JobState',
    'MaintenanceRunner',
    'MetricsCollector',
    'MetricsSnapshot',
    'Notifier',
    'ProbeResult',
    'ProcessResult',
    'ProcessRunner',
    'TaskResult',
    'aggregate_health',
    'backup_due',
    'default_backup_name',
    'get_cached_health',
    'optimize_tables',
    'purge_old_logs',
    'remember_health',
    'run_job',
    'store_health',
]
