"""
Scheduled system jobs.

Every task runs through run_job so two runs of the same job never overlap.
A job that raises is written to the audit log and reported to the admins.
"""
import logging

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone

from system_management.exceptions import BackupFailed
from system_management.models import AuditLog, MaintenanceSettings
from system_management.services import (
    BackupOrchestrator,
    HealthChecker,
    Notifier,
    backup_due,
    optimize_tables,
    purge_old_logs,
    run_job,
    store_health,
)
from system_management.utils import format_bytes, humanize_check_name

logger = logging.getLogger(__name__)


def status_link():
    return reverse('system_management:status')


def artifact_details(artifacts):
    return [
        f"{artifact.kind}: {artifact.path.name} ({format_bytes(artifact.size)})"
        for artifact in artifacts
    ]


def backup_failure_details(error):
    details = [f"Error: {error}"]
    if isinstance(error, BackupFailed) and error.step:
        details.append(f"Step: {error.step}")
    return details


def notify_backup_failure(error, notifier=None):
    notifier = notifier or Notifier()
    notifier.notify_admins(
        'error',
        'Automatic Backup Failed',
        'The automatic system backup failed. Please check the system immediately.',
        backup_failure_details(error),
        link=status_link(),
    )


def job_failure_handler(job_name, title):
    """Build an on_error callback that audits the failure and alerts admins"""

    def on_error(error):
        AuditLog.log_action(
            user=None,
            action='SCHEDULED_JOB',
            model_name='System',
            object_id=job_name,
            details={'error': str(error), 'error_type': error.__class__.__name__},
        )
        Notifier().notify_admins(
            'error',
            title,
            f"The scheduled job {job_name} failed. Please check the system logs.",
            [f"Error: {error}"],
            link=status_link(),
        )

    return on_error


@shared_task
def system_health_check():
    """Run every health probe, cache the report and alert admins when critical"""

    def job():
        report = HealthChecker().check()
        store_health(report, timeout=settings.SYSTEM_HEALTH_JOB_CACHE_TIMEOUT)

        if report.is_critical:
            failed = [humanize_check_name(name) for name in report.failed_checks()]
            Notifier().notify_admins(
                'critical',
                'Critical System Health Alert',
                'The system health check has detected critical issues that require immediate attention.',
                [f"Failed check: {name}" for name in failed],
                link=status_link(),
            )
            logger.critical(f"System health critical: {', '.join(failed)}")

        return report.to_dict()

    ran, result = run_job(
        'system_health_check',
        job,
        on_error=job_failure_handler('system_health_check', 'System Health Check Failed'),
    )
    return result if ran else None


@shared_task
def auto_backup():
    """Hourly tick; backs up when enabled and the configured schedule matches"""
    maintenance_settings = MaintenanceSettings.get_settings()

    if not maintenance_settings.auto_backup_enabled:
        logger.debug("Automatic backups are disabled")
        return "Automatic backups disabled"

    now = timezone.now()
    if not backup_due(now, maintenance_settings.auto_backup_schedule):
        return "Backup not due"

    def job():
        orchestrator = BackupOrchestrator()
        name = f"auto_backup_{timezone.localtime(now).strftime('%Y_%m_%d_%H_%M_%S')}"
        artifacts = orchestrator.backup(name=name)
        deleted = orchestrator.cleanup(maintenance_settings.retention_days, now=now)

        AuditLog.log_action(
            user=None,
            action='BACKUP_CLEANUP',
            model_name='System',
            details={'deleted': [path.name for path in deleted], 'retention_days': maintenance_settings.retention_days},
        )

        details = [f"Backup name: {name}"]
        details.extend(artifact_details(artifacts))
        details.append(f"Old backups removed: {len(deleted)}")
        Notifier().notify_admins(
            'success',
            'Automatic Backup Completed',
            'The automatic system backup completed successfully.',
            details,
        )
        return [artifact.to_dict() for artifact in artifacts]

    ran, result = run_job('auto_backup', job, on_error=notify_backup_failure)
    if not ran:
        return "Backup already running"
    return result


@shared_task
def run_backup(name=None, include_database=True, include_files=True, user_id=None):
    """On-demand backup, dispatched from the admin so it never blocks a request"""
    user = None
    if user_id is not None:
        user = get_user_model().objects.filter(pk=user_id).first()

    def notify(kind, title, message, details):
        notifier = Notifier()
        if user is not None:
            notifier.notify([user], kind, title, message, details)
        else:
            notifier.notify_admins(kind, title, message, details)

    def job():
        orchestrator = BackupOrchestrator(user=user)
        artifacts = orchestrator.backup(
            name=name,
            include_database=include_database,
            include_files=include_files,
        )
        notify('success', 'Backup Completed', 'The requested backup completed successfully.', artifact_details(artifacts))
        return [artifact.to_dict() for artifact in artifacts]

    def on_error(error):
        notify('error', 'Backup Failed', f"Backup failed: {error}", backup_failure_details(error))

    ran, result = run_job('run_backup', job, on_error=on_error)
    return result if ran else None


@shared_task
def cleanup_old_logs():
    """Weekly purge of log files past the retention window"""

    def job():
        deleted = purge_old_logs(settings.LOGS_DIR, days=settings.SYSTEM_LOG_RETENTION_DAYS)
        return f"Deleted {len(deleted)} old log files"

    ran, result = run_job(
        'cleanup_old_logs',
        job,
        on_error=job_failure_handler('cleanup_old_logs', 'Log Cleanup Failed'),
    )
    return result if ran else None


@shared_task
def optimize_database():
    """Monthly optimize of every table; a failing table does not stop the rest"""

    def job():
        optimized, failed = optimize_tables()
        AuditLog.log_action(
            user=None,
            action='MAINTENANCE',
            model_name='Database',
            details={'optimized': len(optimized), 'failed': failed},
        )
        return f"Optimized {len(optimized)} tables, {len(failed)} failed"

    ran, result = run_job(
        'optimize_database',
        job,
        on_error=job_failure_handler('optimize_database', 'Database Optimization Failed'),
    )
    return result if ran else None
