"""
Glue between the periodic scheduler and the system management services.

Each job is non-re-entrant: a cache lock keyed by job name is held while
the job runs, and an overlapping invocation is skipped.
"""
import logging
from datetime import timedelta
from pathlib import Path

from django.core.cache import cache as default_cache
from django.db import models
from django.utils import timezone

from system_management.models.configuration import MaintenanceSettings
from .maintenance import log_files

logger = logging.getLogger(__name__)

LOCK_KEY = 'system_job_lock:{name}'
STATE_KEY = 'system_job_state:{name}'
DEFAULT_LOCK_TIMEOUT = 60 * 60
BACKUP_HOUR = 2


class JobState(models.TextChoices):
    IDLE = 'idle', 'Idle'
    RUNNING = 'running', 'Running'
    SUCCEEDED = 'succeeded', 'Succeeded'
    FAILED = 'failed', 'Failed'


def get_job_state(name, cache=None):
    cache = cache if cache is not None else default_cache
    return cache.get(STATE_KEY.format(name=name)) or {'state': JobState.IDLE, 'last_outcome': None}


def _set_job_state(cache, name, **values):
    state = get_job_state(name, cache)
    state.update(values)
    cache.set(STATE_KEY.format(name=name), state, None)
    return state


def run_job(name, func, cache=None, on_error=None, lock_timeout=DEFAULT_LOCK_TIMEOUT):
    """
    Run func under the job lock and record its outcome.

    Returns (ran, value). ``ran`` is False when another run of the same job
    holds the lock. Exceptions raised by func are recorded, passed to
    on_error and never propagate.
    """
    cache = cache if cache is not None else default_cache
    lock_key = LOCK_KEY.format(name=name)

    if not cache.add(lock_key, timezone.now().isoformat(), lock_timeout):
        logger.warning(f"Job {name} is already running, skipping this invocation")
        return False, None

    _set_job_state(cache, name, state=JobState.RUNNING, started_at=timezone.now().isoformat(), error=None)
    value = None
    try:
        value = func()
    except Exception as e:
        logger.error(f"Job {name} failed: {e}", exc_info=True)
        _set_job_state(
            cache, name,
            state=JobState.IDLE,
            last_outcome=JobState.FAILED,
            finished_at=timezone.now().isoformat(),
            error=str(e),
        )
        if on_error is not None:
            try:
                on_error(e)
            except Exception as handler_error:
                logger.error(f"Error handler for job {name} failed: {handler_error}", exc_info=True)
    else:
        _set_job_state(
            cache, name,
            state=JobState.IDLE,
            last_outcome=JobState.SUCCEEDED,
            finished_at=timezone.now().isoformat(),
        )
    finally:
        cache.delete(lock_key)

    return True, value


def backup_due(now, schedule):
    """Whether an automatic backup falls in the hour containing now"""
    now = timezone.localtime(now)
    if now.hour != BACKUP_HOUR:
        return False

    if schedule == MaintenanceSettings.SCHEDULE_DAILY:
        return True
    if schedule == MaintenanceSettings.SCHEDULE_WEEKLY:
        return now.weekday() == 6
    if schedule == MaintenanceSettings.SCHEDULE_MONTHLY:
        return now.day == 1
    return False


def purge_old_logs(log_dir, days=30, now=None):
    """Delete log files last modified more than ``days`` ago. Returns deleted paths."""
    now = now or timezone.now()
    cutoff = (now - timedelta(days=days)).timestamp()
    deleted = []

    for log_file in log_files(Path(log_dir)):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                deleted.append(log_file)
        except OSError as e:
            logger.warning(f"Could not delete log file {log_file}: {e}")

    logger.info(f"Purged {len(deleted)} log files older than {days} days")
    return deleted
