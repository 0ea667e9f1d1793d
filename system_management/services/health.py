"""
System health checks.

HealthChecker runs a fixed, ordered battery of probes and aggregates them:

* ``critical`` when any probe listed in the critical set failed
  (SYSTEM_HEALTH_CRITICAL_CHECKS, ``database`` and ``permissions`` by default),
* ``warning`` when only probes outside that set failed,
* ``healthy`` when every probe passed.

A probe is a zero-argument callable returning a ProbeResult. It may raise
ProbeFailure (or anything else); the checker turns the exception into a
failed result so one broken probe never stops the others.
"""
import importlib
import logging
import sys
import time
import uuid
from collections import OrderedDict
from pathlib import Path

import psutil
from django.conf import settings
from django.core.cache import cache as default_cache
from django.db import connections

from system_management.exceptions import ProbeFailure
from system_management.utils.formatters import format_bytes, parse_bytes
from .types import HealthReport, HealthStatus, ProbeResult

logger = logging.getLogger(__name__)

MIN_PYTHON_VERSION = (3, 10)
REQUIRED_MODULES = ['django', 'celery', 'psutil', 'decouple']


def aggregate_health(results, critical_checks=()):
    """Build a HealthReport from an ordered mapping of probe name -> ProbeResult"""
    checks = OrderedDict(results)
    total = len(checks)
    passing = sum(1 for result in checks.values() if result.passed)
    percentage = round(passing / total * 100, 2) if total else 0.0

    failed = [name for name, result in checks.items() if not result.passed]
    if any(name in critical_checks for name in failed):
        status = HealthStatus.CRITICAL
    elif failed:
        status = HealthStatus.WARNING
    else:
        status = HealthStatus.HEALTHY

    return HealthReport(
        status=status,
        checks=checks,
        passing=passing,
        total=total,
        percentage=percentage,
        critical_checks=[name for name in critical_checks if name in checks],
    )


class HealthChecker:
    def __init__(self, probes=None, critical_checks=None, cache=None):
        self.cache = cache if cache is not None else default_cache
        self.critical_checks = list(
            critical_checks if critical_checks is not None
            else getattr(settings, 'SYSTEM_HEALTH_CRITICAL_CHECKS', ['database', 'permissions'])
        )
        self.probes = OrderedDict(probes) if probes is not None else self.default_probes()

    def default_probes(self):
        return OrderedDict([
            ('database', self.check_database),
            ('disk_space', self.check_disk_space),
            ('queue', self.check_queue),
            ('cache', self.check_cache),
            ('permissions', self.check_permissions),
            ('logs', self.check_logs),
            ('dependencies', self.check_dependencies),
        ])

    def check(self):
        results = OrderedDict()
        for name, probe in self.probes.items():
            results[name] = self.run_probe(name, probe)

        report = aggregate_health(results, self.critical_checks)
        logger.info(
            f"Health check: {report.status} ({report.passing}/{report.total} passing, {report.percentage}%)"
        )
        return report

    def run_probe(self, name, probe):
        try:
            result = probe()
        except ProbeFailure as e:
            return ProbeResult(False, e.message, dict(e.details))
        except Exception as e:
            logger.error(f"Health probe '{name}' crashed: {e}", exc_info=True)
            return ProbeResult(False, f"Check raised an error: {e}")

        if not isinstance(result, ProbeResult):
            return ProbeResult(bool(result), 'OK' if result else 'Check failed')
        return result

    # ----- probes -----

    def check_database(self):
        connection = connections['default']
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except Exception as e:
            raise ProbeFailure("Database connection failed", details={'error': str(e)})

        return ProbeResult(True, f"Connected ({connection.vendor})", {'vendor': connection.vendor})

    def check_disk_space(self):
        threshold = parse_bytes(getattr(settings, 'SYSTEM_HEALTH_MIN_FREE_DISK', '1GB'))
        usage = psutil.disk_usage(str(settings.BASE_DIR))
        details = {'free': usage.free, 'total': usage.total, 'threshold': threshold}

        if usage.free < threshold:
            raise ProbeFailure(
                f"Low disk space: {format_bytes(usage.free)} free "
                f"(minimum {format_bytes(threshold)})",
                details=details
            )
        return ProbeResult(True, f"{format_bytes(usage.free)} free", details)

    def check_queue(self):
        from learning_platform.celery import app as celery_app

        if celery_app.conf.task_always_eager:
            return ProbeResult(True, "Tasks run eagerly (no worker required)", {'mode': 'eager'})

        timeout = getattr(settings, 'SYSTEM_HEALTH_QUEUE_TIMEOUT', 1.0)
        try:
            replies = celery_app.control.inspect(timeout=timeout).ping()
        except Exception as e:
            raise ProbeFailure("Queue broker unreachable", details={'error': str(e)})

        if not replies:
            raise ProbeFailure("No queue workers responded")
        return ProbeResult(True, f"{len(replies)} worker(s) responding", {'workers': sorted(replies)})

    def check_cache(self):
        key = f"system_health_test_{uuid.uuid4().hex}"
        value = str(time.time())

        self.cache.set(key, value, 60)
        retrieved = self.cache.get(key)
        self.cache.delete(key)

        if retrieved != value:
            raise ProbeFailure("Cache test failed: value was not stored")
        return ProbeResult(True, "Cache is working")

    def check_permissions(self):
        paths = [
            Path(settings.SYSTEM_BACKUP_DIR),
            Path(settings.LOGS_DIR),
            Path(settings.MEDIA_ROOT),
        ]
        issues = []

        for path in paths:
            test_file = path / f"permission_test_{uuid.uuid4().hex}.tmp"
            try:
                path.mkdir(parents=True, exist_ok=True)
                test_file.write_text('test')
                test_file.unlink()
            except OSError as e:
                issues.append(f"Cannot write to {path}: {e}")

        if issues:
            raise ProbeFailure("Permission issues detected", details={'issues': issues})
        return ProbeResult(True, "File permissions are correct")

    def check_logs(self):
        log_dir = Path(settings.LOGS_DIR)
        max_size = parse_bytes(getattr(settings, 'SYSTEM_HEALTH_MAX_LOG_FILE_SIZE', '100MB'))

        if not log_dir.exists():
            raise ProbeFailure("Logs directory does not exist")

        large_files = [
            item.name for item in log_dir.iterdir()
            if item.is_file() and item.stat().st_size > max_size
        ]
        if large_files:
            raise ProbeFailure(
                f"Large log files detected: {', '.join(sorted(large_files))}",
                details={'files': sorted(large_files)}
            )
        return ProbeResult(True, "Logging system is healthy")

    def check_dependencies(self):
        issues = []

        if sys.version_info[:2] < MIN_PYTHON_VERSION:
            issues.append("Python {}.{} or higher required".format(*MIN_PYTHON_VERSION))

        for module in REQUIRED_MODULES:
            try:
                importlib.import_module(module)
            except ImportError:
                issues.append(f"Required module missing: {module}")

        if not settings.SECRET_KEY:
            issues.append("SECRET_KEY is not set")

        if issues:
            raise ProbeFailure("Dependency issues detected", details={'issues': issues})
        return ProbeResult(True, "All dependencies are satisfied")


# ----- cache helpers -----

def health_cache_key():
    return getattr(settings, 'SYSTEM_HEALTH_CACHE_KEY', 'system_health_status')


def get_cached_health(cache=None):
    cache = cache if cache is not None else default_cache
    data = cache.get(health_cache_key())
    if not data:
        return None
    try:
        return HealthReport.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable cached health report: {e}")
        cache.delete(health_cache_key())
        return None


def store_health(report, cache=None, timeout=None):
    cache = cache if cache is not None else default_cache
    if timeout is None:
        timeout = getattr(settings, 'SYSTEM_HEALTH_CACHE_TIMEOUT', 300)
    cache.set(health_cache_key(), report.to_dict(), timeout)
    return report


def remember_health(cache=None, timeout=None, checker=None):
    """Return the cached report, computing and caching a fresh one when absent"""
    report = get_cached_health(cache)
    if report is None:
        checker = checker or HealthChecker(cache=cache)
        report = store_health(checker.check(), cache=cache, timeout=timeout)
    return report
