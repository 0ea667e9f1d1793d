"""
Resource usage snapshot for the running process and its host.

Every metric is read independently; anything that cannot be read is
reported as 0, indistinguishable from a real zero.
"""
import logging
import os
import resource
import sys
from pathlib import Path

import psutil
from django.conf import settings
from django.db import connections

from system_management.utils.formatters import parse_bytes
from .types import MetricsSnapshot

logger = logging.getLogger(__name__)


def directory_size(path):
    """Total size of the files below path, 0 when it does not exist."""
    path = Path(path)
    if not path.exists():
        return 0
    total = 0
    for item in path.rglob('*'):
        try:
            if item.is_file():
                total += item.stat().st_size
        except OSError:
            continue
    return total


class MetricsCollector:
    def __init__(self, storage_path=None, log_dir=None, using='default'):
        self.storage_path = Path(storage_path or settings.BASE_DIR)
        self.log_dir = Path(log_dir or settings.LOGS_DIR)
        self.using = using

    def collect(self):
        return MetricsSnapshot(
            memory={
                'current': self._safe(self.memory_current),
                'peak': self._safe(self.memory_peak),
                'limit': self._safe(self.memory_limit),
            },
            disk={
                'free': self._safe(lambda: psutil.disk_usage(str(self.storage_path)).free),
                'total': self._safe(lambda: psutil.disk_usage(str(self.storage_path)).total),
            },
            database_size=self._safe(self.database_size),
            log_size=self._safe(lambda: directory_size(self.log_dir)),
        )

    def _safe(self, reader):
        try:
            return int(reader() or 0)
        except Exception as e:
            logger.debug(f"Metric {getattr(reader, '__name__', 'value')} unavailable: {e}")
            return 0

    def memory_current(self):
        return psutil.Process(os.getpid()).memory_info().rss

    def memory_peak(self):
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # ru_maxrss is reported in kilobytes on Linux and bytes on macOS
        return peak if sys.platform == 'darwin' else peak * 1024

    def memory_limit(self):
        configured = getattr(settings, 'SYSTEM_MEMORY_LIMIT', '')
        if configured:
            return parse_bytes(configured)

        soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
        if soft not in (resource.RLIM_INFINITY, -1):
            return soft
        return psutil.virtual_memory().total

    def database_size(self):
        connection = connections[self.using]
        vendor = connection.vendor

        if vendor == 'mysql':
            with connection.cursor() as cursor:
                cursor.execute(
                    "SELECT SUM(data_length + index_length) FROM information_schema.tables "
                    "WHERE table_schema = %s",
                    [connection.settings_dict['NAME']]
                )
                row = cursor.fetchone()
            return row[0] if row and row[0] else 0

        if vendor == 'postgresql':
            with connection.cursor() as cursor:
                cursor.execute("SELECT pg_database_size(current_database())")
                row = cursor.fetchone()
            return row[0] if row else 0

        if vendor == 'sqlite':
            name = str(connection.settings_dict['NAME'])
            if name == ':memory:' or name.startswith('file:'):
                with connection.cursor() as cursor:
                    cursor.execute("PRAGMA page_count")
                    page_count = cursor.fetchone()[0]
                    cursor.execute("PRAGMA page_size")
                    page_size = cursor.fetchone()[0]
                return page_count * page_size
            return os.path.getsize(name)

        return 0
