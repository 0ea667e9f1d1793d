"""
Administrative maintenance tasks.

MaintenanceRunner.run() never raises: each requested task yields a
TaskResult, including names outside the recognized set (UnknownTask).
"""
import logging
from collections import OrderedDict
from pathlib import Path

from django.conf import settings
from django.core.cache import caches
from django.core.management import call_command
from django.db import connections
from django.template import engines
from django.urls import clear_url_caches, get_resolver

from system_management.exceptions import UnknownTask, UnsupportedDatabase
from .types import TaskResult

logger = logging.getLogger(__name__)

AVAILABLE_TASKS = OrderedDict([
    ('cache-clear', 'Clear all caches'),
    ('optimize', 'Optimize application (checks, URL and template caches)'),
    ('log-clear', 'Clear log files'),
    ('db-optimize', 'Optimize database tables'),
    ('session-clear', 'Clear sessions'),
])

OPTIMIZE_STATEMENTS = {
    'mysql': 'OPTIMIZE TABLE {table}',
    'postgresql': 'VACUUM ANALYZE {table}',
    'sqlite': 'ANALYZE {table}',
}


def optimize_tables(using='default'):
    """
    Run the storage engine's optimize statement on every table.

    A failing table is logged and skipped. Returns (optimized, failed) where
    failed maps table name to error message.
    """
    connection = connections[using]
    template = OPTIMIZE_STATEMENTS.get(connection.vendor)
    if template is None:
        raise UnsupportedDatabase(connection.vendor)

    optimized = []
    failed = {}
    with connection.cursor() as cursor:
        table_names = connection.introspection.table_names(cursor)
        for table_name in table_names:
            statement = template.format(table=connection.ops.quote_name(table_name))
            try:
                cursor.execute(statement)
                if connection.vendor == 'mysql':
                    cursor.fetchall()
                optimized.append(table_name)
            except Exception as e:
                logger.error(f"Failed to optimize table {table_name}: {e}")
                failed[table_name] = str(e)

    logger.info(f"Optimized {len(optimized)} tables, {len(failed)} failed")
    return optimized, failed


def log_files(log_dir):
    """Log files in log_dir, including rotated ones (django.log.1 ...)"""
    log_dir = Path(log_dir)
    if not log_dir.exists():
        return []
    return sorted(
        item for item in log_dir.iterdir()
        if item.is_file() and (item.suffix == '.log' or '.log.' in item.name)
    )


class MaintenanceRunner:
    def __init__(self, log_dir=None, using='default'):
        self.log_dir = Path(log_dir or settings.LOGS_DIR)
        self.using = using
        self.handlers = {
            'cache-clear': self.clear_all_caches,
            'optimize': self.optimize_application,
            'log-clear': self.clear_logs,
            'db-optimize': self.optimize_database,
            'session-clear': self.clear_sessions,
        }

    def run(self, tasks):
        results = OrderedDict()

        for task in tasks:
            if task in results:
                continue

            handler = self.handlers.get(task)
            if handler is None:
                error = UnknownTask(task)
                results[task] = TaskResult(False, error.message, error=error.__class__.__name__)
                continue

            try:
                results[task] = handler()
            except Exception as e:
                logger.error(f"Maintenance task {task} failed: {e}", exc_info=True)
                results[task] = TaskResult(False, str(e), error=e.__class__.__name__)

        successful = sum(1 for result in results.values() if result.status)
        logger.info(f"Maintenance run completed {successful}/{len(results)} tasks successfully")
        return results

    def run_all(self):
        return self.run(list(AVAILABLE_TASKS))

    # ----- tasks -----

    def clear_all_caches(self):
        try:
            for alias in settings.CACHES:
                caches[alias].clear()
        except Exception as e:
            return TaskResult(False, f"Failed to clear caches: {e}", error=e.__class__.__name__)
        return TaskResult(True, "All caches cleared successfully")

    def optimize_application(self):
        try:
            call_command('check', verbosity=0)

            clear_url_caches()
            patterns = get_resolver().url_patterns
            logger.debug(f"URL resolver rebuilt with {len(patterns)} patterns")

            for backend in engines.all():
                template_engine = getattr(backend, 'engine', None)
                for loader in getattr(template_engine, 'template_loaders', []):
                    if hasattr(loader, 'reset'):
                        loader.reset()
        except Exception as e:
            return TaskResult(False, f"Failed to optimize application: {e}", error=e.__class__.__name__)
        return TaskResult(True, "Application optimized successfully")

    def clear_logs(self):
        cleared = 0
        try:
            for log_file in log_files(self.log_dir):
                with open(log_file, 'w'):
                    pass
                cleared += 1
        except OSError as e:
            return TaskResult(False, f"Failed to clear logs: {e}", error=e.__class__.__name__)
        return TaskResult(True, f"Cleared {cleared} log files")

    def optimize_database(self):
        try:
            optimized, failed = optimize_tables(self.using)
        except Exception as e:
            return TaskResult(False, f"Failed to optimize database: {e}", error=e.__class__.__name__)

        if failed:
            return TaskResult(
                False,
                f"Optimized {len(optimized)} database tables, {len(failed)} failed: "
                f"{', '.join(sorted(failed))}"
            )
        return TaskResult(True, f"Optimized {len(optimized)} database tables")

    def clear_sessions(self):
        from django.contrib.sessions.models import Session

        try:
            deleted, _ = Session.objects.all().delete()
        except Exception as e:
            return TaskResult(False, f"Failed to clear sessions: {e}", error=e.__class__.__name__)
        return TaskResult(True, f"Sessions cleared successfully ({deleted} removed)")
