import itertools
import tempfile
from collections import OrderedDict
from unittest import mock

from django.core.cache import caches
from django.test import SimpleTestCase, TestCase, override_settings

from system_management.exceptions import ProbeFailure
from system_management.services import (
    HealthChecker,
    HealthReport,
    HealthStatus,
    ProbeResult,
    aggregate_health,
    get_cached_health,
    remember_health,
    store_health,
)

PROBE_NAMES = ['database', 'disk_space', 'queue', 'permissions']
CRITICAL = ['database', 'permissions']


def results_for(outcomes):
    return OrderedDict(
        (name, ProbeResult(passed, 'ok' if passed else 'failed'))
        for name, passed in zip(PROBE_NAMES, outcomes)
    )


class AggregateHealthTest(SimpleTestCase):
    def test_percentage_matches_passing_over_total(self):
        for outcomes in itertools.product([True, False], repeat=len(PROBE_NAMES)):
            report = aggregate_health(results_for(outcomes), CRITICAL)
            self.assertLessEqual(report.passing, report.total)
            self.assertEqual(report.percentage, round(100 * report.passing / report.total, 2))
            self.assertGreaterEqual(report.percentage, 0)
            self.assertLessEqual(report.percentage, 100)

    def test_status_rule(self):
        for outcomes in itertools.product([True, False], repeat=len(PROBE_NAMES)):
            report = aggregate_health(results_for(outcomes), CRITICAL)
            failed = [name for name, passed in zip(PROBE_NAMES, outcomes) if not passed]

            if any(name in CRITICAL for name in failed):
                self.assertEqual(report.status, HealthStatus.CRITICAL)
            elif failed:
                self.assertEqual(report.status, HealthStatus.WARNING)
            else:
                self.assertEqual(report.status, HealthStatus.HEALTHY)

    def test_critical_wins_over_passing_majority(self):
        results = OrderedDict([('database', ProbeResult(False, 'down'))])
        results.update((f'extra_{i}', ProbeResult(True, 'ok')) for i in range(20))

        report = aggregate_health(results, CRITICAL)

        self.assertEqual(report.status, HealthStatus.CRITICAL)
        self.assertEqual(report.failed_critical_checks(), ['database'])

    def test_no_probes(self):
        report = aggregate_health(OrderedDict(), CRITICAL)
        self.assertEqual(report.total, 0)
        self.assertEqual(report.percentage, 0.0)
        self.assertEqual(report.status, HealthStatus.HEALTHY)


class HealthCheckerTest(SimpleTestCase):
    def test_default_probe_order(self):
        checker = HealthChecker(cache=caches['default'])
        self.assertEqual(
            list(checker.probes),
            ['database', 'disk_space', 'queue', 'cache', 'permissions', 'logs', 'dependencies']
        )

    def test_probe_exceptions_become_failed_results(self):
        def failing():
            raise ProbeFailure("Queue broker unreachable", details={'error': 'refused'})

        def crashing():
            raise RuntimeError("boom")

        checker = HealthChecker(
            probes=[
                ('queue', failing),
                ('cache', crashing),
                ('logs', lambda: ProbeResult(True, 'fine')),
            ],
            critical_checks=['database'],
        )
        report = checker.check()

        self.assertEqual(list(report.checks), ['queue', 'cache', 'logs'])
        self.assertFalse(report.checks['queue'].passed)
        self.assertEqual(report.checks['queue'].message, "Queue broker unreachable")
        self.assertEqual(report.checks['queue'].details, {'error': 'refused'})
        self.assertFalse(report.checks['cache'].passed)
        self.assertIn('boom', report.checks['cache'].message)
        self.assertTrue(report.checks['logs'].passed)
        self.assertEqual(report.status, HealthStatus.WARNING)
        self.assertEqual(report.passing, 1)

    def test_cache_probe_round_trip(self):
        checker = HealthChecker(cache=caches['default'])
        result = checker.check_cache()
        self.assertTrue(result.passed)

    def test_cache_probe_fails_when_value_not_stored(self):
        broken_cache = mock.Mock()
        broken_cache.get.return_value = None
        checker = HealthChecker(cache=broken_cache)

        with self.assertRaises(ProbeFailure):
            checker.check_cache()

    def test_queue_probe_passes_in_eager_mode(self):
        result = HealthChecker(cache=caches['default']).check_queue()
        self.assertTrue(result.passed)

    @override_settings(SYSTEM_HEALTH_MIN_FREE_DISK='1PB')
    def test_disk_space_probe_reports_threshold(self):
        with self.assertRaises(ProbeFailure) as ctx:
            HealthChecker(cache=caches['default']).check_disk_space()
        self.assertEqual(ctx.exception.details['threshold'], 1024 ** 5)

    def test_logs_probe_flags_large_files(self):
        with tempfile.TemporaryDirectory() as log_dir:
            with open(f"{log_dir}/django.log", 'w') as handle:
                handle.write('x' * 2048)

            with override_settings(LOGS_DIR=log_dir, SYSTEM_HEALTH_MAX_LOG_FILE_SIZE='1KB'):
                with self.assertRaises(ProbeFailure) as ctx:
                    HealthChecker(cache=caches['default']).check_logs()

        self.assertEqual(ctx.exception.details['files'], ['django.log'])

    def test_permissions_probe(self):
        with tempfile.TemporaryDirectory() as tmp:
            with override_settings(SYSTEM_BACKUP_DIR=f"{tmp}/backups", LOGS_DIR=f"{tmp}/logs", MEDIA_ROOT=f"{tmp}/media"):
                result = HealthChecker(cache=caches['default']).check_permissions()
        self.assertTrue(result.passed)


class DatabaseProbeTest(TestCase):
    def test_database_probe(self):
        result = HealthChecker(cache=caches['default']).check_database()
        self.assertTrue(result.passed)
        self.assertEqual(result.details['vendor'], 'sqlite')


class HealthCacheTest(SimpleTestCase):
    def setUp(self):
        self.cache = caches['default']
        self.cache.clear()

    def test_store_and_read_back(self):
        report = aggregate_health(results_for([True, False, True, True]), CRITICAL)
        store_health(report, cache=self.cache, timeout=60)

        cached = get_cached_health(self.cache)

        self.assertIsInstance(cached, HealthReport)
        self.assertEqual(cached.status, HealthStatus.WARNING)
        self.assertEqual(cached.percentage, 75.0)
        self.assertEqual(list(cached.checks), PROBE_NAMES)
        self.assertEqual(cached.checked_at, report.checked_at)

    def test_remember_health_computes_once(self):
        checker = mock.Mock()
        checker.check.return_value = aggregate_health(results_for([True] * 4), CRITICAL)

        first = remember_health(cache=self.cache, timeout=60, checker=checker)
        second = remember_health(cache=self.cache, timeout=60, checker=checker)

        self.assertEqual(checker.check.call_count, 1)
        self.assertEqual(first.status, second.status)

    def test_unreadable_cache_entry_is_discarded(self):
        self.cache.set('system_health_status', {'status': 'healthy'}, 60)
        self.assertIsNone(get_cached_health(self.cache))
        self.assertIsNone(self.cache.get('system_health_status'))
