import tempfile
from pathlib import Path
from unittest import mock

from django.test import TestCase, override_settings

from system_management.services import MetricsCollector, MetricsSnapshot
from system_management.services.metrics import directory_size


class MetricsCollectorTest(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.log_dir = Path(self.tmp.name)
        (self.log_dir / 'django.log').write_bytes(b'x' * 100)
        (self.log_dir / 'archive').mkdir()
        (self.log_dir / 'archive' / 'old.log').write_bytes(b'x' * 50)
        self.collector = MetricsCollector(storage_path=self.tmp.name, log_dir=self.log_dir)

    def tearDown(self):
        self.tmp.cleanup()

    def test_collect(self):
        snapshot = self.collector.collect()

        self.assertIsInstance(snapshot, MetricsSnapshot)
        self.assertGreater(snapshot.memory['current'], 0)
        self.assertGreater(snapshot.memory['peak'], 0)
        self.assertGreater(snapshot.disk['total'], 0)
        self.assertLessEqual(snapshot.disk['free'], snapshot.disk['total'])
        self.assertGreater(snapshot.database_size, 0)
        self.assertEqual(snapshot.log_size, 150)
        self.assertTrue(0 <= snapshot.disk_used_percentage <= 100)

    def test_unreadable_metric_reports_zero(self):
        with mock.patch.object(MetricsCollector, 'database_size', side_effect=RuntimeError('no access')):
            snapshot = self.collector.collect()

        self.assertEqual(snapshot.database_size, 0)
        self.assertEqual(snapshot.log_size, 150)

    @override_settings(SYSTEM_MEMORY_LIMIT='512M')
    def test_configured_memory_limit(self):
        self.assertEqual(self.collector.memory_limit(), 512 * 1024 ** 2)

    @override_settings(SYSTEM_MEMORY_LIMIT='a lot')
    def test_invalid_memory_limit_reports_zero(self):
        self.assertEqual(self.collector.collect().memory['limit'], 0)

    def test_missing_log_directory(self):
        collector = MetricsCollector(storage_path=self.tmp.name, log_dir=self.log_dir / 'missing')
        self.assertEqual(collector.collect().log_size, 0)


class DirectorySizeTest(TestCase):
    def test_missing_path(self):
        self.assertEqual(directory_size('/nonexistent/path'), 0)


class MetricsSnapshotTest(TestCase):
    def test_disk_used_percentage(self):
        snapshot = MetricsSnapshot(memory={}, disk={'free': 25, 'total': 100}, database_size=0, log_size=0)
        self.assertEqual(snapshot.disk_used_percentage, 75.0)

    def test_zero_total_disk(self):
        snapshot = MetricsSnapshot(memory={}, disk={'free': 0, 'total': 0}, database_size=0, log_size=0)
        self.assertEqual(snapshot.disk_used_percentage, 0.0)
