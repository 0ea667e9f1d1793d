import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone

from system_management.services import JobState, backup_due, purge_old_logs, run_job
from system_management.services.scheduler import LOCK_KEY, get_job_state


def local(*args):
    return timezone.make_aware(datetime(*args))


class RunJobTest(TestCase):
    def setUp(self):
        cache.clear()

    def test_success_records_outcome(self):
        ran, value = run_job('nightly', lambda: 42)

        self.assertTrue(ran)
        self.assertEqual(value, 42)
        state = get_job_state('nightly')
        self.assertEqual(state['state'], JobState.IDLE)
        self.assertEqual(state['last_outcome'], JobState.SUCCEEDED)
        self.assertIsNone(cache.get(LOCK_KEY.format(name='nightly')))

    def test_failure_is_recorded_and_handed_to_error_handler(self):
        on_error = mock.Mock()

        def job():
            raise RuntimeError('dump failed')

        ran, value = run_job('nightly', job, on_error=on_error)

        self.assertTrue(ran)
        self.assertIsNone(value)
        state = get_job_state('nightly')
        self.assertEqual(state['state'], JobState.IDLE)
        self.assertEqual(state['last_outcome'], JobState.FAILED)
        self.assertEqual(state['error'], 'dump failed')
        on_error.assert_called_once()
        self.assertIsInstance(on_error.call_args[0][0], RuntimeError)
        self.assertIsNone(cache.get(LOCK_KEY.format(name='nightly')))

    def test_job_is_not_reentrant(self):
        inner = {}

        def job():
            self.assertEqual(get_job_state('nightly')['state'], JobState.RUNNING)
            inner['result'] = run_job('nightly', lambda: 'nested')
            return 'outer'

        ran, value = run_job('nightly', job)

        self.assertTrue(ran)
        self.assertEqual(value, 'outer')
        self.assertEqual(inner['result'], (False, None))

    def test_failing_error_handler_is_contained(self):
        ran, _ = run_job('nightly', mock.Mock(side_effect=ValueError), on_error=mock.Mock(side_effect=KeyError))
        self.assertTrue(ran)


class BackupDueTest(TestCase):
    def test_daily(self):
        self.assertTrue(backup_due(local(2024, 3, 5, 2, 0), 'daily'))
        self.assertFalse(backup_due(local(2024, 3, 5, 3, 0), 'daily'))

    def test_weekly_on_sunday(self):
        self.assertTrue(backup_due(local(2024, 3, 3, 2, 0), 'weekly'))
        self.assertFalse(backup_due(local(2024, 3, 4, 2, 0), 'weekly'))

    def test_monthly_on_first(self):
        self.assertTrue(backup_due(local(2024, 3, 1, 2, 0), 'monthly'))
        self.assertFalse(backup_due(local(2024, 3, 2, 2, 0), 'monthly'))
        self.assertFalse(backup_due(local(2024, 3, 1, 14, 0), 'monthly'))

    def test_unknown_schedule(self):
        self.assertFalse(backup_due(local(2024, 3, 1, 2, 0), 'hourly'))


class PurgeOldLogsTest(TestCase):
    def test_deletes_only_old_log_files(self):
        now = timezone.now()
        with tempfile.TemporaryDirectory() as tmp:
            log_dir = Path(tmp)
            files = {}
            for name, age in (('old.log', 45), ('recent.log', 3), ('old.txt', 90)):
                path = log_dir / name
                path.write_text('entry')
                mtime = (now - timedelta(days=age)).timestamp()
                os.utime(path, (mtime, mtime))
                files[name] = path

            deleted = purge_old_logs(log_dir, days=30, now=now)

            self.assertEqual(deleted, [files['old.log']])
            self.assertTrue(files['recent.log'].exists())
            self.assertTrue(files['old.txt'].exists())
