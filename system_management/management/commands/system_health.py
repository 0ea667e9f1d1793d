"""
System health command.
Usage: python manage.py system_health [--format=table|json]
"""
import json
import sys

from django.core.management.base import BaseCommand

from system_management.services import HealthChecker, store_health
from system_management.utils import humanize_check_name


class Command(BaseCommand):
    help = 'Check system health and report each check'

    def add_arguments(self, parser):
        parser.add_argument(
            '--format',
            type=str,
            default='table',
            choices=['table', 'json'],
            help='Output format'
        )

    def handle(self, *args, **options):
        report = HealthChecker().check()
        store_health(report)

        if options['format'] == 'json':
            self.stdout.write(json.dumps(report.to_dict(), indent=2))
        else:
            self.print_table(report)

        if not report.is_healthy:
            sys.exit(1)

    def print_table(self, report):
        self.stdout.write("🔍 System Health Check")
        self.stdout.write("=" * 60)

        for name, result in report.checks.items():
            label = humanize_check_name(name)
            critical = ' (critical)' if name in report.critical_checks else ''
            if result.passed:
                self.stdout.write(self.style.SUCCESS(f"   ✓ {label:<15} {result.message}"))
            else:
                self.stdout.write(self.style.ERROR(f"   ✗ {label:<15} {result.message}{critical}"))

        self.stdout.write("=" * 60)
        summary = (
            f"Overall status: {report.status.upper()} "
            f"({report.passing}/{report.total} checks passing, {report.percentage}%)"
        )
        if report.is_healthy:
            self.stdout.write(self.style.SUCCESS(f"✅ {summary}"))
        elif report.is_critical:
            self.stdout.write(self.style.ERROR(f"❌ {summary}"))
        else:
            self.stdout.write(self.style.WARNING(f"⚠️  {summary}"))
