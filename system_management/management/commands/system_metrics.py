"""
System metrics command.
Usage: python manage.py system_metrics [--format=table|json]
"""
import json

from django.core.management.base import BaseCommand

from system_management.services import MetricsCollector
from system_management.utils import format_bytes


class Command(BaseCommand):
    help = 'Show memory, disk and storage usage'

    def add_arguments(self, parser):
        parser.add_argument(
            '--format',
            type=str,
            default='table',
            choices=['table', 'json'],
            help='Output format'
        )

    def handle(self, *args, **options):
        snapshot = MetricsCollector().collect()

        if options['format'] == 'json':
            data = snapshot.to_dict()
            data['disk_used_percentage'] = snapshot.disk_used_percentage
            self.stdout.write(json.dumps(data, indent=2))
            return

        rows = [
            ('Memory (current)', format_bytes(snapshot.memory['current'])),
            ('Memory (peak)', format_bytes(snapshot.memory['peak'])),
            ('Memory (limit)', format_bytes(snapshot.memory['limit'])),
            ('Disk free', format_bytes(snapshot.disk['free'])),
            ('Disk total', format_bytes(snapshot.disk['total'])),
            ('Disk used', f"{snapshot.disk_used_percentage}%"),
            ('Database size', format_bytes(snapshot.database_size)),
            ('Log size', format_bytes(snapshot.log_size)),
        ]

        self.stdout.write("📊 System Metrics")
        self.stdout.write("=" * 40)
        for label, value in rows:
            self.stdout.write(f"   {label:<20} {value}")
