"""
System backup command.
Usage: python manage.py system_backup [--database] [--files] [--name=NAME]

Without --database or --files the scope is asked for interactively.
"""
import sys

from django.core.management.base import BaseCommand

from system_management.exceptions import BackupFailed
from system_management.services import BackupOrchestrator
from system_management.utils import format_bytes


class Command(BaseCommand):
    help = 'Create a database dump and/or files archive'

    def add_arguments(self, parser):
        parser.add_argument(
            '--database',
            action='store_true',
            help='Back up the database'
        )
        parser.add_argument(
            '--files',
            action='store_true',
            help='Back up application files'
        )
        parser.add_argument(
            '--name',
            type=str,
            default=None,
            help='Backup name (defaults to backup_<timestamp>)'
        )

    def handle(self, *args, **options):
        include_database = options['database']
        include_files = options['files']

        if not include_database and not include_files:
            include_database = self.confirm("Back up the database?", default=True)
            include_files = self.confirm("Back up application files?", default=True)

        if not include_database and not include_files:
            self.stdout.write(self.style.WARNING("Nothing selected, no backup created"))
            return

        self.stdout.write("📦 Starting backup...")

        try:
            artifacts = BackupOrchestrator().backup(
                name=options['name'],
                include_database=include_database,
                include_files=include_files,
            )
        except BackupFailed as e:
            self.stdout.write(self.style.ERROR(f"❌ {e.message}"))
            if e.details.get('output'):
                self.stdout.write(e.details['output'])
            sys.exit(1)

        for artifact in artifacts:
            self.stdout.write(f"   ✓ {artifact.kind}: {artifact.path} ({format_bytes(artifact.size)})")
        self.stdout.write(self.style.SUCCESS("✅ Backup completed successfully!"))

    def confirm(self, question, default=True):
        suffix = '[Y/n]' if default else '[y/N]'
        answer = input(f"{question} {suffix} ").strip().lower()
        if not answer:
            return default
        return answer in ('y', 'yes')
