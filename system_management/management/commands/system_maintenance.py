"""
System maintenance command.
Usage: python manage.py system_maintenance --tasks=cache-clear,optimize | --all
"""
import sys

from django.core.management.base import BaseCommand

from system_management.models import AuditLog
from system_management.services import AVAILABLE_TASKS, MaintenanceRunner


class Command(BaseCommand):
    help = 'Run system maintenance tasks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tasks',
            type=str,
            default='',
            help='Comma separated maintenance tasks to run'
        )
        parser.add_argument(
            '--all',
            action='store_true',
            help='Run every maintenance task'
        )

    def handle(self, *args, **options):
        if options['all']:
            tasks = list(AVAILABLE_TASKS)
        else:
            tasks = [task.strip() for task in options['tasks'].split(',') if task.strip()]

        if not tasks:
            self.stdout.write(self.style.WARNING("No tasks specified. Available tasks:"))
            for name, description in AVAILABLE_TASKS.items():
                self.stdout.write(f"   {name:<15} {description}")
            sys.exit(1)

        self.stdout.write(f"🔧 Running maintenance tasks: {', '.join(tasks)}")
        results = MaintenanceRunner().run(tasks)

        for name, result in results.items():
            if result.status:
                self.stdout.write(self.style.SUCCESS(f"   ✓ {name}: {result.message}"))
            else:
                self.stdout.write(self.style.ERROR(f"   ✗ {name}: {result.message}"))

        AuditLog.log_action(
            user=None,
            action='MAINTENANCE',
            model_name='System',
            details={name: result.to_dict() for name, result in results.items()},
        )

        failed = [name for name, result in results.items() if not result.status]
        if failed:
            self.stdout.write(self.style.ERROR(f"❌ {len(failed)} of {len(results)} tasks failed"))
            sys.exit(1)

        self.stdout.write(self.style.SUCCESS("✅ All maintenance tasks completed successfully"))
