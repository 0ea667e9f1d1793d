"""
System configuration models.
"""
import logging
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

logger = logging.getLogger(__name__)


class MaintenanceSettings(models.Model):
    """Backup automation settings; a single row edited from the admin."""

    SCHEDULE_DAILY = 'daily'
    SCHEDULE_WEEKLY = 'weekly'
    SCHEDULE_MONTHLY = 'monthly'
    SCHEDULE_CHOICES = [
        (SCHEDULE_DAILY, 'Daily at 02:00'),
        (SCHEDULE_WEEKLY, 'Weekly on Sunday at 02:00'),
        (SCHEDULE_MONTHLY, 'Monthly on the 1st at 02:00'),
    ]

    auto_backup_enabled = models.BooleanField(default=False)
    auto_backup_schedule = models.CharField(
        max_length=10,
        choices=SCHEDULE_CHOICES,
        default=SCHEDULE_DAILY
    )
    retention_days = models.PositiveIntegerField(
        default=30,
        validators=[MinValueValidator(1)],
        help_text="Backups older than this many days are deleted"
    )
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Maintenance Settings"
        verbose_name_plural = "Maintenance Settings"

    def save(self, *args, **kwargs):
        if not self.pk and MaintenanceSettings.objects.exists():
            raise ValidationError("Only one maintenance settings record can exist")
        super().save(*args, **kwargs)

    def __str__(self):
        state = 'enabled' if self.auto_backup_enabled else 'disabled'
        return f"Auto backup {state} ({self.auto_backup_schedule}, keep {self.retention_days} days)"

    @classmethod
    def get_settings(cls):
        """Get or create the single settings instance, seeded from SYSTEM_BACKUP_DEFAULTS"""
        defaults = getattr(settings, 'SYSTEM_BACKUP_DEFAULTS', {})
        obj, created = cls.objects.get_or_create(pk=1, defaults=defaults)
        if created:
            logger.info(f"Created maintenance settings: {obj}")
        return obj
