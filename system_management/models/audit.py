"""
Audit trail for system operations (backups, maintenance runs, scheduled jobs).
"""
from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('SYSTEM_BACKUP', 'System Backup'),
        ('BACKUP_CLEANUP', 'Backup Cleanup'),
        ('MAINTENANCE', 'Maintenance'),
        ('SCHEDULED_JOB', 'Scheduled Job'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='system_audit_logs'
    )
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, db_index=True)
    model_name = models.CharField(max_length=50, db_index=True)
    object_id = models.CharField(max_length=255, blank=True, null=True)
    details = models.JSONField(blank=True, null=True, default=dict)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-timestamp']
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['action', 'timestamp'], name='sysmgmt_audit_action_idx'),
        ]

    def __str__(self):
        username = self.user.username if self.user else 'System'
        return f"{username} - {self.action} - {self.model_name} - {self.timestamp.strftime('%Y-%m-%d %H:%M')}"

    @classmethod
    def log_action(cls, user, action, model_name=None, object_id=None, details=None, ip_address=None):
        return cls.objects.create(
            user=user,
            action=action,
            model_name=model_name or '',
            object_id=str(object_id) if object_id else None,
            details=details or {},
            ip_address=ip_address
        )
