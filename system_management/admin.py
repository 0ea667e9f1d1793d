from django.contrib import admin

from .models import AuditLog, MaintenanceSettings, Notification


@admin.register(MaintenanceSettings)
class MaintenanceSettingsAdmin(admin.ModelAdmin):
    list_display = ('auto_backup_enabled', 'auto_backup_schedule', 'retention_days', 'last_updated')
    readonly_fields = ('last_updated',)

    def has_add_permission(self, request):
        return not MaintenanceSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('title', 'recipient', 'notification_type', 'is_read', 'created_at')
    list_filter = ('notification_type', 'is_read')
    search_fields = ('title', 'message', 'recipient__username')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'action', 'user', 'model_name', 'object_id', 'ip_address')
    list_filter = ('action',)
    search_fields = ('object_id', 'model_name', 'user__username')
    readonly_fields = ('timestamp', 'action', 'user', 'model_name', 'object_id', 'details', 'ip_address')

    def has_add_permission(self, request):
        return False
