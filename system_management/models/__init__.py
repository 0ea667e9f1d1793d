from .audit import AuditLog
from .configuration import MaintenanceSettings
from .notifications import Notification

__all__ = ['AuditLog', 'MaintenanceSettings', 'Notification']
