# system_management/apps.py
from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class SystemManagementConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'system_management'
    verbose_name = 'System Management'

    def ready(self):
        """Make sure Celery sees the scheduled system tasks."""
        from . import tasks  # noqa: F401

        logger.debug("System management application initialized")
