"""
System Health Middleware
"""
import logging

from django.conf import settings
from django.contrib import messages

from system_management.permissions import can_view_system_health, resolve_roles
from system_management.services.health import remember_health
from system_management.utils import humanize_check_name

logger = logging.getLogger(__name__)


class SystemHealthMiddleware:
    """
    Attach the cached HealthReport to page views made by administrators and
    raise an alert banner while the system is critical.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.system_health = None
        request.system_alerts = []

        if self.should_check(request):
            self.attach_health(request)

        return self.get_response(request)

    def should_check(self, request):
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return False
        if request.headers.get('x-requested-with') == 'XMLHttpRequest':
            return False
        return can_view_system_health(resolve_roles(user))

    def attach_health(self, request):
        try:
            report = remember_health(timeout=settings.SYSTEM_HEALTH_CACHE_TIMEOUT)
        except Exception as e:
            logger.error(f"Could not load system health for request {request.path}: {e}", exc_info=True)
            return

        request.system_health = report

        if report.is_critical:
            failed = [humanize_check_name(name) for name in report.failed_critical_checks()]
            alert = f"System health is critical. Failed checks: {', '.join(failed)}"
            request.system_alerts.append(alert)
            messages.error(request, alert, fail_silently=True)
