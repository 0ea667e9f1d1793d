from collections import OrderedDict
from unittest import mock

from django.contrib.messages import get_messages
from django.contrib.messages.storage.fallback import FallbackStorage
from django.contrib.auth.models import AnonymousUser
from django.core.cache import cache
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.test import RequestFactory, TestCase

from system_management.context_processors import system_health
from system_management.middleware import SystemHealthMiddleware
from system_management.services import ProbeResult, aggregate_health, store_health
from .factories import AdminUserFactory, StaffUserFactory


def critical_report():
    return aggregate_health(OrderedDict([
        ('database', ProbeResult(True, 'Connected')),
        ('disk_space', ProbeResult(False, 'Low disk space')),
        ('permissions', ProbeResult(False, 'Permission issues detected')),
    ]), ['database', 'permissions'])


class SystemHealthMiddlewareTest(TestCase):
    def setUp(self):
        cache.clear()
        self.factory = RequestFactory()
        self.middleware = SystemHealthMiddleware(lambda request: HttpResponse('ok'))

    def make_request(self, user, **extra):
        request = self.factory.get('/admin/', **extra)
        request.user = user
        request.session = {}
        request._messages = FallbackStorage(request)
        return request

    def test_critical_report_raises_banner_for_admins(self):
        store_health(critical_report())
        request = self.make_request(AdminUserFactory())

        response = self.middleware(request)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(request.system_health.is_critical)
        self.assertEqual(request.system_alerts, ['System health is critical. Failed checks: Permissions'])
        self.assertEqual(
            [str(message) for message in get_messages(request)],
            ['System health is critical. Failed checks: Permissions']
        )

    def test_anonymous_request_is_untouched(self):
        request = self.make_request(AnonymousUser())

        with mock.patch('system_management.middleware.system_health.remember_health') as remember:
            self.middleware(request)

        remember.assert_not_called()
        self.assertIsNone(request.system_health)

    def test_non_admin_staff_is_untouched(self):
        store_health(critical_report())
        request = self.make_request(StaffUserFactory())

        self.middleware(request)

        self.assertIsNone(request.system_health)

    def test_ajax_requests_are_skipped(self):
        store_health(critical_report())
        request = self.make_request(AdminUserFactory(), HTTP_X_REQUESTED_WITH='XMLHttpRequest')

        self.middleware(request)

        self.assertIsNone(request.system_health)

    def test_uses_cached_report(self):
        store_health(critical_report())
        request = self.make_request(AdminUserFactory())

        with mock.patch('system_management.services.health.HealthChecker') as checker_class:
            self.middleware(request)

        checker_class.assert_not_called()

    def test_health_failure_does_not_break_request(self):
        request = self.make_request(AdminUserFactory())

        with mock.patch(
            'system_management.middleware.system_health.remember_health',
            side_effect=RuntimeError('cache down')
        ):
            response = self.middleware(request)

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(request.system_health)


class SystemHealthContextTest(TestCase):
    def test_context_and_banner(self):
        request = RequestFactory().get('/')
        request.system_health = critical_report()
        request.system_alerts = ['System health is critical. Failed checks: Permissions']

        context = system_health(request)
        html = render_to_string('system_management/partials/system_health_alert.html', context)

        self.assertTrue(context['system_health_critical'])
        self.assertIn('Permission issues detected', html)
        self.assertNotIn('Low disk space', html)
        self.assertIn('/system/status/', html)

    def test_empty_context(self):
        context = system_health(RequestFactory().get('/'))
        self.assertIsNone(context['system_health'])
        self.assertFalse(context['system_health_critical'])
