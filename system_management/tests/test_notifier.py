from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings

from system_management.models import Notification
from system_management.permissions import (
    can_view_system_health,
    has_role,
    resolve_admin_recipients,
    resolve_roles,
)
from system_management.services import EmailChannel, InAppChannel, Notifier
from .factories import AdminUserFactory, GroupFactory, StaffUserFactory, UserFactory


class NotifierTest(TestCase):
    def setUp(self):
        self.admin = AdminUserFactory(email='admin@learning-platform.test')
        self.other = UserFactory(email='')

    def test_delivers_to_every_channel(self):
        outcome = Notifier().notify(
            [self.admin], 'critical', 'Critical System Health Alert', 'Checks failed', ['Failed check: Database']
        )

        self.assertEqual(outcome, {'database': True, 'mail': True})
        notification = Notification.objects.get(recipient=self.admin)
        self.assertEqual(notification.notification_type, 'critical')
        self.assertEqual(notification.details, ['Failed check: Database'])

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Critical System Health Alert')
        self.assertIn('Failed check: Database', mail.outbox[0].body)
        self.assertIn('Please check the admin panel for more information.', mail.outbox[0].body)

    def test_link_reaches_every_channel(self):
        Notifier().notify([self.admin], 'error', 'Backup Failed', 'Backup failed', link='/system/status/')

        self.assertEqual(Notification.objects.get(recipient=self.admin).link, '/system/status/')
        self.assertIn('Link: /system/status/', mail.outbox[0].body)

    def test_failing_channel_does_not_block_the_next(self):
        broken = mock.Mock()
        broken.name = 'broken'
        broken.deliver.side_effect = RuntimeError('smtp down')

        outcome = Notifier(channels=[broken, InAppChannel()]).notify(
            [self.admin], 'error', 'Automatic Backup Failed', 'Backup failed'
        )

        self.assertEqual(outcome, {'broken': False, 'database': True})
        self.assertEqual(Notification.objects.filter(recipient=self.admin).count(), 1)

    def test_email_skips_recipients_without_address(self):
        EmailChannel().deliver([self.other], 'info', 'Title', 'Message', [])
        self.assertEqual(len(mail.outbox), 0)

    def test_no_recipients(self):
        self.assertEqual(Notifier().notify([], 'info', 'Title', 'Message'), {})
        self.assertFalse(Notification.objects.exists())

    def test_notify_admins_uses_resolver(self):
        resolver = mock.Mock(return_value=[self.admin])
        Notifier(channels=[InAppChannel()], recipient_resolver=resolver).notify_admins(
            'success', 'Automatic Backup Completed', 'Done'
        )
        resolver.assert_called_once_with()
        self.assertTrue(Notification.objects.filter(recipient=self.admin, notification_type='success').exists())


class RolesTest(TestCase):
    def test_anonymous_user_has_no_roles(self):
        self.assertEqual(resolve_roles(None), frozenset())

    def test_superuser_holds_admin_role(self):
        roles = resolve_roles(AdminUserFactory())
        self.assertTrue(has_role(roles, 'admin'))
        self.assertTrue(can_view_system_health(roles))

    def test_group_membership(self):
        user = UserFactory()
        user.groups.add(GroupFactory(name='admin'))
        self.assertTrue(can_view_system_health(resolve_roles(user)))

    def test_staff_is_not_admin(self):
        roles = resolve_roles(StaffUserFactory())
        self.assertTrue(has_role(roles, 'staff'))
        self.assertFalse(can_view_system_health(roles))

    @override_settings(SYSTEM_ADMIN_ROLE='operators')
    def test_admin_recipients(self):
        superuser = AdminUserFactory()
        operator = UserFactory()
        operator.groups.add(GroupFactory(name='operators'))
        UserFactory()
        AdminUserFactory(is_active=False)

        recipients = set(resolve_admin_recipients())

        self.assertEqual(recipients, {superuser, operator})
