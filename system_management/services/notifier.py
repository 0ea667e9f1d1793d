"""
Operator-facing alerts delivered over every configured channel.
"""
import logging

from django.conf import settings
from django.core.mail import send_mass_mail

from system_management.permissions import resolve_admin_recipients

logger = logging.getLogger(__name__)


class InAppChannel:
    name = 'database'

    def deliver(self, recipients, kind, title, message, details, link=None):
        from system_management.models import Notification

        Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                notification_type=kind,
                title=title,
                message=message,
                details=list(details),
                link=link,
            )
            for recipient in recipients
        ])


class EmailChannel:
    name = 'mail'

    def deliver(self, recipients, kind, title, message, details, link=None):
        body = self.compose(message, details, link)
        messages = [
            (title, body, settings.DEFAULT_FROM_EMAIL, [recipient.email])
            for recipient in recipients
            if recipient.email
        ]
        if messages:
            send_mass_mail(messages, fail_silently=False)

    def compose(self, message, details, link=None):
        lines = ['System Notification', '', message]
        if details:
            lines.extend(['', 'Details:'])
            lines.extend(f"  - {detail}" for detail in details)
        if link:
            lines.extend(['', f"Link: {link}"])
        lines.extend(['', 'Please check the admin panel for more information.'])
        return '\n'.join(lines)


class Notifier:
    """Deliver to each channel in turn; a failing channel does not stop the next."""

    def __init__(self, channels=None, recipient_resolver=None):
        self.channels = channels if channels is not None else [InAppChannel(), EmailChannel()]
        self.recipient_resolver = recipient_resolver or resolve_admin_recipients

    def notify(self, recipients, kind, title, message, details=None, link=None):
        recipients = list(recipients)
        details = list(details or [])
        outcome = {}

        if not recipients:
            logger.warning(f"No recipients for notification '{title}'")
            return outcome

        for channel in self.channels:
            try:
                channel.deliver(recipients, kind, title, message, details, link=link)
                outcome[channel.name] = True
            except Exception as e:
                logger.error(f"Notification channel {channel.name} failed for '{title}': {e}", exc_info=True)
                outcome[channel.name] = False

        logger.info(f"Notification '{title}' sent to {len(recipients)} recipient(s): {outcome}")
        return outcome

    def notify_admins(self, kind, title, message, details=None, link=None):
        return self.notify(self.recipient_resolver(), kind, title, message, details, link=link)
