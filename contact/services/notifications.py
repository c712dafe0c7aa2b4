"""
Contact Notification Service

Sends the two e-mails that follow every successful submission:
- a confirmation to the person who wrote in
- an alert to the site owner (CONTACT_EMAIL_TO)

Delivery is fire-and-forget. notify() only enqueues the Celery tasks in
contact.tasks; the request that saved the message never waits for the
mail backend, and a failing send is logged instead of raised.
"""
import logging
import time

from celery import group
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from contact.exceptions import NotificationError

logger = logging.getLogger(__name__)

SMTP_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'


class ContactMailer:
    """
    Mail-sending capability used by the dispatcher.

    is_configured is False when notifications are switched off, no operator
    address is set, or the SMTP backend is selected without credentials.
    An unconfigured mailer is never asked to send.
    """

    def __init__(self, from_email, operator_email, reply_to=None, enabled=True,
                 backend=SMTP_BACKEND, has_credentials=False):
        self.from_email = from_email
        self.operator_email = operator_email
        self.reply_to = reply_to
        self.enabled = enabled
        self.backend = backend
        self.has_credentials = has_credentials

    @classmethod
    def from_settings(cls):
        return cls(
            from_email=getattr(settings, 'CONTACT_EMAIL_FROM', settings.DEFAULT_FROM_EMAIL),
            operator_email=getattr(settings, 'CONTACT_EMAIL_TO', ''),
            reply_to=getattr(settings, 'CONTACT_EMAIL_REPLY_TO', None),
            enabled=getattr(settings, 'CONTACT_NOTIFICATIONS_ENABLED', True),
            backend=settings.EMAIL_BACKEND,
            has_credentials=bool(settings.EMAIL_HOST_USER and settings.EMAIL_HOST_PASSWORD),
        )

    @property
    def is_configured(self):
        if not self.enabled or not self.operator_email:
            return False
        if self.backend == SMTP_BACKEND:
            return self.has_credentials
        return True

    def send(self, recipient, subject, body, html_body=None, reply_to=None):
        """Send one message. Returns True when the backend accepted it."""
        message = EmailMultiAlternatives(
            subject=subject,
            body=body,
            from_email=self.from_email,
            to=[recipient],
            reply_to=[reply_to or self.reply_to] if (reply_to or self.reply_to) else None,
        )
        if html_body:
            message.attach_alternative(html_body, 'text/html')
        return message.send(fail_silently=False) == 1


class ContactNotificationDispatcher:
    """Builds and sends contact notifications through a ContactMailer."""

    SUBMITTER_CONFIRMATION = 'submitter_confirmation'
    OPERATOR_ALERT = 'operator_alert'

    def __init__(self, mailer=None):
        self.mailer = mailer or ContactMailer.from_settings()
        self.site_owner = getattr(settings, 'CONTACT_SITE_OWNER', 'Portfolio')
        self.admin_url = getattr(settings, 'ADMIN_URL', 'http://localhost:3000')
        self.estimated_response_time = getattr(settings, 'CONTACT_ESTIMATED_RESPONSE_TIME', '4-6 hours')

    def notify(self, contact):
        """
        Schedule both notifications for a saved contact.

        Returns True when the tasks were queued. Never raises: a broker
        outage is logged and the submission stays successful.
        """
        if not self.mailer.is_configured:
            logger.warning(
                f"Email service not configured - skipping notifications for {contact.ticket_id}"
            )
            return False

        # Imported here: contact.tasks imports this module.
        from contact.tasks import send_operator_alert, send_submitter_confirmation

        contact_id = str(contact.id)
        try:
            group(
                send_submitter_confirmation.si(contact_id),
                send_operator_alert.si(contact_id),
            ).apply_async()
        except Exception as exc:
            logger.error(f"Could not queue notifications for {contact.ticket_id}: {exc}")
            return False

        logger.info(f"Notifications queued for {contact.ticket_id}")
        return True

    def build_submitter_confirmation(self, contact):
        subject = f"Thank you for contacting {self.site_owner}!"
        context = self._context(contact)
        text_content = f"""Hello {contact.name},

Thank you for reaching out through my portfolio! Your message has been received.

Subject: {contact.subject}

Your message:
{contact.message}

I typically respond within {self.estimated_response_time} during business days.

Your reference number: {contact.ticket_id}

Best regards,
{self.site_owner}

---
This is an automated response. Please do not reply to this email.
"""
        html_content = render_to_string('contact/emails/submitter_confirmation.html', context)
        return subject, text_content, html_content

    def build_operator_alert(self, contact):
        subject = f"New Portfolio Contact: {contact.subject}"
        context = self._context(contact)
        tags = ', '.join(contact.tags) or 'none'
        text_content = f"""New contact form submission received:

From: {contact.name} ({contact.email})
Subject: {contact.subject}
Priority: {contact.priority}
Tags: {tags}
Reference: {contact.ticket_id}
Received: {contact.created_at.strftime('%Y-%m-%d %H:%M:%S')}
Source: {contact.source}
IP Address: {contact.ip_address or 'Unknown'}

Message:
{contact.message}

---

View and respond: {self.admin_url}/admin/contact-messages/{contact.id}
"""
        html_content = render_to_string('contact/emails/operator_alert.html', context)
        return subject, text_content, html_content

    def send_submitter_confirmation(self, contact):
        subject, text_content, html_content = self.build_submitter_confirmation(contact)
        return self._deliver(
            self.SUBMITTER_CONFIRMATION, contact, contact.email,
            subject, text_content, html_content
        )

    def send_operator_alert(self, contact):
        subject, text_content, html_content = self.build_operator_alert(contact)
        return self._deliver(
            self.OPERATOR_ALERT, contact, self.mailer.operator_email,
            subject, text_content, html_content, reply_to=contact.email
        )

    def _context(self, contact):
        return {
            'contact': contact,
            'site_owner': self.site_owner,
            'admin_url': self.admin_url,
            'estimated_response_time': self.estimated_response_time,
            'received_at': timezone.localtime(contact.created_at),
        }

    def _deliver(self, operation, contact, recipient, subject, text_content, html_content,
                 reply_to=None):
        started = time.monotonic()
        try:
            accepted = self.mailer.send(
                recipient, subject, text_content,
                html_body=html_content, reply_to=reply_to
            )
        except Exception as exc:
            raise NotificationError(operation, recipient, exc) from exc

        if not accepted:
            raise NotificationError(operation, recipient, 'rejected by mail backend')

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"{operation} sent to {recipient} for {contact.ticket_id} ({duration_ms}ms)")
        return True
