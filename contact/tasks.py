"""
Contact Management Email Tasks

Celery tasks for sending contact-related emails and housekeeping.

Each notification is its own task so a failing confirmation never holds
back the operator alert (and vice versa). Sends are retried with
exponential backoff; once retries run out the failure is logged and the
task finishes quietly.
"""
import logging
import time
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .exceptions import NotificationError
from .models import ContactMessage
from .services.notifications import ContactNotificationDispatcher

logger = logging.getLogger(__name__)


def _send_notification(task, contact_id, operation):
    started = time.monotonic()
    contact = ContactMessage.objects.filter(pk=contact_id).first()
    if contact is None:
        logger.warning(f"{operation}: contact message {contact_id} not found")
        return f"Contact message {contact_id} not found"

    dispatcher = ContactNotificationDispatcher()
    send = {
        ContactNotificationDispatcher.SUBMITTER_CONFIRMATION: dispatcher.send_submitter_confirmation,
        ContactNotificationDispatcher.OPERATOR_ALERT: dispatcher.send_operator_alert,
    }[operation]

    max_retries = getattr(settings, 'CONTACT_NOTIFICATION_MAX_RETRIES', 3)
    # Eager runs (tests, CELERY_TASK_ALWAYS_EAGER) retry inline: a Retry raised
    # there would escape the group and cancel the sibling notification.
    attempts = max_retries + 1 if task.request.is_eager else 1

    for attempt in range(attempts):
        try:
            send(contact)
            return 'sent'
        except NotificationError as exc:
            retries = task.request.retries + attempt
            duration_ms = int((time.monotonic() - started) * 1000)
            if retries >= max_retries:
                logger.error(
                    f"{operation} for {contact.ticket_id} failed after "
                    f"{retries + 1} attempt(s) ({duration_ms}ms): {exc}"
                )
                return 'failed'
            logger.warning(
                f"{operation} for {contact.ticket_id} failed ({duration_ms}ms), retrying: {exc}"
            )
            if not task.request.is_eager:
                raise task.retry(exc=exc, countdown=60 * (2 ** retries), max_retries=max_retries)

    return 'failed'


@shared_task(bind=True, max_retries=3)
def send_submitter_confirmation(self, contact_id):
    """
    Send the "we received your message" e-mail to the submitter.

    Args:
        contact_id: UUID of the ContactMessage
    """
    return _send_notification(self, contact_id, ContactNotificationDispatcher.SUBMITTER_CONFIRMATION)


@shared_task(bind=True, max_retries=3)
def send_operator_alert(self, contact_id):
    """
    Alert the site owner about a new submission.

    Args:
        contact_id: UUID of the ContactMessage
    """
    return _send_notification(self, contact_id, ContactNotificationDispatcher.OPERATOR_ALERT)


@shared_task
def purge_archived_contacts(days=None):
    """
    Delete archived messages older than the retention window.

    Scheduled via Celery Beat to run daily.
    """
    days = days or getattr(settings, 'CONTACT_ARCHIVE_RETENTION_DAYS', 365)
    cutoff = timezone.now() - timedelta(days=days)

    deleted = ContactMessage.objects.delete_archived_older_than(cutoff)
    logger.info(f"Purged {deleted} archived contact message(s) created before {cutoff:%Y-%m-%d}")
    return deleted
