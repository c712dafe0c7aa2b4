"""
Contact Submission Service

Validate -> normalize -> classify -> persist -> schedule notifications.

Input is expected to have passed the public serializer already; the
field rules are enforced again here through ContactMessage.full_clean()
so the store never holds a record that breaks them.
"""
import logging
import time
from typing import NamedTuple, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from contact.exceptions import ContactValidationError, DuplicateSubmission
from contact.models import ContactMessage
from contact.validators import validate_ip_address

from .notifications import ContactNotificationDispatcher

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Get client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or 'unknown'


class SubmissionContext(NamedTuple):
    """Request provenance captured alongside a submission."""

    ip_address: str = 'unknown'
    user_agent: str = ''
    language: Optional[str] = None
    secure: bool = False

    @classmethod
    def from_request(cls, request):
        return cls(
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
            language=request.META.get('HTTP_ACCEPT_LANGUAGE'),
            secure=request.is_secure(),
        )


class ContactSubmissionService:
    """Creates classified ContactMessage rows from form input."""

    REQUIRED_FIELDS = ('name', 'email', 'subject', 'message')

    def __init__(self, dispatcher=None):
        self.dispatcher = dispatcher or ContactNotificationDispatcher()

    def submit(self, data, context=None):
        """
        Persist a new contact message and schedule its notifications.

        Raises ContactValidationError listing every invalid field, or
        DuplicateSubmission when the store reports a key conflict.
        """
        started = time.monotonic()
        context = context or SubmissionContext()

        contact = self.build_contact(data, context)
        self.validate(contact, data)
        contact.apply_classification()

        try:
            with transaction.atomic():
                contact.save(force_insert=True)
        except IntegrityError as exc:
            logger.warning(f"Duplicate contact submission from {contact.email}: {exc}")
            raise DuplicateSubmission()

        # Runs after commit; notify() never raises into the request.
        transaction.on_commit(lambda: self.dispatcher.notify(contact))

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Contact saved: {contact.ticket_id} priority={contact.priority} "
            f"tags={contact.tags} ({duration_ms}ms)"
        )
        return contact

    def build_contact(self, data, context):
        source = self._text(data.get('source')) or 'website'
        return ContactMessage(
            name=self._text(data.get('name')),
            email=self._text(data.get('email')).lower(),
            subject=self._text(data.get('subject')),
            message=self._text(data.get('message')),
            source=source,
            ip_address=self._clean_ip(context.ip_address),
            user_agent=(context.user_agent or '')[:500],
            metadata={
                'submission_time': timezone.now().isoformat(),
                'user_language': context.language,
                'secure': bool(context.secure),
            },
        )

    def validate(self, contact, data):
        errors = {}
        for field in self.REQUIRED_FIELDS:
            if not self._text(data.get(field)):
                errors[field] = [f"{field.capitalize()} is required"]

        try:
            contact.full_clean(exclude=list(errors), validate_unique=False)
        except ValidationError as exc:
            for field, messages in exc.message_dict.items():
                errors.setdefault(field, []).extend(messages)

        if errors:
            logger.info(f"Contact submission rejected: {sorted(errors)}")
            raise ContactValidationError(errors)

    @staticmethod
    def _text(value):
        if value is None:
            return ''
        return str(value).strip()

    @staticmethod
    def _clean_ip(ip_address):
        ip_address = (ip_address or 'unknown')[:45]
        try:
            validate_ip_address(ip_address)
        except ValidationError:
            return 'unknown'
        return ip_address
