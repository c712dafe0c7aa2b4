"""
Contact Management Models

Database schema for portfolio contact form submissions.

ContactMessage.objects is the contact store: creation, lookup, status
updates, deletion and the archive purge all go through the manager so
the rest of the app never issues ad-hoc writes.
"""
import uuid
from datetime import timedelta

from django.core.validators import MinLengthValidator, MaxLengthValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .classifier import CLASSIFIER_VERSION, TAG_KEYWORDS, classify
from .exceptions import MalformedContactId
from .validators import (
    validate_contact_email,
    validate_contact_name,
    validate_ip_address,
    validate_safe_content,
)


def parse_contact_id(value):
    """Return a UUID for value or raise MalformedContactId."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise MalformedContactId()


class ContactMessageQuerySet(models.QuerySet):

    def active(self):
        return self.exclude(status=ContactMessage.STATUS_ARCHIVED)

    def new_messages(self):
        return self.filter(status=ContactMessage.STATUS_NEW)

    def requires_response(self):
        return self.filter(status__in=[ContactMessage.STATUS_NEW, ContactMessage.STATUS_READ])

    def urgent(self):
        """Urgent messages, plus high-priority ones nobody has looked at yet."""
        return self.filter(
            Q(priority=ContactMessage.PRIORITY_URGENT) |
            Q(priority=ContactMessage.PRIORITY_HIGH, status=ContactMessage.STATUS_NEW)
        )

    def search(self, query):
        """
        Case-insensitive substring match on name, email, subject, message and tags.

        tags is stored as JSON text, so the query is first resolved against the
        known tag names and each hit is matched as a whole quoted element.
        """
        if not query:
            return self

        lowered = query.lower()
        tag_filter = Q()
        for tag in TAG_KEYWORDS:
            if lowered in tag:
                tag_filter |= Q(tags__icontains=f'"{tag}"')

        return self.filter(
            Q(name__icontains=query) |
            Q(email__icontains=query) |
            Q(subject__icontains=query) |
            Q(message__icontains=query) |
            tag_filter
        )

    def stale_classification(self):
        return self.exclude(classifier_version=CLASSIFIER_VERSION)

    def archived_before(self, cutoff):
        return self.filter(status=ContactMessage.STATUS_ARCHIVED, created_at__lt=cutoff)

    def delete_archived_older_than(self, cutoff):
        """Bulk delete archived messages created before cutoff. Returns the count."""
        deleted, _ = self.archived_before(cutoff).delete()
        return deleted


class ContactMessageManager(models.Manager.from_queryset(ContactMessageQuerySet)):

    def create_contact(self, **fields):
        """Store a new message with tags and priority derived from its content."""
        contact = self.model(**fields)
        contact.apply_classification()
        contact.save(force_insert=True, using=self._db)
        return contact

    def find_by_id(self, contact_id):
        """Return the message or None. Raises MalformedContactId for non-UUID ids."""
        return self.filter(pk=parse_contact_id(contact_id)).first()

    def update_status(self, contact_id, status, replied_by=None, response_message=None):
        """
        Set the status of a message. Returns the updated message, or None
        when it does not exist.

        Concurrent updates on the same message are last-write-wins.
        """
        contact = self.find_by_id(contact_id)
        if contact is None:
            return None
        contact.apply_status(status, replied_by=replied_by, response_message=response_message)
        return contact

    def delete_by_id(self, contact_id):
        deleted, _ = self.filter(pk=parse_contact_id(contact_id)).delete()
        return deleted > 0


class ContactMessage(models.Model):
    """
    A single contact form submission.

    tags and priority are a cache of contact.classifier.classify() over
    subject and message, recorded together with classifier_version.
    """

    STATUS_NEW = 'new'
    STATUS_READ = 'read'
    STATUS_REPLIED = 'replied'
    STATUS_ARCHIVED = 'archived'

    STATUS_CHOICES = [
        (STATUS_NEW, 'New'),
        (STATUS_READ, 'Read'),
        (STATUS_REPLIED, 'Replied'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    PRIORITY_LOW = 'low'
    PRIORITY_NORMAL = 'normal'
    PRIORITY_HIGH = 'high'
    PRIORITY_URGENT = 'urgent'

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, 'Low'),
        (PRIORITY_NORMAL, 'Normal'),
        (PRIORITY_HIGH, 'High'),
        (PRIORITY_URGENT, 'Urgent'),
    ]

    SOURCE_CHOICES = [
        ('website', 'Website'),
        ('mobile', 'Mobile'),
        ('api', 'API'),
        ('admin', 'Admin'),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    # Contact Information
    name = models.CharField(
        max_length=50,
        validators=[MinLengthValidator(2), validate_contact_name],
        help_text="Name of the person contacting us (2-50 characters)"
    )

    email = models.CharField(
        max_length=254,
        validators=[validate_contact_email],
        help_text="Email address for follow-up (stored lower-cased)"
    )

    # Message Details
    subject = models.CharField(
        max_length=100,
        validators=[MinLengthValidator(5), validate_safe_content],
        help_text="Subject line (5-100 characters)"
    )

    message = models.TextField(
        validators=[MinLengthValidator(10), MaxLengthValidator(1000), validate_safe_content],
        help_text="The actual message content (10-1000 characters)"
    )

    # Workflow
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_NEW,
        db_index=True
    )

    priority = models.CharField(
        max_length=10,
        choices=PRIORITY_CHOICES,
        default=PRIORITY_NORMAL,
        help_text="Derived from the message content"
    )

    tags = models.JSONField(
        default=list,
        blank=True,
        help_text="Derived keyword tags"
    )

    classifier_version = models.PositiveSmallIntegerField(
        default=CLASSIFIER_VERSION,
        help_text="Classifier version that produced tags and priority"
    )

    source = models.CharField(
        max_length=10,
        choices=SOURCE_CHOICES,
        default='website'
    )

    # Security and Tracking
    ip_address = models.CharField(
        max_length=45,
        blank=True,
        default='',
        validators=[validate_ip_address]
    )

    user_agent = models.CharField(
        max_length=500,
        blank=True,
        default=''
    )

    # Response (set once, when the message is first marked replied)
    replied_at = models.DateTimeField(null=True, blank=True)

    replied_by = models.CharField(max_length=50, blank=True, default='')

    response_message = models.TextField(
        blank=True,
        default='',
        validators=[MaxLengthValidator(2000)]
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Submission context (time, language, transport security)"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ContactMessageManager()

    class Meta:
        db_table = 'contact_messages'
        ordering = ['-created_at']
        verbose_name = 'Contact Message'
        verbose_name_plural = 'Contact Messages'
        indexes = [
            models.Index(fields=['email', '-created_at'], name='contact_email_created_idx'),
            models.Index(fields=['status', '-created_at'], name='contact_status_created_idx'),
            models.Index(fields=['priority', 'status'], name='contact_priority_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} - {self.subject} ({self.status})"

    @property
    def ticket_id(self):
        """Readable reference for e-mails and the admin."""
        return f"CNT-{str(self.id)[:8].upper()}"

    @property
    def age_in_days(self):
        if not self.created_at:
            return 0
        return (timezone.now() - self.created_at).days

    @property
    def is_recent(self):
        """Submitted within the last 24 hours."""
        if not self.created_at:
            return True
        return timezone.now() - self.created_at < timedelta(hours=24)

    @property
    def message_preview(self):
        if len(self.message) > 100:
            return self.message[:100] + '...'
        return self.message

    @property
    def response(self):
        if self.replied_at is None:
            return None
        return {
            'replied_at': self.replied_at,
            'replied_by': self.replied_by,
            'response_message': self.response_message,
        }

    def apply_classification(self):
        result = classify(self.subject, self.message)
        self.tags = sorted(result.tags)
        self.priority = result.priority
        self.classifier_version = CLASSIFIER_VERSION
        return result

    def apply_status(self, status, replied_by=None, response_message=None):
        """
        Change status and save.

        The response record is filled in only the first time the message
        becomes replied; later updates never touch replied_at again.
        """
        self.status = status
        update_fields = ['status', 'updated_at']

        if status == self.STATUS_REPLIED and self.replied_at is None:
            self.replied_at = timezone.now()
            self.replied_by = (replied_by or 'Admin').strip()[:50]
            self.response_message = (response_message or '').strip()[:2000]
            update_fields += ['replied_at', 'replied_by', 'response_message']

        self.save(update_fields=update_fields)

    def mark_as_read(self):
        self.apply_status(self.STATUS_READ)

    def mark_as_replied(self, replied_by='Admin', response_message=''):
        self.apply_status(self.STATUS_REPLIED, replied_by=replied_by, response_message=response_message)

    def archive(self):
        self.apply_status(self.STATUS_ARCHIVED)
