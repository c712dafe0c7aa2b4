"""
Contact Services

Service layer for contact submission, notifications, listing and statistics.
"""

from .notifications import ContactMailer, ContactNotificationDispatcher
from .queries import ContactPage, ContactQueryService
from .submission import ContactSubmissionService, SubmissionContext

__all__ = [
    'ContactMailer',
    'ContactNotificationDispatcher',
    'ContactPage',
    'ContactQueryService',
    'ContactSubmissionService',
    'SubmissionContext',
]
