"""
Contact Message Classifier

Derives tags and a priority from the subject and message of a contact
submission. Pure keyword matching: no database access, no settings.

The result is cached on ContactMessage (tags, priority, classifier_version).
Bump CLASSIFIER_VERSION whenever the keyword tables change so that
`manage.py recompute_contact_tags` can refresh stale rows.
"""
from typing import FrozenSet, NamedTuple


CLASSIFIER_VERSION = 1

PRIORITY_URGENT = 'urgent'
PRIORITY_HIGH = 'high'
PRIORITY_NORMAL = 'normal'

TAG_KEYWORDS = {
    'website': ('website', 'web', 'site', 'portfolio'),
    'mobile': ('mobile', 'app', 'android', 'ios', 'react native'),
    'frontend': ('frontend', 'react', 'vue', 'angular', 'javascript', 'css', 'html'),
    'backend': ('backend', 'node', 'express', 'python', 'django', 'php', 'laravel'),
    'database': ('database', 'mongodb', 'mysql', 'postgresql', 'firebase'),
    'ecommerce': ('ecommerce', 'shop', 'store', 'payment', 'cart'),
    'api': ('api', 'rest', 'graphql', 'endpoint'),
    'urgent': ('urgent', 'asap', 'immediately', 'emergency'),
    'collaboration': ('collaborate', 'collaboration', 'partner', 'team up', 'work together'),
    'freelance': ('freelance', 'contract', 'project', 'hire'),
    'job': ('job', 'career', 'position', 'employment', 'hire me'),
}

# Checked in order: the first matching level wins.
URGENT_KEYWORDS = ('urgent', 'asap', 'emergency', 'immediately', 'critical')
HIGH_PRIORITY_KEYWORDS = ('important', 'deadline', 'hiring', 'job offer', 'collaboration')


class Classification(NamedTuple):
    tags: FrozenSet[str]
    priority: str


def _content(subject: str, message: str) -> str:
    return f"{subject or ''} {message or ''}".lower()


def extract_tags(subject: str, message: str) -> FrozenSet[str]:
    """Return every tag with at least one keyword present in the content."""
    content = _content(subject, message)
    return frozenset(
        tag for tag, keywords in TAG_KEYWORDS.items()
        if any(keyword in content for keyword in keywords)
    )


def determine_priority(subject: str, message: str) -> str:
    """Return 'urgent', 'high' or 'normal'."""
    content = _content(subject, message)

    if any(keyword in content for keyword in URGENT_KEYWORDS):
        return PRIORITY_URGENT

    if any(keyword in content for keyword in HIGH_PRIORITY_KEYWORDS):
        return PRIORITY_HIGH

    return PRIORITY_NORMAL


def classify(subject: str, message: str) -> Classification:
    """
    Classify a contact submission.

    Case-insensitive and deterministic: the same subject/message pair always
    yields the same tags and priority.
    """
    return Classification(
        tags=extract_tags(subject, message),
        priority=determine_priority(subject, message),
    )
