"""
Field validators for contact submissions.

Shared by the ContactMessage model (full_clean) and the public serializer.
"""
import re

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator, validate_ipv46_address


NAME_PATTERN = r"^[a-zA-Z\s\-'.]+$"
EMAIL_PATTERN = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'

FORBIDDEN_CONTENT_PATTERNS = [
    re.compile(r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>', re.IGNORECASE),
    re.compile(r'javascript:', re.IGNORECASE),
    re.compile(r'on\w+\s*=', re.IGNORECASE),
]


validate_contact_name = RegexValidator(
    regex=NAME_PATTERN,
    message='Name can only contain letters, spaces, hyphens, and apostrophes',
    code='invalid_name',
)

validate_contact_email = RegexValidator(
    regex=EMAIL_PATTERN,
    message='Please provide a valid email address',
    code='invalid_email',
)


def contains_forbidden_content(value):
    return any(pattern.search(value or '') for pattern in FORBIDDEN_CONTENT_PATTERNS)


def validate_safe_content(value):
    """Reject script tags, javascript: URLs and inline event handlers."""
    if contains_forbidden_content(value):
        raise ValidationError('Content contains invalid markup', code='invalid_content')


def validate_ip_address(value):
    """Accept IPv4/IPv6 addresses, plus blank and 'unknown' for missing provenance."""
    if not value or value == 'unknown':
        return
    validate_ipv46_address(value)
