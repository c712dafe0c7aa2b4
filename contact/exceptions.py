"""
Contact Management Exceptions

Caller-visible failures are DRF APIExceptions so views can simply raise them;
contact_exception_handler renders every error in the same envelope:

    {"success": false, "message": "...", "errors": {...}, "timestamp": "..."}

NotificationError never reaches a client: notification tasks catch and log it.
"""
import logging

from django.utils import timezone
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ContactValidationError(exceptions.APIException):
    """One or more fields failed validation. Carries every violated field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Validation failed'
    default_code = 'validation_failed'

    def __init__(self, errors, detail=None):
        super().__init__(detail=detail)
        self.errors = errors


class ContactNotFound(exceptions.NotFound):
    default_detail = 'Contact message not found'
    default_code = 'contact_not_found'


class MalformedContactId(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid contact ID format'
    default_code = 'malformed_contact_id'


class DuplicateSubmission(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Duplicate entry detected'
    default_code = 'duplicate_submission'


class ServiceDegraded(exceptions.APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Contact service is unhealthy'
    default_code = 'service_degraded'


class NotificationError(Exception):
    """A notification e-mail could not be delivered to the mail backend."""

    def __init__(self, operation, recipient, reason):
        self.operation = operation
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"{operation} to {recipient} failed: {reason}")


def error_payload(message, errors=None):
    payload = {
        'success': False,
        'message': message,
        'timestamp': timezone.now().isoformat(),
    }
    if errors:
        payload['errors'] = errors
    return payload


def contact_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER.

    Known API exceptions keep their status code; anything else is logged
    and reported as a generic 500 so internals never leak to the client.
    """
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if response is None:
        logger.exception(f"Unhandled error in {view_name}: {exc}")
        return Response(
            error_payload('Internal server error. Please try again later.'),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, ContactValidationError):
        payload = error_payload(str(exc.detail), exc.errors)
    elif isinstance(exc, exceptions.ValidationError):
        payload = error_payload('Validation failed', response.data)
    else:
        detail = response.data.get('detail', exc) if isinstance(response.data, dict) else exc
        payload = error_payload(str(detail))

    if response.status_code >= 500:
        logger.error(f"{view_name} failed with {response.status_code}: {exc}")

    response.data = payload
    return response
