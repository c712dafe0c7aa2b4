"""
Contact Management Views

API endpoints for contact form submission and admin management.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from .exceptions import ContactNotFound, ServiceDegraded, error_payload
from .models import ContactMessage
from .permissions import IsAdminOrStaff
from .serializers import (
    ContactFormSubmitSerializer,
    ContactListQuerySerializer,
    ContactMessageDetailSerializer,
    ContactMessageListSerializer,
    ContactStatusUpdateSerializer,
)
from .services import (
    ContactMailer,
    ContactQueryService,
    ContactSubmissionService,
    SubmissionContext,
)

logger = logging.getLogger(__name__)


def success_response(message, data=None, status_code=status.HTTP_200_OK):
    payload = {
        'success': True,
        'message': message,
        'timestamp': timezone.now().isoformat(),
    }
    if data is not None:
        payload['data'] = data
    return Response(payload, status=status_code)


class ContactFormSubmitView(APIView):
    """
    Public endpoint for contact form submissions.

    POST /api/contact/submit

    No authentication required. Throttled per client (scope: contact_submit).
    """

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact_submit'

    def post(self, request):
        """Submit a contact form."""
        serializer = ContactFormSubmitSerializer(data=request.data)

        if not serializer.is_valid():
            return Response(
                error_payload('Validation failed', serializer.errors),
                status=status.HTTP_400_BAD_REQUEST
            )

        contact = ContactSubmissionService().submit(
            serializer.validated_data,
            SubmissionContext.from_request(request)
        )

        return success_response(
            'Message sent successfully! I will get back to you soon.',
            {
                'id': str(contact.id),
                'ticket_id': contact.ticket_id,
                'name': contact.name,
                'email': contact.email,
                'timestamp': contact.created_at.isoformat(),
                'estimated_response_time': getattr(settings, 'CONTACT_ESTIMATED_RESPONSE_TIME', '4-6 hours'),
            },
            status.HTTP_201_CREATED
        )


class ContactHealthView(APIView):
    """
    Health probe for the contact service.

    GET /api/contact/health
    """

    permission_classes = [AllowAny]

    def get(self, request):
        try:
            ContactMessage.objects.exists()
        except DatabaseError as exc:
            logger.error(f"Contact health check failed: {exc}")
            raise ServiceDegraded()

        mailer = ContactMailer.from_settings()
        return success_response('Contact service is healthy', {
            'status': 'healthy',
            'database': 'connected',
            'email_service': 'configured' if mailer.is_configured else 'not configured',
            'email_backend': mailer.backend,
        })


class ContactMessageListView(APIView):
    """
    List contact messages (staff only).

    GET /api/admin/contact-messages/

    Query Parameters:
    - status: new, read, replied, archived or all
    - priority: low, normal, high, urgent
    - source: website, mobile, api, admin
    - search: Search in name, email, subject, message and tags
    - page: Page number (default: 1)
    - limit: Items per page (default: 10, max: 100)
    - sort_by / sort_order: Sort field and direction (default: created_at desc)
    """

    permission_classes = [IsAdminOrStaff]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact_admin'

    def get(self, request):
        params = ContactListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        query = params.validated_data

        page = ContactQueryService().list(
            status=query.get('status'),
            priority=query.get('priority'),
            source=query.get('source'),
            search=query.get('search'),
            page=query['page'],
            page_size=query['limit'],
            sort_by=query['sort_by'],
            sort_order=query['sort_order'],
        )

        return success_response('Contacts retrieved successfully', {
            'contacts': ContactMessageListSerializer(page.items, many=True).data,
            'pagination': {
                'current': page.page,
                'pages': page.pages,
                'total': page.total,
                'limit': page.page_size,
                'has_next': page.has_next,
                'has_prev': page.has_prev,
            },
            'analytics': {
                'urgent': page.urgent_count,
                'new': page.new_count,
                'total': page.total,
            },
        })


class ContactMessageDetailView(APIView):
    """
    Get or delete a single contact message.

    GET    /api/admin/contact-messages/:id/
    DELETE /api/admin/contact-messages/:id/
    """

    permission_classes = [IsAdminOrStaff]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact_admin'

    def get(self, request, id):
        contact = ContactMessage.objects.find_by_id(id)
        if contact is None:
            raise ContactNotFound()

        return success_response(
            'Contact retrieved successfully',
            ContactMessageDetailSerializer(contact).data
        )

    def delete(self, request, id):
        if not ContactMessage.objects.delete_by_id(id):
            raise ContactNotFound()

        logger.info(f"Contact message {id} deleted by {request.user}")
        return success_response('Contact message deleted successfully')


class ContactMessageStatusView(APIView):
    """
    Update the status of a contact message.

    PATCH /api/admin/contact-messages/:id/status/
    """

    permission_classes = [IsAdminOrStaff]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact_admin'

    def patch(self, request, id):
        serializer = ContactStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        contact = ContactMessage.objects.update_status(id, **serializer.validated_data)
        if contact is None:
            raise ContactNotFound()

        logger.info(f"{contact.ticket_id} marked {contact.status} by {request.user}")
        return success_response(
            'Contact status updated successfully',
            ContactMessageDetailSerializer(contact).data
        )


class ContactStatsView(APIView):
    """
    Get contact message statistics.

    GET /api/admin/contact-stats/
    """

    permission_classes = [IsAdminOrStaff]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'contact_admin'

    def get(self, request):
        report = ContactQueryService().compute_statistics()
        return success_response('Statistics retrieved successfully', report)
