"""
Comprehensive Tests for Contact Management System
"""
import uuid
from datetime import timedelta
from unittest import mock

import pytest
from django.core import mail
from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status

from contact.exceptions import MalformedContactId
from contact.models import ContactMessage

pytestmark = pytest.mark.django_db


SUBMIT_URL = '/api/contact/submit'
HEALTH_URL = '/api/contact/health'
LIST_URL = '/api/admin/contact-messages/'
STATS_URL = '/api/admin/contact-stats/'


def detail_url(contact_id):
    return f'/api/admin/contact-messages/{contact_id}/'


def status_url(contact_id):
    return f'/api/admin/contact-messages/{contact_id}/status/'


@pytest.fixture
def valid_submission():
    return {
        'name': 'Test User',
        'email': 'Test@Example.com',
        'subject': 'Saying hello',
        'message': 'Just wanted to say I enjoyed reading your blog.'
    }


class TestContactFormSubmission:
    """Test public contact form submission."""

    def test_submit_valid_contact_form(self, api_client, valid_submission):
        """Test successful contact form submission."""
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert response.data['data']['ticket_id'].startswith('CNT-')
        assert response.data['data']['email'] == 'test@example.com'
        assert response.data['data']['estimated_response_time'] == '4-6 hours'
        assert ContactMessage.objects.count() == 1

    def test_collaboration_request_is_classified(self, api_client):
        """Tags and priority are derived from the submitted text."""
        data = {
            'name': 'Ada Lovelace',
            'email': 'ada@example.com',
            'subject': 'Collaboration opportunity',
            'message': "I'd like to discuss a freelance project, it's urgent."
        }

        response = api_client.post(SUBMIT_URL, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        contact = ContactMessage.objects.get(id=response.data['data']['id'])
        assert {'collaboration', 'freelance', 'urgent'} <= set(contact.tags)
        assert contact.priority == ContactMessage.PRIORITY_URGENT
        assert contact.status == ContactMessage.STATUS_NEW

    def test_submit_records_request_context(self, api_client, valid_submission):
        response = api_client.post(
            SUBMIT_URL,
            valid_submission,
            format='json',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
            HTTP_USER_AGENT='pytest-agent',
            HTTP_ACCEPT_LANGUAGE='en-GB'
        )

        assert response.status_code == status.HTTP_201_CREATED
        contact = ContactMessage.objects.get()
        assert contact.ip_address == '203.0.113.7'
        assert contact.user_agent == 'pytest-agent'
        assert contact.metadata['user_language'] == 'en-GB'
        assert contact.metadata['secure'] is False
        assert contact.source == 'website'

    def test_submit_missing_required_fields(self, api_client):
        """Test submission with missing fields."""
        response = api_client.post(SUBMIT_URL, {'name': 'Test User'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False
        assert {'email', 'subject', 'message'} <= set(response.data['errors'])
        assert ContactMessage.objects.count() == 0

    def test_submit_invalid_email(self, api_client, valid_submission):
        """Test submission with invalid email."""
        valid_submission['email'] = 'invalid-email'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'email' in response.data['errors']

    def test_name_length_boundary(self, api_client, valid_submission):
        valid_submission['name'] = 'A'
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'name' in response.data['errors']

        valid_submission['name'] = 'Al'
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')
        assert response.status_code == status.HTTP_201_CREATED

    def test_message_length_boundary(self, api_client, valid_submission):
        valid_submission['message'] = 'x' * 1001
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'message' in response.data['errors']

        valid_submission['message'] = 'x' * 1000
        response = api_client.post(SUBMIT_URL, valid_submission, format='json')
        assert response.status_code == status.HTTP_201_CREATED

    def test_submit_message_too_short(self, api_client, valid_submission):
        """Test submission with message too short."""
        valid_submission['message'] = 'Short'  # Less than 10 characters

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_name_with_digits_is_rejected(self, api_client, valid_submission):
        """Name pattern is enforced before the submission reaches the store."""
        valid_submission['name'] = 'R2D2'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] is False
        assert response.data['message'] == 'Validation failed'
        assert 'name' in response.data['errors']

    def test_bad_name_and_bad_email_reported_together(self, api_client, valid_submission):
        valid_submission['name'] = 'R2D2'
        valid_submission['email'] = 'invalid-email'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert set(response.data['errors']) == {'name', 'email'}
        assert not ContactMessage.objects.exists()

    def test_script_content_is_rejected(self, api_client, valid_submission):
        valid_submission['message'] = 'Hi <script>alert(1)</script> there friend'

        response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'message' in response.data['errors']

    def test_notifications_sent_after_commit(
        self, api_client, valid_submission, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(SUBMIT_URL, valid_submission, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        recipients = sorted(message.to[0] for message in mail.outbox)
        assert recipients == ['owner@example.com', 'test@example.com']


class TestContactHealth:

    def test_health_reports_configuration(self, api_client):
        response = api_client.get(HEALTH_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['database'] == 'connected'
        assert response.data['data']['email_service'] == 'configured'

    def test_health_degraded_when_database_fails(self, api_client):
        with mock.patch.object(ContactMessage.objects, 'exists', side_effect=DatabaseError('down')):
            response = api_client.get(HEALTH_URL)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['success'] is False


class TestContactMessageListView:
    """Test admin contact message list view."""

    def test_unauthorized_access(self, api_client):
        """Test unauthenticated access is blocked."""
        response = api_client.get(LIST_URL)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['success'] is False

    def test_non_staff_access_denied(self, api_client, regular_user):
        """Test regular users cannot access admin endpoints."""
        api_client.force_authenticate(user=regular_user)
        response = api_client.get(LIST_URL)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_can_list_messages(self, staff_client, sample_contact_message):
        """Test admin can list contact messages."""
        response = staff_client.get(LIST_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert len(data['contacts']) == 1
        assert data['contacts'][0]['ticket_id'] == sample_contact_message.ticket_id
        assert data['pagination'] == {
            'current': 1, 'pages': 1, 'total': 1, 'limit': 10,
            'has_next': False, 'has_prev': False,
        }
        assert data['analytics']['new'] == 1

    def test_filter_by_status(self, staff_client, make_contact):
        """Test filtering by status."""
        make_contact()
        make_contact(status='archived')

        response = staff_client.get(LIST_URL, {'status': 'new'})
        assert response.data['data']['pagination']['total'] == 1

        response = staff_client.get(LIST_URL, {'status': 'all'})
        assert response.data['data']['pagination']['total'] == 2

    def test_search_functionality(self, staff_client, sample_contact_message, make_contact):
        """Test search in messages."""
        make_contact(name='Grace Hopper', email='grace@example.com')

        response = staff_client.get(LIST_URL, {'search': 'django'})

        assert response.status_code == status.HTTP_200_OK
        contacts = response.data['data']['contacts']
        assert [c['id'] for c in contacts] == [str(sample_contact_message.id)]

    def test_pagination(self, staff_client, make_contact):
        for i in range(12):
            make_contact(email=f'person{i}@example.com')

        response = staff_client.get(LIST_URL, {'page': 2, 'limit': 5})

        pagination = response.data['data']['pagination']
        assert len(response.data['data']['contacts']) == 5
        assert pagination['pages'] == 3
        assert pagination['has_next'] is True
        assert pagination['has_prev'] is True

    def test_huge_page_number_returns_empty_page(self, staff_client, make_contact):
        make_contact()

        response = staff_client.get(LIST_URL, {'page': 10 ** 20})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['contacts'] == []
        assert response.data['data']['pagination']['total'] == 1
        assert response.data['data']['pagination']['has_next'] is False

    def test_invalid_query_parameters(self, staff_client):
        response = staff_client.get(LIST_URL, {'limit': 500, 'sort_by': 'password'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert {'limit', 'sort_by'} <= set(response.data['errors'])


class TestContactMessageDetailView:
    """Test admin contact message detail view."""

    def test_get_message_details(self, staff_client, sample_contact_message):
        """Test getting message details."""
        response = staff_client.get(detail_url(sample_contact_message.id))

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['name'] == 'John Doe'
        assert data['email'] == 'john@example.com'
        assert data['response'] is None
        assert 'backend' in data['tags']

    def test_malformed_id(self, staff_client):
        response = staff_client.get(detail_url('not-a-uuid'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Invalid contact ID format'

    def test_unknown_id(self, staff_client):
        response = staff_client.get(detail_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['success'] is False

    def test_delete_message(self, staff_client, sample_contact_message):
        response = staff_client.delete(detail_url(sample_contact_message.id))

        assert response.status_code == status.HTTP_200_OK
        assert ContactMessage.objects.count() == 0

        response = staff_client.delete(detail_url(sample_contact_message.id))
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestContactMessageStatusUpdate:
    """Test updating contact message status."""

    def test_update_status(self, staff_client, sample_contact_message):
        """Test updating message status."""
        response = staff_client.patch(
            status_url(sample_contact_message.id), {'status': 'read'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        sample_contact_message.refresh_from_db()
        assert sample_contact_message.status == 'read'
        assert sample_contact_message.replied_at is None

    def test_replied_at_is_set_once(self, staff_client, sample_contact_message):
        data = {'status': 'replied', 'replied_by': 'Admin', 'response_message': 'Thanks!'}

        response = staff_client.patch(status_url(sample_contact_message.id), data, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['response']['replied_by'] == 'Admin'
        sample_contact_message.refresh_from_db()
        first_replied_at = sample_contact_message.replied_at
        assert first_replied_at >= sample_contact_message.created_at

        staff_client.patch(status_url(sample_contact_message.id), data, format='json')
        staff_client.patch(
            status_url(sample_contact_message.id), {'status': 'archived'}, format='json'
        )

        sample_contact_message.refresh_from_db()
        assert sample_contact_message.replied_at == first_replied_at
        assert sample_contact_message.status == 'archived'

    def test_invalid_status(self, staff_client, sample_contact_message):
        response = staff_client.patch(
            status_url(sample_contact_message.id), {'status': 'in_progress'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'status' in response.data['errors']

    def test_unknown_id(self, staff_client):
        response = staff_client.patch(status_url(uuid.uuid4()), {'status': 'read'}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestContactStats:
    """Test contact statistics endpoint."""

    def test_get_stats(self, staff_client, make_contact):
        """Test getting contact stats."""
        for _ in range(3):
            make_contact()
        for _ in range(2):
            make_contact(status='replied')
        make_contact(status='archived')

        response = staff_client.get(STATS_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.data['data']
        assert data['status'] == {'new': 3, 'replied': 2, 'archived': 1}
        assert data['summary']['total_contacts'] == 6
        assert data['summary']['most_active_source'] == 'website'
        assert data['response_time']['count'] == 2


class TestContactModels:
    """Test contact model methods."""

    def test_ticket_id_generation(self, sample_contact_message):
        """Test ticket ID is generated correctly."""
        assert sample_contact_message.ticket_id.startswith('CNT-')
        assert len(sample_contact_message.ticket_id) == 12

    def test_message_preview(self, make_contact):
        contact = make_contact(message='y' * 150)
        assert contact.message_preview == 'y' * 100 + '...'

    def test_is_recent(self, sample_contact_message):
        assert sample_contact_message.is_recent is True
        ContactMessage.objects.filter(pk=sample_contact_message.pk).update(
            created_at=timezone.now() - timedelta(days=3)
        )
        sample_contact_message.refresh_from_db()
        assert sample_contact_message.is_recent is False
        assert sample_contact_message.age_in_days == 3

    def test_mark_as_replied(self, sample_contact_message):
        sample_contact_message.mark_as_replied(replied_by='Jane', response_message='On it')

        sample_contact_message.refresh_from_db()
        assert sample_contact_message.status == 'replied'
        assert sample_contact_message.response['replied_by'] == 'Jane'
        assert sample_contact_message.response['response_message'] == 'On it'


class TestContactStore:
    """Test the ContactMessage manager."""

    def test_create_contact_classifies(self, db):
        contact = ContactMessage.objects.create_contact(
            name='Linus',
            email='linus@example.com',
            subject='Important question',
            message='Can we set up a Django backend together?'
        )

        assert contact.priority == ContactMessage.PRIORITY_HIGH
        assert 'backend' in contact.tags

    def test_find_by_id(self, sample_contact_message):
        assert ContactMessage.objects.find_by_id(sample_contact_message.id) == sample_contact_message
        assert ContactMessage.objects.find_by_id(str(uuid.uuid4())) is None

        with pytest.raises(MalformedContactId):
            ContactMessage.objects.find_by_id('12345')

    def test_update_status_missing(self, db):
        assert ContactMessage.objects.update_status(uuid.uuid4(), 'read') is None

    def test_delete_by_id(self, sample_contact_message):
        assert ContactMessage.objects.delete_by_id(sample_contact_message.id) is True
        assert ContactMessage.objects.delete_by_id(sample_contact_message.id) is False

    def test_urgent_queryset(self, make_contact):
        urgent = make_contact(subject='Urgent request', message='Please reply asap about this.')
        high = make_contact(subject='Deadline approaching', message='There is a deadline soon.')
        make_contact()

        assert set(ContactMessage.objects.urgent()) == {urgent, high}

        high.mark_as_read()
        assert list(ContactMessage.objects.urgent()) == [urgent]
