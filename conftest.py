"""
Shared pytest fixtures for contact tests.
"""
import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before and after each test so throttle counters never leak."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def staff_user(db):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username='operator',
        email='operator@example.com',
        password='testpass123',
        is_staff=True
    )


@pytest.fixture
def regular_user(db):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username='visitor',
        email='visitor@example.com',
        password='testpass123'
    )


@pytest.fixture
def staff_client(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)
    return api_client


@pytest.fixture
def make_contact(db):
    """Factory for stored contact messages (classified like a real submission)."""
    from contact.models import ContactMessage

    def _make(**overrides):
        fields = {
            'name': 'John Doe',
            'email': 'john@example.com',
            'subject': 'Hello there',
            'message': 'Just saying hello and thanks for the talk.',
            'ip_address': '192.168.1.1',
        }
        fields.update(overrides)
        status = fields.pop('status', None)
        contact = ContactMessage.objects.create_contact(**fields)
        if status and status != ContactMessage.STATUS_NEW:
            contact.apply_status(status)
        return contact
    return _make


@pytest.fixture
def sample_contact_message(make_contact):
    return make_contact(
        name='John Doe',
        email='john@example.com',
        subject='Question about your portfolio',
        message='I saw your portfolio and would like to know more about your Django work.'
    )
