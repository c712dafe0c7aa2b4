"""
Contact Pipeline Integration Tests

Covers the path a submission takes after the HTTP layer:
- classification (tags, priority precedence)
- validation and persistence in ContactSubmissionService
- notification dispatch through Celery (eager) and the locmem mail backend
- listing, search and statistics in ContactQueryService
- archive purge and reclassification housekeeping

SCENARIO:
=========
A portfolio owner receives messages ranging from a casual hello to an
urgent freelance request. Every valid message is stored with derived tags
and priority, both e-mails go out once the row is committed, and a broken
mail server never turns a successful submission into an error.
"""

from datetime import timedelta
from io import StringIO
from smtplib import SMTPException
from unittest import mock

import pytest
from django.core import mail
from django.core.management import call_command
from django.db import IntegrityError
from django.utils import timezone

from contact.classifier import CLASSIFIER_VERSION, classify, determine_priority, extract_tags
from contact.exceptions import ContactValidationError, DuplicateSubmission
from contact.models import ContactMessage
from contact.services import (
    ContactMailer,
    ContactNotificationDispatcher,
    ContactQueryService,
    ContactSubmissionService,
    SubmissionContext,
)
from contact.tasks import purge_archived_contacts, send_operator_alert, send_submitter_confirmation

pytestmark = pytest.mark.django_db


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def submission_data():
    return {
        'name': 'Ada Lovelace',
        'email': 'Ada@Example.com ',
        'subject': 'Collaboration opportunity',
        'message': "I'd like to discuss a freelance project, it's urgent.",
    }


@pytest.fixture
def dispatcher_stub():
    return mock.Mock(spec=ContactNotificationDispatcher)


# =============================================================================
# CLASSIFIER
# =============================================================================

class TestClassifier:

    def test_urgent_beats_high(self):
        assert determine_priority('Important', 'This is urgent and has a deadline') == 'urgent'

    def test_high_priority_keywords(self):
        assert determine_priority('Project deadline', 'We have a tight deadline next month.') == 'high'

    def test_normal_when_nothing_matches(self):
        assert determine_priority('Hello there', 'Just wanted to say hi.') == 'normal'

    def test_matching_is_case_insensitive(self):
        assert determine_priority('URGENT', 'PLEASE READ') == 'urgent'
        assert 'backend' in extract_tags('DJANGO', '')

    def test_tags_from_subject_and_message(self):
        tags = extract_tags('Need a Django REST API', 'Hosted on postgresql please.')
        assert {'backend', 'api', 'database'} <= tags

    def test_empty_content(self):
        result = classify('', '')
        assert result.tags == frozenset()
        assert result.priority == 'normal'

    def test_classification_is_deterministic(self):
        first = classify('Collaboration opportunity', "I'd like to discuss a freelance project, it's urgent.")
        second = classify('Collaboration opportunity', "I'd like to discuss a freelance project, it's urgent.")
        assert first == second
        assert {'collaboration', 'freelance', 'urgent'} <= first.tags


# =============================================================================
# SUBMISSION SERVICE
# =============================================================================

class TestSubmissionService:

    def test_submit_normalizes_and_classifies(self, submission_data, dispatcher_stub):
        context = SubmissionContext(ip_address='198.51.100.4', user_agent='Mozilla/5.0', language='en')

        contact = ContactSubmissionService(dispatcher=dispatcher_stub).submit(submission_data, context)

        contact.refresh_from_db()
        assert contact.email == 'ada@example.com'
        assert contact.priority == 'urgent'
        assert contact.status == 'new'
        assert contact.classifier_version == CLASSIFIER_VERSION
        assert contact.ip_address == '198.51.100.4'
        assert contact.metadata['user_language'] == 'en'
        assert 'submission_time' in contact.metadata

    def test_every_invalid_field_is_reported(self, dispatcher_stub):
        data = {'name': 'R2', 'email': 'not-an-email', 'subject': 'Hi', 'message': 'short'}

        with pytest.raises(ContactValidationError) as excinfo:
            ContactSubmissionService(dispatcher=dispatcher_stub).submit(data)

        assert set(excinfo.value.errors) == {'name', 'email', 'subject', 'message'}
        assert ContactMessage.objects.count() == 0

    def test_missing_fields_are_required(self, dispatcher_stub):
        with pytest.raises(ContactValidationError) as excinfo:
            ContactSubmissionService(dispatcher=dispatcher_stub).submit({'name': '   '})

        assert excinfo.value.errors['name'] == ['Name is required']
        assert excinfo.value.errors['message'] == ['Message is required']

    def test_invalid_ip_falls_back_to_unknown(self, submission_data, dispatcher_stub):
        context = SubmissionContext(ip_address='not-an-ip')

        contact = ContactSubmissionService(dispatcher=dispatcher_stub).submit(submission_data, context)

        assert contact.ip_address == 'unknown'

    def test_user_agent_is_truncated(self, submission_data, dispatcher_stub):
        context = SubmissionContext(user_agent='a' * 600)

        contact = ContactSubmissionService(dispatcher=dispatcher_stub).submit(submission_data, context)

        assert len(contact.user_agent) == 500

    def test_notifications_scheduled_after_commit(
        self, submission_data, dispatcher_stub, django_capture_on_commit_callbacks
    ):
        service = ContactSubmissionService(dispatcher=dispatcher_stub)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            contact = service.submit(submission_data)
            dispatcher_stub.notify.assert_not_called()

        assert len(callbacks) == 1
        dispatcher_stub.notify.assert_called_once_with(contact)

    def test_rejected_submission_schedules_nothing(
        self, dispatcher_stub, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(ContactValidationError):
                ContactSubmissionService(dispatcher=dispatcher_stub).submit({})

        assert callbacks == []
        dispatcher_stub.notify.assert_not_called()

    def test_store_conflict_is_duplicate_submission(self, submission_data, dispatcher_stub):
        with mock.patch.object(ContactMessage, 'save', side_effect=IntegrityError('duplicate key')):
            with pytest.raises(DuplicateSubmission):
                ContactSubmissionService(dispatcher=dispatcher_stub).submit(submission_data)


# =============================================================================
# NOTIFICATION DISPATCHER
# =============================================================================

class TestNotificationDispatcher:

    def test_notify_sends_both_emails(self, make_contact):
        contact = make_contact(name='Ada Lovelace', email='ada@example.com')

        assert ContactNotificationDispatcher().notify(contact) is True

        assert len(mail.outbox) == 2
        confirmation = next(m for m in mail.outbox if m.to == ['ada@example.com'])
        alert = next(m for m in mail.outbox if m.to == ['owner@example.com'])
        assert confirmation.subject == 'Thank you for contacting Test Portfolio!'
        assert contact.ticket_id in confirmation.body
        assert alert.subject == f'New Portfolio Contact: {contact.subject}'
        assert alert.reply_to == ['ada@example.com']
        assert alert.alternatives[0][1] == 'text/html'

    def test_unconfigured_mailer_skips(self, make_contact):
        contact = make_contact()
        mailer = ContactMailer(from_email='noreply@example.com', operator_email='')

        assert mailer.is_configured is False
        assert ContactNotificationDispatcher(mailer=mailer).notify(contact) is False
        assert mail.outbox == []

    def test_smtp_without_credentials_is_unconfigured(self):
        mailer = ContactMailer(from_email='noreply@example.com', operator_email='owner@example.com')
        assert mailer.is_configured is False

        mailer.has_credentials = True
        assert mailer.is_configured is True

    def test_broker_failure_is_swallowed(self, make_contact):
        contact = make_contact()

        with mock.patch('contact.services.notifications.group', side_effect=OSError('broker down')):
            assert ContactNotificationDispatcher().notify(contact) is False

    def test_failed_confirmation_does_not_block_alert(self, make_contact):
        contact = make_contact(email='ada@example.com')
        real_send = ContactMailer.send
        attempts = []

        def flaky_send(mailer, recipient, *args, **kwargs):
            if recipient == 'ada@example.com':
                attempts.append(recipient)
                raise SMTPException('mailbox unavailable')
            return real_send(mailer, recipient, *args, **kwargs)

        with mock.patch.object(ContactMailer, 'send', autospec=True, side_effect=flaky_send):
            assert ContactNotificationDispatcher().notify(contact) is True

        assert [m.to for m in mail.outbox] == [['owner@example.com']]
        # first try plus CONTACT_NOTIFICATION_MAX_RETRIES (3) retries
        assert len(attempts) == 4

    def test_eager_retry_recovers_after_transient_failure(self, make_contact):
        contact = make_contact()
        real_send = ContactMailer.send
        calls = []

        def recovering_send(mailer, *args, **kwargs):
            calls.append(args[0])
            if len(calls) == 1:
                raise SMTPException('try again later')
            return real_send(mailer, *args, **kwargs)

        with mock.patch.object(ContactMailer, 'send', autospec=True, side_effect=recovering_send):
            result = send_operator_alert.apply(args=[str(contact.id)])

        assert result.get() == 'sent'
        assert len(calls) == 2
        assert [m.to for m in mail.outbox] == [['owner@example.com']]

    def test_task_gives_up_after_retries(self, make_contact, settings):
        settings.CONTACT_NOTIFICATION_MAX_RETRIES = 2
        contact = make_contact()

        with mock.patch.object(ContactMailer, 'send', side_effect=SMTPException('down')) as send:
            result = send_submitter_confirmation.apply(args=[str(contact.id)])

        assert result.get() == 'failed'
        assert send.call_count == 3

    def test_task_succeeds(self, make_contact):
        contact = make_contact()

        result = send_operator_alert.apply(args=[str(contact.id)])

        assert result.get() == 'sent'
        assert mail.outbox[0].to == ['owner@example.com']

    def test_task_for_deleted_contact(self, make_contact):
        contact = make_contact()
        contact_id = str(contact.id)
        contact.delete()

        result = send_operator_alert.apply(args=[contact_id])

        assert 'not found' in result.get()
        assert mail.outbox == []


# =============================================================================
# QUERY SERVICE
# =============================================================================

class TestContactQueries:

    def test_pages_partition_the_result(self, make_contact):
        created = {make_contact(email=f'person{i}@example.com').id for i in range(25)}
        service = ContactQueryService()

        pages = [service.list(page=n, page_size=10) for n in (1, 2, 3)]

        seen = [contact.id for page in pages for contact in page.items]
        assert len(seen) == 25
        assert set(seen) == created
        assert [len(page.items) for page in pages] == [10, 10, 5]
        assert pages[0].pages == 3
        assert pages[2].has_next is False
        assert pages[2].has_prev is True
        assert service.list(page=4, page_size=10).items == []

    def test_empty_store(self, db):
        page = ContactQueryService().list()

        assert page.total == 0
        assert page.pages == 0
        assert page.has_next is False

    def test_search_matches_tags(self, make_contact):
        shop = make_contact(subject='Online shop build', message='Looking for help with a checkout cart.')
        make_contact()

        page = ContactQueryService().list(search='ecommerce')

        assert [contact.id for contact in page.items] == [shop.id]

    def test_search_matches_part_of_a_tag(self, make_contact):
        shop = make_contact(subject='Online shop build', message='Looking for help with a checkout cart.')
        make_contact()

        page = ContactQueryService().list(search='COMMERCE')

        assert [contact.id for contact in page.items] == [shop.id]

    @pytest.mark.parametrize('query', ['"', ',', '", "', '["', 'ecommerce", "'])
    def test_search_ignores_tag_serialization(self, make_contact, query):
        make_contact(subject='Online shop build', message='Looking for help with a checkout cart.')
        make_contact(subject='Django question', message='How do you structure a Django backend?')

        page = ContactQueryService().list(search=query)

        assert page.total == 0
        assert page.items == []

    def test_filters_and_counts(self, make_contact):
        make_contact(subject='Urgent request', message='Please reply asap about this.')
        make_contact(subject='Urgent request', message='Please reply asap about this.', status='read')
        make_contact()

        page = ContactQueryService().list(priority='urgent')

        assert page.total == 2
        assert page.urgent_count == 2
        assert page.new_count == 1

    def test_sort_ascending_by_name(self, make_contact):
        make_contact(name='Zed Shaw')
        make_contact(name='Alan Kay')

        page = ContactQueryService().list(sort_by='name', sort_order='asc')

        assert [contact.name for contact in page.items] == ['Alan Kay', 'Zed Shaw']

    def test_unknown_sort_field(self, db):
        with pytest.raises(ContactValidationError) as excinfo:
            ContactQueryService().list(sort_by='ip_address')

        assert 'sort_by' in excinfo.value.errors

    def test_statistics(self, make_contact):
        for _ in range(3):
            make_contact(subject='Django question', message='How do you structure a Django backend?')
        for _ in range(2):
            make_contact(status='replied')
        old = make_contact(status='archived')
        ContactMessage.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=40))

        report = ContactQueryService().compute_statistics()

        assert report['status'] == {'new': 3, 'replied': 2, 'archived': 1}
        assert report['source'] == {'website': 6}
        assert report['daily'] == [{'date': timezone.localdate().isoformat(), 'count': 5}]
        assert report['top_tags'][0] == {'tag': 'backend', 'count': 3}
        assert report['response_time']['count'] == 2
        assert report['response_time']['min_hours'] <= report['response_time']['max_hours']
        assert report['summary']['total_contacts'] == 6

    def test_statistics_without_replies(self, db):
        report = ContactQueryService().compute_statistics()

        assert report['status'] == {}
        assert report['daily'] == []
        assert report['response_time']['average_hours'] is None
        assert report['summary']['average_response_time'] == 'N/A'
        assert report['summary']['most_active_source'] == 'N/A'

    def test_statistics_response_time_in_hours(self, make_contact):
        now = timezone.now()
        for hours in (1, 3):
            contact = make_contact(status='replied')
            ContactMessage.objects.filter(pk=contact.pk).update(
                created_at=now - timedelta(hours=hours), replied_at=now
            )
        make_contact(status='read')

        response_time = ContactQueryService().compute_statistics()['response_time']

        assert response_time == {
            'average_hours': 2.0, 'min_hours': 1.0, 'max_hours': 3.0, 'count': 2
        }

    def test_statistics_daily_series_newest_first(self, make_contact):
        today = timezone.localdate()
        yesterday = make_contact()
        ContactMessage.objects.filter(pk=yesterday.pk).update(
            created_at=timezone.now() - timedelta(days=1)
        )
        make_contact()
        make_contact()

        daily = ContactQueryService().compute_statistics()['daily']

        assert daily == [
            {'date': today.isoformat(), 'count': 2},
            {'date': (today - timedelta(days=1)).isoformat(), 'count': 1},
        ]

    def test_page_far_past_the_end_is_empty(self, make_contact):
        make_contact()

        page = ContactQueryService().list(page=10 ** 20)

        assert page.items == []
        assert page.total == 1
        assert page.pages == 1
        assert page.has_next is False
        assert page.has_prev is True


# =============================================================================
# HOUSEKEEPING
# =============================================================================

class TestHousekeeping:

    def _age(self, contact, days):
        ContactMessage.objects.filter(pk=contact.pk).update(
            created_at=timezone.now() - timedelta(days=days)
        )

    def test_purge_task_removes_old_archived_only(self, make_contact):
        old_archived = make_contact(status='archived')
        old_read = make_contact(status='read')
        recent_archived = make_contact(status='archived')
        self._age(old_archived, 400)
        self._age(old_read, 400)

        result = purge_archived_contacts.delay()

        assert result.get() == 1
        remaining = set(ContactMessage.objects.values_list('id', flat=True))
        assert remaining == {old_read.id, recent_archived.id}

    def test_purge_command_dry_run(self, make_contact):
        old_archived = make_contact(status='archived')
        self._age(old_archived, 40)
        out = StringIO()

        call_command('purge_archived_contacts', '--days', '30', '--dry-run', stdout=out)

        assert 'Would delete 1' in out.getvalue()
        assert ContactMessage.objects.count() == 1

        call_command('purge_archived_contacts', '--days', '30', stdout=StringIO())
        assert ContactMessage.objects.count() == 0

    def test_recompute_stale_tags(self, make_contact):
        stale = make_contact(subject='Django question', message='How do you structure a Django backend?')
        ContactMessage.objects.filter(pk=stale.pk).update(tags=[], priority='low', classifier_version=0)
        current = make_contact()
        out = StringIO()

        call_command('recompute_contact_tags', stdout=out)

        stale.refresh_from_db()
        assert 'backend' in stale.tags
        assert stale.priority == 'normal'
        assert stale.classifier_version == CLASSIFIER_VERSION
        assert ContactMessage.objects.stale_classification().count() == 0
        assert current.ticket_id not in out.getvalue()
