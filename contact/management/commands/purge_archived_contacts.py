"""
Management command to delete archived contact messages past retention.

The same purge runs daily through Celery Beat
(contact.tasks.purge_archived_contacts); this command is for one-off runs.

Run with: python manage.py purge_archived_contacts [--days 365] [--dry-run]
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from contact.models import ContactMessage


class Command(BaseCommand):
    help = 'Delete archived contact messages older than the retention window'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Retention window in days (default: CONTACT_ARCHIVE_RETENTION_DAYS)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without making changes',
        )

    def handle(self, *args, **options):
        days = options['days'] or getattr(settings, 'CONTACT_ARCHIVE_RETENTION_DAYS', 365)
        if days < 1:
            raise CommandError('--days must be a positive number')

        cutoff = timezone.now() - timedelta(days=days)

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN - No changes will be made'))
            count = ContactMessage.objects.archived_before(cutoff).count()
            self.stdout.write(
                self.style.WARNING(f'Would delete {count} archived message(s) older than {days} days')
            )
            return

        deleted = ContactMessage.objects.delete_archived_older_than(cutoff)
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} archived message(s) older than {days} days')
        )
