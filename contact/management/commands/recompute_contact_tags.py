"""
Management command to refresh the cached tags and priority of contact
messages after the keyword tables in contact.classifier change.

Only rows classified by an older CLASSIFIER_VERSION are touched unless
--all is given.

Run with: python manage.py recompute_contact_tags [--all] [--dry-run]
"""

from django.core.management.base import BaseCommand

from contact.classifier import CLASSIFIER_VERSION
from contact.models import ContactMessage


class Command(BaseCommand):
    help = 'Reclassify contact messages whose tags were produced by an older classifier'

    def add_arguments(self, parser):
        parser.add_argument(
            '--all',
            action='store_true',
            help='Reclassify every message, not only stale ones',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - No changes will be made'))

        if options['all']:
            contacts = ContactMessage.objects.all()
        else:
            contacts = ContactMessage.objects.stale_classification()

        updated_count = 0

        for contact in contacts.iterator():
            old_tags, old_priority = list(contact.tags), contact.priority
            contact.apply_classification()

            if contact.tags != old_tags or contact.priority != old_priority:
                self.stdout.write(
                    f"{contact.ticket_id}\n"
                    f"  Tags: {old_tags} -> {contact.tags}\n"
                    f"  Priority: {old_priority} -> {contact.priority}"
                )
                updated_count += 1

            if not dry_run:
                contact.save(update_fields=['tags', 'priority', 'classifier_version', 'updated_at'])

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f'\nWould update {updated_count} message(s)')
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'\nUpdated {updated_count} message(s) to classifier version {CLASSIFIER_VERSION}'
                )
            )
