"""
Contact Query Service

Listing (filter / search / sort / paginate) and dashboard statistics for
the operator views.
"""
import logging
import math
from collections import Counter
from datetime import timedelta
from typing import List, NamedTuple

from django.db import transaction
from django.db.models import Avg, Count, DurationField, ExpressionWrapper, F, Max, Min
from django.db.models.functions import TruncDate
from django.utils import timezone

from contact.exceptions import ContactValidationError
from contact.models import ContactMessage

logger = logging.getLogger(__name__)


class ContactPage(NamedTuple):
    items: List[ContactMessage]
    total: int
    page: int
    page_size: int
    pages: int
    has_next: bool
    has_prev: bool
    urgent_count: int
    new_count: int


class ContactQueryService:
    """Read-side queries over ContactMessage."""

    SORTABLE_FIELDS = (
        'created_at', 'updated_at', 'name', 'email', 'subject',
        'status', 'priority', 'source', 'replied_at',
    )
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
    DAILY_WINDOW_DAYS = 30
    TOP_TAGS_LIMIT = 10

    def __init__(self, queryset=None):
        self.queryset = queryset if queryset is not None else ContactMessage.objects.all()

    def filter_queryset(self, status=None, priority=None, source=None, search=None):
        queryset = self.queryset

        if status and status != 'all':
            queryset = queryset.filter(status=status)
        if priority:
            queryset = queryset.filter(priority=priority)
        if source:
            queryset = queryset.filter(source=source)
        if search:
            queryset = queryset.search(search.strip())

        return queryset

    def list(self, status=None, priority=None, source=None, search=None,
             page=1, page_size=DEFAULT_PAGE_SIZE, sort_by='created_at', sort_order='desc'):
        """
        Return one page of messages plus totals for the whole filtered set.

        page is 1-indexed. urgent_count and new_count cover every message
        matching the filters, not just the returned page.
        """
        if sort_by not in self.SORTABLE_FIELDS:
            raise ContactValidationError(
                {'sort_by': [f"Cannot sort by '{sort_by}'. Choose one of: {', '.join(self.SORTABLE_FIELDS)}"]}
            )

        page = max(int(page), 1)
        page_size = min(max(int(page_size), 1), self.MAX_PAGE_SIZE)

        queryset = self.filter_queryset(status=status, priority=priority, source=source, search=search)
        ordering = f"-{sort_by}" if sort_order == 'desc' else sort_by

        total = queryset.count()
        urgent_count = queryset.filter(priority=ContactMessage.PRIORITY_URGENT).count()
        new_count = queryset.filter(status=ContactMessage.STATUS_NEW).count()

        offset = (page - 1) * page_size
        # Pages past the end never reach the database; huge offsets overflow OFFSET.
        if offset >= total:
            items = []
        else:
            items = list(queryset.order_by(ordering, 'pk')[offset:offset + page_size])
        pages = math.ceil(total / page_size)

        return ContactPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
            urgent_count=urgent_count,
            new_count=new_count,
        )

    def compute_statistics(self):
        """
        Build the dashboard report.

        Facets:
        - status / priority / source distributions
        - daily submission counts for the last 30 days, newest first
        - the 10 most frequent tags
        - response time (hours) over replied messages

        Counting and the response-time arithmetic happen in the database. The
        facets are read inside one transaction, so each sees the same or a
        monotonically-later view of the table.
        """
        now = timezone.now()
        first_day = timezone.localdate(now) - timedelta(days=self.DAILY_WINDOW_DAYS - 1)
        queryset = self.queryset.order_by()

        with transaction.atomic():
            status_counts = self._distribution('status')
            priority_counts = self._distribution('priority')
            source_counts = self._distribution('source')

            daily = list(queryset.filter(
                created_at__date__gte=first_day
            ).annotate(
                date=TruncDate('created_at')
            ).values('date').annotate(
                count=Count('pk')
            ).order_by('-date'))

            response_duration = ExpressionWrapper(
                F('replied_at') - F('created_at'), output_field=DurationField()
            )
            response_stats = queryset.filter(
                status=ContactMessage.STATUS_REPLIED,
                replied_at__isnull=False,
            ).aggregate(
                average=Avg(response_duration),
                shortest=Min(response_duration),
                longest=Max(response_duration),
                count=Count('pk'),
            )

            tags = Counter()
            for row_tags in queryset.values_list('tags', flat=True).iterator():
                tags.update(row_tags or [])

        response_time = self._response_time(response_stats)
        total = sum(status_counts.values())
        most_active_source = max(source_counts.items(), key=lambda item: item[1])[0] if source_counts else 'N/A'

        return {
            'status': status_counts,
            'priority': priority_counts,
            'source': source_counts,
            'daily': [
                {'date': row['date'].isoformat(), 'count': row['count']}
                for row in daily
            ],
            'top_tags': [
                {'tag': tag, 'count': count}
                for tag, count in sorted(tags.items(), key=lambda item: (-item[1], item[0]))[:self.TOP_TAGS_LIMIT]
            ],
            'response_time': response_time,
            'summary': {
                'total_contacts': total,
                'average_response_time': (
                    f"{response_time['average_hours']:.1f}"
                    if response_time['average_hours'] is not None else 'N/A'
                ),
                'most_active_source': most_active_source,
            },
            'generated_at': now.isoformat(),
        }

    def _distribution(self, field):
        return dict(
            self.queryset.order_by().values_list(field).annotate(count=Count('pk'))
        )

    @staticmethod
    def _response_time(stats):
        if not stats['count']:
            return {'average_hours': None, 'min_hours': None, 'max_hours': None, 'count': 0}

        def hours(duration):
            return round(duration.total_seconds() / 3600, 2)

        return {
            'average_hours': hours(stats['average']),
            'min_hours': hours(stats['shortest']),
            'max_hours': hours(stats['longest']),
            'count': stats['count'],
        }
