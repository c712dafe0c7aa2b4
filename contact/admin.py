"""
Contact Management Django Admin Configuration
"""
from django.contrib import admin

from .models import ContactMessage


@admin.register(ContactMessage)
class ContactMessageAdmin(admin.ModelAdmin):
    """Admin interface for contact messages."""

    list_display = [
        'ticket_id', 'name', 'email', 'subject', 'status',
        'priority', 'source', 'created_at'
    ]

    list_filter = [
        'status', 'priority', 'source', 'created_at'
    ]

    search_fields = [
        'name', 'email', 'subject', 'message'
    ]

    readonly_fields = [
        'id', 'ticket_id', 'tags', 'priority', 'classifier_version',
        'ip_address', 'user_agent', 'metadata', 'replied_at',
        'created_at', 'updated_at'
    ]

    fieldsets = (
        ('Contact Information', {
            'fields': ('ticket_id', 'name', 'email', 'subject', 'message', 'source')
        }),
        ('Classification', {
            'fields': ('status', 'priority', 'tags', 'classifier_version')
        }),
        ('Response', {
            'fields': ('replied_at', 'replied_by', 'response_message')
        }),
        ('Security & Tracking', {
            'fields': ('ip_address', 'user_agent', 'metadata'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['mark_as_read', 'archive_messages']

    @admin.action(description='Mark selected messages as read')
    def mark_as_read(self, request, queryset):
        for message in queryset:
            message.mark_as_read()
        self.message_user(request, f"{queryset.count()} message(s) marked as read.")

    @admin.action(description='Archive selected messages')
    def archive_messages(self, request, queryset):
        for message in queryset:
            message.archive()
        self.message_user(request, f"{queryset.count()} message(s) archived.")

    def has_add_permission(self, request):
        """Messages only arrive through the contact form."""
        return False
