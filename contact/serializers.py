"""
Contact Management Serializers

Serializers for contact form submissions and admin management.
"""
from rest_framework import serializers

from .models import ContactMessage
from .services.queries import ContactQueryService
from .validators import contains_forbidden_content, validate_contact_name


class ContactFormSubmitSerializer(serializers.Serializer):
    """
    Public contact form submission serializer.

    Checks presence and basic shape of the input. The submission service
    re-validates every rule against the model before saving.
    """

    name = serializers.CharField(
        min_length=2,
        max_length=50,
        required=True,
        validators=[validate_contact_name],
        help_text="Name of the person contacting us"
    )

    email = serializers.EmailField(
        required=True,
        help_text="Valid email address for follow-up"
    )

    subject = serializers.CharField(
        min_length=5,
        max_length=100,
        required=True,
        help_text="Subject line (5-100 characters)"
    )

    message = serializers.CharField(
        min_length=10,
        max_length=1000,
        required=True,
        help_text="Message content (10-1000 characters)"
    )

    source = serializers.ChoiceField(
        choices=ContactMessage.SOURCE_CHOICES,
        required=False,
        default='website'
    )

    def validate_email(self, value):
        return value.strip().lower()

    def validate_subject(self, value):
        if contains_forbidden_content(value):
            raise serializers.ValidationError("Subject contains invalid content")
        return value

    def validate_message(self, value):
        if contains_forbidden_content(value):
            raise serializers.ValidationError("Message contains invalid content")
        return value


class ContactResponseSerializer(serializers.Serializer):
    replied_at = serializers.DateTimeField()
    replied_by = serializers.CharField()
    response_message = serializers.CharField()


class ContactMessageListSerializer(serializers.ModelSerializer):
    """
    Serializer for listing contact messages in admin.
    """

    ticket_id = serializers.ReadOnlyField()
    message_preview = serializers.ReadOnlyField()
    is_recent = serializers.ReadOnlyField()

    class Meta:
        model = ContactMessage
        fields = [
            'id', 'ticket_id', 'name', 'email', 'subject', 'message_preview',
            'status', 'priority', 'tags', 'source', 'is_recent',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ContactMessageDetailSerializer(serializers.ModelSerializer):
    """
    Detailed serializer for viewing a single contact message.
    """

    ticket_id = serializers.ReadOnlyField()
    age_in_days = serializers.ReadOnlyField()
    response = ContactResponseSerializer(read_only=True, allow_null=True)

    class Meta:
        model = ContactMessage
        fields = [
            'id', 'ticket_id', 'name', 'email', 'subject', 'message',
            'status', 'priority', 'tags', 'source', 'ip_address', 'user_agent',
            'response', 'metadata', 'age_in_days', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ContactStatusUpdateSerializer(serializers.Serializer):
    """
    Serializer for status changes from the admin dashboard.
    """

    status = serializers.ChoiceField(choices=ContactMessage.STATUS_CHOICES)

    replied_by = serializers.CharField(
        max_length=50,
        required=False,
        default='Admin'
    )

    response_message = serializers.CharField(
        max_length=2000,
        required=False,
        allow_blank=True,
        default=''
    )


class ContactListQuerySerializer(serializers.Serializer):
    """
    Query parameters for the admin listing.
    """

    status = serializers.ChoiceField(
        choices=[('all', 'All')] + ContactMessage.STATUS_CHOICES,
        required=False
    )
    priority = serializers.ChoiceField(choices=ContactMessage.PRIORITY_CHOICES, required=False)
    source = serializers.ChoiceField(choices=ContactMessage.SOURCE_CHOICES, required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(
        min_value=1,
        max_value=ContactQueryService.MAX_PAGE_SIZE,
        required=False,
        default=ContactQueryService.DEFAULT_PAGE_SIZE
    )
    sort_by = serializers.ChoiceField(
        choices=ContactQueryService.SORTABLE_FIELDS,
        required=False,
        default='created_at'
    )
    sort_order = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')
