# Generated manually for the ContactMessage model
from django.db import migrations, models
import contact.validators
import django.core.validators
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ContactMessage',
            fields=[
                ('id', models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ('name', models.CharField(max_length=50, help_text='Name of the person contacting us (2-50 characters)', validators=[django.core.validators.MinLengthValidator(2), contact.validators.validate_contact_name])),
                ('email', models.CharField(max_length=254, help_text='Email address for follow-up (stored lower-cased)', validators=[contact.validators.validate_contact_email])),
                ('subject', models.CharField(max_length=100, help_text='Subject line (5-100 characters)', validators=[django.core.validators.MinLengthValidator(5), contact.validators.validate_safe_content])),
                ('message', models.TextField(help_text='The actual message content (10-1000 characters)', validators=[django.core.validators.MinLengthValidator(10), django.core.validators.MaxLengthValidator(1000), contact.validators.validate_safe_content])),
                ('status', models.CharField(choices=[('new', 'New'), ('read', 'Read'), ('replied', 'Replied'), ('archived', 'Archived')], db_index=True, default='new', max_length=20)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('normal', 'Normal'), ('high', 'High'), ('urgent', 'Urgent')], default='normal', help_text='Derived from the message content', max_length=10)),
                ('tags', models.JSONField(blank=True, default=list, help_text='Derived keyword tags')),
                ('classifier_version', models.PositiveSmallIntegerField(default=1, help_text='Classifier version that produced tags and priority')),
                ('source', models.CharField(choices=[('website', 'Website'), ('mobile', 'Mobile'), ('api', 'API'), ('admin', 'Admin')], default='website', max_length=10)),
                ('ip_address', models.CharField(blank=True, default='', max_length=45, validators=[contact.validators.validate_ip_address])),
                ('user_agent', models.CharField(blank=True, default='', max_length=500)),
                ('replied_at', models.DateTimeField(blank=True, null=True)),
                ('replied_by', models.CharField(blank=True, default='', max_length=50)),
                ('response_message', models.TextField(blank=True, default='', validators=[django.core.validators.MaxLengthValidator(2000)])),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Submission context (time, language, transport security)')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Contact Message',
                'verbose_name_plural': 'Contact Messages',
                'db_table': 'contact_messages',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='contactmessage',
            index=models.Index(fields=['email', '-created_at'], name='contact_email_created_idx'),
        ),
        migrations.AddIndex(
            model_name='contactmessage',
            index=models.Index(fields=['status', '-created_at'], name='contact_status_created_idx'),
        ),
        migrations.AddIndex(
            model_name='contactmessage',
            index=models.Index(fields=['priority', 'status'], name='contact_priority_status_idx'),
        ),
    ]
