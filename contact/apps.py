import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ContactConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'contact'
    verbose_name = 'Contact Management'

    def ready(self):
        """Import signals and report the e-mail configuration once at startup."""
        import contact.signals  # noqa
        from contact.services.notifications import ContactMailer

        if not ContactMailer.from_settings().is_configured:
            logger.warning("Contact email service not configured - notifications disabled")
