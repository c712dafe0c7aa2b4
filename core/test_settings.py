"""
Settings for the test suite: SQLite, eager Celery, in-memory mail and cache.
"""
import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key-not-for-production')

from core.settings import *  # noqa: E402,F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'contact-tests',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

SECURE_SSL_REDIRECT = False

# Run tasks inline so notification and purge behaviour is observable in tests
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CONTACT_EMAIL_TO = 'owner@example.com'
CONTACT_EMAIL_FROM = 'noreply@example.com'
CONTACT_EMAIL_REPLY_TO = 'owner@example.com'
CONTACT_NOTIFICATIONS_ENABLED = True
CONTACT_SITE_OWNER = 'Test Portfolio'

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_RATES': {
        'contact_submit': '1000/hour',
        'contact_admin': '1000/hour',
    },
}
