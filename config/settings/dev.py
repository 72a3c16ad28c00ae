"""
Development settings: local PostgreSQL, console email, null WhatsApp transport unless set.
"""
from .base import *
from .database import get_database_config

DEBUG = True

DATABASES = {
    'default': get_database_config(env),
}

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

LOGGING['loggers']['packages']['level'] = 'DEBUG'
