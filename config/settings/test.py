"""
Test settings: in-memory SQLite, null WhatsApp transport, fast hashing.
SELECT ... FOR UPDATE is a no-op on SQLite; the locking path still runs.
"""
from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

WHATSAPP_PROVIDER = 'null'
PACKAGE_AUTO_RENEW = False
DEFAULT_CURRENCY = 'USD'
PAYMENT_TOKEN_PREFIX = 'elmcorner'
PAYMENT_BASE_URL = 'https://pay.test'
