"""
Production settings
"""
from .base import *
from .database import get_database_config

DEBUG = False

# Production security settings
SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

DATABASES = {
    'default': get_database_config(env, conn_max_age=60),
}
