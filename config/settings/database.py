"""
PostgreSQL connection settings for dev/prod. The ledger relies on row locks
(SELECT ... FOR UPDATE), so there is no SQLite fallback here; tests use
config.settings.test.
"""
from django.core.exceptions import ImproperlyConfigured

REQUIRED_PARTS = ('DB_NAME', 'DB_USER')


def get_database_config(env, conn_max_age=0):
    """DATABASE_URL wins; otherwise the DB_* parts; otherwise ImproperlyConfigured."""
    url = env.str('DATABASE_URL', default='').strip()
    if url:
        config = env.db_url_config(url)
        config.setdefault('CONN_MAX_AGE', conn_max_age)
        return config

    missing = [key for key in REQUIRED_PARTS if not env.str(key, default='').strip()]
    if missing:
        raise ImproperlyConfigured(
            f"Database not configured: set DATABASE_URL or {', '.join(missing)} in .env"
        )

    return {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': env.str('DB_NAME'),
        'USER': env.str('DB_USER'),
        'PASSWORD': env.str('DB_PASSWORD', default=''),
        'HOST': env.str('DB_HOST', default='localhost'),
        'PORT': env.str('DB_PORT', default='5432'),
        'CONN_MAX_AGE': env.int('DB_CONN_MAX_AGE', default=conn_max_age),
    }
