from pathlib import Path
import os
import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# --- 1. SECRET KEY ---
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-fallback-key-for-dev')

# --- 2. DEBUG MODE ---
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = []


# Application definition
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'rest_framework',
    'channels',
    'election_registry',
]


# --- 3. DATABASE ---
DATABASES = {
    'default': dj_database_url.config(
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}',
        conn_max_age=600
    )
}

# SQLite has no row locks, so take the write lock when the transaction opens.
# This is what makes the registry's writer lock hold on the default backend.
if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    DATABASES['default'].setdefault('OPTIONS', {})['transaction_mode'] = 'IMMEDIATE'
    # A file, not shared-cache memory, so concurrent test writers wait for the lock
    # instead of failing with "table is locked".
    DATABASES['default']['TEST'] = {'NAME': str(BASE_DIR / 'test_db.sqlite3')}


# --- 4. CHANNEL LAYERS ---
# VoteCasted notifications are published here.
REDIS_URL = os.environ.get('REDIS_URL')
if REDIS_URL:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {
                "hosts": [REDIS_URL],
            },
        },
    }
else:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels.layers.InMemoryChannelLayer"
        }
    }


# --- 5. VOTING REGISTRY ---
VOTING_REGISTRY = {
    'BROADCAST_VOTES': os.environ.get('VOTING_BROADCAST_VOTES', 'True').lower() == 'true',
    'GROUP_PREFIX': os.environ.get('VOTING_GROUP_PREFIX', 'votes'),
    'STRICT_REVOCATION': os.environ.get('VOTING_STRICT_REVOCATION', 'False').lower() == 'true',
}


# --- 6. LOGGING ---
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{levelname}] {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'election_registry': {
            'handlers': ['console'],
            'level': os.environ.get('VOTING_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}


LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
