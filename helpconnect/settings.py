"""Django settings for the helpconnect project.

Values come from the process environment; ``manage.py``, ``wsgi.py`` and
``celery.py`` load a local ``.env`` before this module is imported.
"""

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-helpconnect-dev-key')

DEBUG = _env_bool('DJANGO_DEBUG', True)

ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'profiles',
    'donor',
    'blood',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'helpconnect.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'helpconnect.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

LOGIN_URL = '/admin/login/'


# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django.db.backends': {'level': 'WARNING'},
        'botocore': {'level': 'WARNING'},
        'celery': {'level': 'INFO'},
    },
}


# Matching engine tunables
MATCHING_ADMIN_GROUP = os.getenv('MATCHING_ADMIN_GROUP', 'ADMIN')
MATCHING_REQUEST_EXPIRY_DAYS = _env_int('MATCHING_REQUEST_EXPIRY_DAYS', 7)
MATCHING_MAX_UNITS_PER_REQUEST = _env_int('MATCHING_MAX_UNITS_PER_REQUEST', 10)
MATCHING_RESPONSE_COOLDOWN_SECONDS = _env_int('MATCHING_RESPONSE_COOLDOWN_SECONDS', 5 * 60)
MATCHING_RESPONSE_COOLDOWN_THRESHOLD = _env_int('MATCHING_RESPONSE_COOLDOWN_THRESHOLD', 5)
MATCHING_DUPLICATE_REQUEST_WINDOW_SECONDS = _env_int('MATCHING_DUPLICATE_REQUEST_WINDOW_SECONDS', 60 * 60)
MATCHING_INACTIVE_MATCH_HOURS = _env_int('MATCHING_INACTIVE_MATCH_HOURS', 12)


# AWS SNS (SMS notifications)
AWS_SNS_ENABLED = _env_bool('AWS_SNS_ENABLED', False)
AWS_SNS_REGION = os.getenv('AWS_SNS_REGION', 'us-east-1')
AWS_SNS_SMS_TYPE = os.getenv('AWS_SNS_SMS_TYPE', 'Transactional')
AWS_SNS_SENDER_ID = os.getenv('AWS_SNS_SENDER_ID', '')
AWS_SNS_DEFAULT_COUNTRY_CODE = os.getenv('AWS_SNS_DEFAULT_COUNTRY_CODE', '+1')
AWS_SNS_MAX_RECIPIENTS = _env_int('AWS_SNS_MAX_RECIPIENTS', 10)


# Celery
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', '')
CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER', not CELERY_BROKER_URL)
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BEAT_SCHEDULE = {
    'expire-stale-requests': {
        'task': 'blood.tasks.expire_stale_requests',
        'schedule': 60 * 60,
    },
}
