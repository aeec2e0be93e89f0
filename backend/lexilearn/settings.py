"""
Django settings for the LexiLearn backend.

Every deployment-specific value is read from the environment so the same
module serves development, tests and production.
"""
import os
from datetime import timedelta
from pathlib import Path

from .config_log import LOGGING  # noqa: F401

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-lexilearn-development-key')

DEBUG = env_bool('DEBUG', False)

ALLOWED_HOSTS = [h.strip() for h in os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django.contrib.staticfiles',
    'rest_framework',
    'accounts.apps.AccountsConfig',
    'content.apps.ContentConfig',
    'progress.apps.ProgressConfig',
]

MIDDLEWARE = [
    'lexilearn.middleware.RequestIDMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'lexilearn.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'lexilearn.wsgi.application'


# Database: sqlite unless a postgres engine is configured
DB_ENGINE = os.getenv('DB_ENGINE', 'sqlite').lower()

if DB_ENGINE in ('postgres', 'postgresql'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME', 'lexilearn'),
            'USER': os.getenv('DB_USER', 'postgres'),
            'PASSWORD': os.getenv('DB_PASSWORD', ''),
            'HOST': os.getenv('DB_HOST', 'localhost'),
            'PORT': os.getenv('DB_PORT', '5432'),
            'CONN_MAX_AGE': int(os.getenv('DB_CONN_MAX_AGE', '60')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
MEDIA_URL = '/media/'
MEDIA_ROOT = os.getenv('MEDIA_ROOT', str(BASE_DIR / 'media'))

# Uploaded files above this size are streamed to disk instead of memory
FILE_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024


# Authentication tokens
JWT_SECRET = os.getenv('JWT_SECRET', SECRET_KEY)
JWT_ALGORITHM = 'HS256'
JWT_EXPIRATION = timedelta(days=int(os.getenv('JWT_EXPIRE_DAYS', '7')))

# Public registration never creates admins unless explicitly enabled
ALLOW_ADMIN_REGISTRATION = env_bool('ALLOW_ADMIN_REGISTRATION', False)

# Upload limits in bytes
ASSIGNMENT_UPLOAD_MAX_SIZE = 10 * 1024 * 1024
MODULE_UPLOAD_MAX_SIZE = 100 * 1024 * 1024


REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'accounts.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'lexilearn.throttling.RequestRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'requests': os.getenv('RATE_LIMIT', '100/15m'),
    },
    'DEFAULT_PAGINATION_CLASS': 'lexilearn.pagination.PageLimitPagination',
    'PAGE_SIZE': 10,
    'EXCEPTION_HANDLER': 'lexilearn.exceptions.api_exception_handler',
    'UNAUTHENTICATED_USER': None,
    'TEST_REQUEST_DEFAULT_FORMAT': 'json',
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'lexilearn-throttle',
    }
}
