"""
Logging configuration shared by the whole backend.

Every record carries the id of the request that produced it, and the
values of well-known credential fields are masked before they are written.
"""
from __future__ import annotations

import contextvars
import logging
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
LOG_DIR = Path(os.getenv('LOG_DIR', BASE_DIR / 'logs'))
LOG_DIR.mkdir(parents=True, exist_ok=True)

APP_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
DJANGO_LEVEL = os.getenv('DJANGO_LOG_LEVEL', 'INFO').upper()
SQL_DEBUG = os.getenv('SQL_LOG', '0') == '1'

request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='-')


class RequestIDFilter(logging.Filter):
    """Attach the current request id to every record."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get('-')
        return True


SENSITIVE_KEYS = {
    'password', 'currentpassword', 'newpassword', 'password_hash',
    'token', 'authorization', 'secret', 'secretcode', 'secret_code', 'cookie',
}
SCRUB_FIELDS = {'body', 'payload', 'params', 'data', 'headers', 'query'}


def scrub_for_log(obj, depth=0):
    """Return a copy of ``obj`` with credential values replaced by ``***``."""
    if depth > 3:
        return '<deep>'
    if isinstance(obj, dict):
        return {
            k: '***' if str(k).lower() in SENSITIVE_KEYS else scrub_for_log(v, depth + 1)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [scrub_for_log(x, depth + 1) for x in list(obj)[:50]]
    return obj


class ScrubFilter(logging.Filter):
    """Mask credentials passed through ``extra={...}`` or dict log args."""
    def filter(self, record: logging.LogRecord) -> bool:
        for field in SCRUB_FIELDS:
            if hasattr(record, field):
                setattr(record, field, scrub_for_log(getattr(record, field)))

        args = getattr(record, 'args', None)
        if isinstance(args, dict):
            record.args = {k: scrub_for_log(v) for k, v in args.items()}
        elif isinstance(args, tuple):
            record.args = tuple(scrub_for_log(v) for v in args)
        return True


VERBOSE_FMT = (
    '[%(asctime)s] [%(levelname)s] [%(name)s] '
    '[req=%(request_id)s] %(message)s'
)
SIMPLE_FMT = '%(levelname)s: %(message)s'
DATE_FMT = '%Y-%m-%d %H:%M:%S'

APP_HANDLERS = ['console', 'app_file', 'error_file']

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,

    'filters': {
        'request_id': {
            '()': RequestIDFilter,
        },
        'scrub': {
            '()': ScrubFilter,
        },
    },

    'formatters': {
        'verbose': {
            'format': VERBOSE_FMT,
            'datefmt': DATE_FMT,
        },
        'simple': {
            'format': SIMPLE_FMT,
        },
    },

    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': APP_LEVEL,
            'formatter': 'verbose',
            'filters': ['request_id', 'scrub'],
        },
        'app_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': APP_LEVEL,
            'formatter': 'verbose',
            'filters': ['request_id', 'scrub'],
            'filename': str(LOG_DIR / 'app.log'),
            'maxBytes': 10 * 1024 * 1024,
            'backupCount': 5,
            'encoding': 'utf-8',
        },
        'error_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': 'ERROR',
            'formatter': 'verbose',
            'filters': ['request_id', 'scrub'],
            'filename': str(LOG_DIR / 'error.log'),
            'maxBytes': 10 * 1024 * 1024,
            'backupCount': 5,
            'encoding': 'utf-8',
        },
        'sql_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': 'DEBUG',
            'formatter': 'verbose',
            'filters': ['request_id'],
            'filename': str(LOG_DIR / 'sql.log'),
            'maxBytes': 10 * 1024 * 1024,
            'backupCount': 3,
            'encoding': 'utf-8',
        },
    },

    'loggers': {
        'accounts': {'handlers': APP_HANDLERS, 'level': APP_LEVEL, 'propagate': False},
        'content': {'handlers': APP_HANDLERS, 'level': APP_LEVEL, 'propagate': False},
        'progress': {'handlers': APP_HANDLERS, 'level': APP_LEVEL, 'propagate': False},
        'lexilearn': {'handlers': APP_HANDLERS, 'level': APP_LEVEL, 'propagate': False},

        'django': {
            'handlers': APP_HANDLERS,
            'level': DJANGO_LEVEL,
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console', 'error_file'],
            'level': 'ERROR',
            'propagate': False,
        },
        # ORM SQL, only with SQL_LOG=1
        'django.db.backends': {
            'handlers': (['sql_file', 'console'] if SQL_DEBUG else []),
            'level': 'DEBUG' if SQL_DEBUG else 'WARNING',
            'propagate': False,
        },

        '': {
            'handlers': APP_HANDLERS,
            'level': APP_LEVEL,
        },
    },
}
