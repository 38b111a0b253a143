"""Test settings.

SQLite in a temporary file by default, opened with ``BEGIN IMMEDIATE``
so concurrent writers queue on the database lock instead of failing.
Set ``DB_ENGINE`` and friends to run the suite against PostgreSQL
(required for the exclusion constraint tests). Celery runs tasks
eagerly and mail stays in memory.
"""

import tempfile

from .base import *  # noqa: F401,F403

DEBUG = False

if os.environ.get('DB_ENGINE', '').endswith('postgresql'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DB_NAME', 'moovy_test'),
            'USER': os.environ.get('DB_USER', ''),
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', ''),
            'PORT': os.environ.get('DB_PORT', ''),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.path.join(tempfile.gettempdir(), 'moovy_test.sqlite3'),
            'OPTIONS': {'transaction_mode': 'IMMEDIATE', 'timeout': 20},
            'TEST': {'NAME': os.path.join(tempfile.gettempdir(), 'moovy_test.sqlite3')},
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

TELEMATICS_PROVIDER = 'simulation'
