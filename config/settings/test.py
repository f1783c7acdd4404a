"""
Test settings. DATABASE_URL may point at PostgreSQL; defaults to a local SQLite file.
"""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///test-db.sqlite3')

from .base import *

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# Run notification tasks inline so tests can assert on mail.outbox
NOTIFICATIONS_ASYNC = False

LOGGING['loggers'] = {}
