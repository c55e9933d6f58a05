"""
Test settings.

SQLite in-memory database and deterministic gateway configuration.
"""

from .base import *  # noqa: F403
from .base import settings

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

settings.ENVIRONMENT = "test"
settings.LOG_JSON = False
settings.PAYDUNYA_PRIVATE_KEY = "test_private_key"
settings.PAYDUNYA_VERIFY_SIGNATURE = True
settings.PAYDUNYA_MAX_RETRIES = 0
