"""Test settings used by pytest-django."""
from .base import *  # noqa


DEBUG = False
SECRET_KEY = "test-insecure-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Fast hashing keeps the suite quick; the validators still run.
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Throttle history lives in the cache; a dummy cache keeps tests independent.
CACHES = {"default": {"BACKEND": "django.core.cache.backends.dummy.DummyCache"}}

IMAGE_HOST = {
    "CLOUD_NAME": "demo-cloud",
    "API_KEY": "test-key",
    "API_SECRET": "test-secret",
    "FOLDER": "tests/profile_pictures",
    "UPLOAD_PREFIX": "https://images.invalid",
    "TIMEOUT": 1.0,
}

LOGGING = {
    **LOGGING,  # noqa: F405
    "root": {"handlers": ["console"], "level": "CRITICAL"},
}
