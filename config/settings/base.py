"""Base Django settings for the course feedback platform.

This base layer is environment-agnostic. Development/production-specific
settings extend from this module in `dev.py`, `prod.py` and `test.py`.
"""
from pathlib import Path
import os


# Base directory of the project (repository root)
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# Security (overridden in dev/prod)
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-key-change-me")
DEBUG = False
ALLOWED_HOSTS: list[str] = []


# Applications
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps (API and docs)
    "rest_framework",
    "django_filters",
    "drf_spectacular",
    # Local apps
    "accounts",
    "courses",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "config.middleware.SecurityHeadersMiddleware",
    # "whitenoise.middleware.WhiteNoiseMiddleware",  # enabled in prod.py
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"


# Database: SQLite-first; point DJANGO_DB_PATH elsewhere for deployments
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}


# Internationalisation. Month buckets in the statistics engine are always UTC.
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True


# Static files
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Django REST Framework
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PAGINATION_CLASS": "api.pagination.DefaultPagination",
    "PAGE_SIZE": 10,
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "api.permissions.IsActiveUser",
    ],
    "EXCEPTION_HANDLER": "api.exceptions.service_exception_handler",
    # Basic throttling to reduce abuse of API endpoints.
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.UserRateThrottle",
        "rest_framework.throttling.AnonRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": "100/min",
        "anon": "30/min",
        "login": "10/min",
    },
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DATETIME_FORMAT": "iso-8601",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Course Feedback API",
    "DESCRIPTION": "Students rate courses; admins manage courses, students and analytics.",
    "VERSION": "1.0.0",
    "DISABLE_ERRORS_AND_WARNINGS": True,
    "SERVE_INCLUDE_SCHEMA": False,
}


# Password policy
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 8}},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "accounts.validators.PasswordComplexityValidator"},
]
# Prefer Argon2 for password hashing when available.
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.Argon2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher",
    "django.contrib.auth.hashers.BCryptSHA256PasswordHasher",
    "django.contrib.auth.hashers.ScryptPasswordHasher",
]


# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "accounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "courses": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "api": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}


# Feedback lifecycle and dashboard knobs
# Moderation is bypassed by default; set to "pending" to require review.
FEEDBACK_INITIAL_STATUS = os.environ.get("FEEDBACK_INITIAL_STATUS", "approved")
DASHBOARD_TOP_COURSES = 5
DASHBOARD_TREND_MONTHS = 6
DASHBOARD_RECENT_DAYS = 7


# Image host for profile pictures (Cloudinary-compatible upload API).
# Credentials come from the environment only; see accounts.image_host.
IMAGE_HOST = {
    "CLOUD_NAME": os.environ.get("IMAGE_HOST_CLOUD_NAME", ""),
    "API_KEY": os.environ.get("IMAGE_HOST_API_KEY", ""),
    "API_SECRET": os.environ.get("IMAGE_HOST_API_SECRET", ""),
    "FOLDER": os.environ.get("IMAGE_HOST_FOLDER", "student_feedback_app/profile_pictures"),
    "UPLOAD_PREFIX": os.environ.get("IMAGE_HOST_UPLOAD_PREFIX", "https://api.cloudinary.com"),
    "TIMEOUT": float(os.environ.get("IMAGE_HOST_TIMEOUT", "10")),
}
PROFILE_PICTURE_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
PROFILE_PICTURE_SIZE = 300  # square edge in pixels
