"""ASGI entrypoint for the course feedback platform."""
import os
from django.core.asgi import get_asgi_application

# Default to development settings for local runs; override in deployment.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

application = get_asgi_application()
