from django.apps import AppConfig


class ApiConfig(AppConfig):
    """REST layer over the accounts and courses services."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "api"
