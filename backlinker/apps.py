from django.apps import AppConfig


class BacklinkerConfig(AppConfig):
    """Configuration for the backlinker Django app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backlinker'
