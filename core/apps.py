from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Rail Exchange'

    def ready(self):
        # Register signal receivers
        from . import signals  # noqa: F401
