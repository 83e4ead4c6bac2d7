from django.apps import AppConfig


class ElectionRegistryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'election_registry'
    verbose_name = 'Election registry'
