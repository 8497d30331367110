from django.apps import AppConfig


class PrazosConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'prazos'
    verbose_name = 'Prazos processuais'
