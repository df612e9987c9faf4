from django.apps import AppConfig


class MedilinkConfig(AppConfig):
    name = 'medilink'
    default_auto_field = 'django.db.models.BigAutoField'
