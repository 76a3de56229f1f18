from django.apps import AppConfig


class AuthxConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "authx"
    verbose_name = "Authentication"
