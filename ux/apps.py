from django.apps import AppConfig


class UxConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ux"
    verbose_name = "Dashboard"
