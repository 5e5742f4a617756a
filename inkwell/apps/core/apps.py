from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inkwell.apps.core"
    verbose_name = "Rich text"
