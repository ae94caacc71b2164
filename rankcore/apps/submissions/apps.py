from django.apps import AppConfig


class SubmissionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rankcore.apps.submissions"
    verbose_name = "Envíos"
