from django.apps import AppConfig


class ScoringConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rankcore.apps.scoring"
    verbose_name = "Scoring (parser y ranking)"
