from django.apps import AppConfig


class LeaderboardsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rankcore.apps.leaderboards"
    verbose_name = "Leaderboards"
