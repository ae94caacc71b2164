from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include

from rankcore.apps.leaderboards import views as leaderboard_views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/", include("django.contrib.auth.urls")),

    # API healthcheck
    path("api/health/", leaderboard_views.health, name="api_health"),

    # Herramientas del dueño sobre envíos (moderación, orden manual, entradas manuales)
    path("manage/", include("rankcore.apps.submissions.urls")),

    # Home, dashboard, alta/edición y páginas públicas
    path("", include("rankcore.apps.leaderboards.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
