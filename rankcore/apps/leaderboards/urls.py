from django.urls import path
from . import views

urlpatterns = [
    # índice público
    path("", views.home, name="home"),

    # panel del dueño y alta
    path("dashboard/", views.dashboard, name="dashboard"),
    path("create/", views.leaderboard_create, name="leaderboard_create"),
    path("manage/<slug:slug>/edit/", views.leaderboard_edit, name="leaderboard_edit"),

    # leaderboard público (tabla + formulario de envío)
    path("l/<slug:slug>/", views.leaderboard_detail, name="leaderboard_detail"),
]
