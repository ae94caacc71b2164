from django.urls import path
from . import views

urlpatterns = [
    # panel del dueño
    path("<slug:slug>/", views.manage, name="submissions_manage"),

    # moderación
    path("<slug:slug>/submissions/<uuid:pk>/approve/", views.approve_submission, name="submission_approve"),
    path("<slug:slug>/submissions/<uuid:pk>/reject/", views.reject_submission, name="submission_reject"),
    path("<slug:slug>/submissions/<uuid:pk>/delete/", views.delete_submission, name="submission_delete"),
    path("<slug:slug>/submissions/<uuid:pk>/value/", views.edit_submission, name="submission_edit"),
    path("<slug:slug>/entries/", views.add_entry, name="submission_add_entry"),

    # orden manual
    path("<slug:slug>/reorder/", views.reorder_submissions, name="submissions_reorder"),
    path("<slug:slug>/reorder/reset/", views.reset_order, name="submissions_reorder_reset"),
]
