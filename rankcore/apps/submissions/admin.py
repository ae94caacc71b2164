from __future__ import annotations

from django.contrib import admin, messages
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Submission


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = (
        "full_name",
        "leaderboard",
        "value_display",
        "status",
        "manual_rank",
        "is_manual_entry",
        "submitted_at",
        "approved_by",
    )
    list_filter = ("status", "is_manual_entry", "gender", "leaderboard")
    search_fields = ("full_name", "email", "leaderboard__title")
    raw_id_fields = ("leaderboard", "approved_by")
    readonly_fields = ("value_raw", "submitted_at", "submission_metadata")
    actions = ["action_approve", "action_reject", "action_clear_manual_rank"]

    @admin.action(description=_("Aprobar envíos pendientes seleccionados"))
    def action_approve(self, request, queryset):
        updated = queryset.filter(status=STATUS_PENDING).update(
            status=STATUS_APPROVED,
            approved_at=timezone.now(),
            approved_by=request.user,
        )
        self.message_user(request, f"{updated} envíos aprobados.", level=messages.SUCCESS)

    @admin.action(description=_("Rechazar envíos pendientes seleccionados"))
    def action_reject(self, request, queryset):
        updated = queryset.filter(status=STATUS_PENDING).update(
            status=STATUS_REJECTED,
            rejection_reason="Rechazado desde el admin.",
            approved_by=request.user,
        )
        self.message_user(request, f"{updated} envíos rechazados.", level=messages.WARNING)

    @admin.action(description=_("Quitar posición manual"))
    def action_clear_manual_rank(self, request, queryset):
        updated = queryset.exclude(manual_rank=None).update(manual_rank=None)
        self.message_user(request, f"{updated} envíos vuelven al orden automático.", level=messages.SUCCESS)
