from __future__ import annotations

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from rankcore.apps.submissions.models import Submission

from .models import Leaderboard


class SubmissionInline(admin.TabularInline):
    model = Submission
    extra = 0
    fields = ("full_name", "value_display", "status", "manual_rank", "submitted_at")
    readonly_fields = ("full_name", "value_display", "status", "submitted_at")
    ordering = ("manual_rank", "value_raw")
    show_change_link = True


@admin.register(Leaderboard)
class LeaderboardAdmin(admin.ModelAdmin):
    list_display = ("title", "owner", "metric_type", "sort_direction", "auto_approve", "submission_deadline", "created_at")
    list_filter = ("metric_type", "sort_direction", "auto_approve", "requires_verification")
    search_fields = ("title", "slug", "owner__username", "owner__email")
    prepopulated_fields = {"slug": ("title",)}
    raw_id_fields = ("owner",)
    inlines = [SubmissionInline]
    actions = ["action_enable_auto_approve", "action_disable_auto_approve"]

    @admin.action(description=_("Activar aprobación automática"))
    def action_enable_auto_approve(self, request, queryset):
        updated = queryset.update(auto_approve=True)
        self.message_user(request, f"{updated} leaderboards con aprobación automática.", level=messages.SUCCESS)

    @admin.action(description=_("Desactivar aprobación automática"))
    def action_disable_auto_approve(self, request, queryset):
        updated = queryset.update(auto_approve=False)
        self.message_user(request, f"{updated} leaderboards con moderación manual.", level=messages.SUCCESS)
