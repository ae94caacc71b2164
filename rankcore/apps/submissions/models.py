# rankcore/apps/submissions/models.py
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

STATUS_PENDING = "PENDING"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"

STATUS_CHOICES = (
    (STATUS_PENDING, "Pendiente"),
    (STATUS_APPROVED, "Aprobado"),
    (STATUS_REJECTED, "Rechazado"),
)

GENDER_CHOICES = (
    ("male", "Masculino"),
    ("female", "Femenino"),
    ("other", "Otro"),
)


class Submission(models.Model):
    """
    Resultado enviado por un participante a un leaderboard.
    value_raw está en la unidad canónica de la métrica del leaderboard
    (ms, reps, metros o gramos) y es lo único que se compara para rankear.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    leaderboard = models.ForeignKey(
        "leaderboards.Leaderboard",
        on_delete=models.CASCADE,
        related_name="submissions",
    )

    full_name = models.CharField(max_length=120)
    email = models.EmailField()
    gender = models.CharField(max_length=8, choices=GENDER_CHOICES, default="male")

    # Puntuación
    value_raw = models.BigIntegerField()
    value_display = models.CharField(max_length=64)

    status = models.CharField(max_length=8, choices=STATUS_CHOICES, default=STATUS_PENDING)
    manual_rank = models.PositiveIntegerField(null=True, blank=True)

    # Pruebas
    proof_url = models.URLField(blank=True, default="")
    video = models.FileField(upload_to="video-proofs/%Y/%m/", blank=True)
    notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")
    submission_metadata = models.JSONField(default=dict, blank=True)
    is_manual_entry = models.BooleanField(default=False)

    submitted_at = models.DateTimeField(default=timezone.now, editable=False)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True, related_name="moderated_submissions",
    )

    class Meta:
        ordering = ("-submitted_at",)
        indexes = [
            models.Index(fields=("leaderboard", "status"), name="submission_lb_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} · {self.leaderboard} = {self.value_display}"

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING
