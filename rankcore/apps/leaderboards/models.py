from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from rankcore.apps.scoring.services.parsing import CANONICAL_UNITS, METRIC_CHOICES, METRIC_TIME
from rankcore.apps.scoring.services.ranking import SORT_ASC, SORT_CHOICES


def unique_slug(title: str, exclude_pk=None) -> str:
    base = slugify(title)[:60] or "leaderboard"
    candidate = base
    i = 2
    qs = Leaderboard.objects.all()
    if exclude_pk:
        qs = qs.exclude(pk=exclude_pk)
    while qs.filter(slug=candidate).exists():
        candidate = f"{base}-{i}"
        i += 1
    return candidate


class Leaderboard(models.Model):
    """
    Tabla de clasificación de un dueño.
    metric_type y sort_direction se fijan al crear: todos los value_raw de sus
    envíos están en la unidad canónica de la métrica.
    """
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="leaderboards",
    )
    title = models.CharField(max_length=160)
    slug = models.SlugField(max_length=80, unique=True)
    description = models.TextField(blank=True)
    rules = models.TextField(blank=True)

    metric_type = models.CharField(max_length=16, choices=METRIC_CHOICES, default=METRIC_TIME)
    sort_direction = models.CharField(max_length=4, choices=SORT_CHOICES, default=SORT_ASC)
    unit = models.CharField(max_length=32, blank=True, help_text="Etiqueta para la columna de valor.")
    smart_time_parsing = models.BooleanField(
        default=True,
        help_text="Solo para tiempo: acepta '1h 30m', '12mins 30sec' además de mm:ss.",
    )

    # Política de envíos
    auto_approve = models.BooleanField(default=False, help_text="Los envíos públicos entran aprobados.")
    requires_verification = models.BooleanField(
        default=False, help_text="Exige link de prueba o video en cada envío."
    )
    submission_deadline = models.DateTimeField(null=True, blank=True)
    submissions_per_user = models.PositiveIntegerField(
        null=True, blank=True, help_text="Máximo de envíos por email (vacío = ilimitado)."
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "title")

    def __str__(self) -> str:
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(self.title, exclude_pk=self.pk)
        super().save(*args, **kwargs)

    @property
    def canonical_unit(self) -> str:
        return CANONICAL_UNITS[self.metric_type]

    @property
    def is_open(self) -> bool:
        if self.submission_deadline and timezone.now() > self.submission_deadline:
            return False
        return True

    def can_manage(self, user) -> bool:
        return bool(user.is_authenticated and (user.is_staff or user.pk == self.owner_id))
