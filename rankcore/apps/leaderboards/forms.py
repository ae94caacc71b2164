from __future__ import annotations

from django import forms

from .models import Leaderboard

_COMMON_FIELDS = [
    "title",
    "description",
    "rules",
    "unit",
    "smart_time_parsing",
    "auto_approve",
    "requires_verification",
    "submission_deadline",
    "submissions_per_user",
]


class LeaderboardForm(forms.ModelForm):
    """Alta de leaderboard: aquí se fijan métrica y dirección de orden."""

    class Meta:
        model = Leaderboard
        fields = ["title", "metric_type", "sort_direction"] + _COMMON_FIELDS[1:]
        widgets = {
            "description": forms.Textarea(attrs={"rows": 3}),
            "rules": forms.Textarea(attrs={"rows": 4, "placeholder": "Reglas, requisitos de prueba, plazos…"}),
            "submission_deadline": forms.DateTimeInput(attrs={"type": "datetime-local"}),
            "submissions_per_user": forms.NumberInput(attrs={"min": 1, "placeholder": "Vacío = ilimitado"}),
        }
        labels = {
            "title": "Título",
            "metric_type": "Métrica",
            "sort_direction": "Orden",
            "description": "Descripción",
            "rules": "Reglas",
            "unit": "Unidad",
            "smart_time_parsing": "Parseo inteligente de tiempo",
            "auto_approve": "Aprobar automáticamente",
            "requires_verification": "Exigir prueba",
            "submission_deadline": "Cierre de envíos",
            "submissions_per_user": "Envíos por email",
        }

    def clean_title(self):
        title = self.cleaned_data["title"].strip()
        if len(title) < 3:
            raise forms.ValidationError("El título debe tener al menos 3 caracteres.")
        return title

    def clean_submissions_per_user(self):
        n = self.cleaned_data.get("submissions_per_user")
        if n is not None and n < 1:
            raise forms.ValidationError("Debe ser al menos 1 (o vacío para ilimitado).")
        return n


class LeaderboardEditForm(LeaderboardForm):
    """Edición: la métrica y el orden no se pueden cambiar (invalidarían los value_raw guardados)."""

    class Meta(LeaderboardForm.Meta):
        fields = list(_COMMON_FIELDS)
