# rankcore/apps/submissions/forms.py
from __future__ import annotations

import re

from django import forms
from django.conf import settings

from rankcore.apps.scoring.services.parsing import METRIC_TIME, parse_value
from .models import GENDER_CHOICES

BAD_WORDS_RX = re.compile(r"(fuck|shit|cunt|bitch|asshole|damn)", re.IGNORECASE)


def value_placeholder(leaderboard) -> str:
    if leaderboard.metric_type == METRIC_TIME:
        if leaderboard.smart_time_parsing:
            return "ej. 12:30, 1h 30m, 12mins 30sec"
        return "mm:ss o hh:mm:ss"
    if leaderboard.metric_type == "distance":
        return "ej. 5000 o 5km"
    if leaderboard.metric_type == "weight":
        return "kg, ej. 102.5"
    return "ej. 42"


class _ValueFieldMixin:
    """Valida el campo 'value' con el parser de la métrica del leaderboard."""

    def clean_value(self):
        text = (self.cleaned_data.get("value") or "").strip()
        lb = self.leaderboard
        # Errores del parser son ValidationError: el mensaje sale tal cual en el campo
        self.parsed = parse_value(lb.metric_type, text, lb.smart_time_parsing)
        return text


# ---------- Envío público ----------
class SubmissionForm(_ValueFieldMixin, forms.Form):
    full_name = forms.CharField(label="Nombre completo", min_length=2, max_length=120)
    email = forms.EmailField(label="Email")
    gender = forms.ChoiceField(label="Género", choices=GENDER_CHOICES, initial="male")
    value = forms.CharField(label="Resultado", max_length=64)
    proof_url = forms.URLField(label="Link de prueba", required=False)
    video = forms.FileField(label="Video", required=False)
    notes = forms.CharField(label="Notas", required=False, widget=forms.Textarea(attrs={"rows": 2}))
    accept = forms.BooleanField(label="Acepto las reglas y términos", required=True)
    # Honeypot: los humanos no lo ven
    website = forms.CharField(required=False, widget=forms.TextInput(attrs={"tabindex": "-1", "autocomplete": "off"}))

    def __init__(self, *args, **kwargs):
        self.leaderboard = kwargs.pop("leaderboard")
        super().__init__(*args, **kwargs)
        self.parsed = None
        self.fields["value"].widget.attrs["placeholder"] = value_placeholder(self.leaderboard)

    def clean_full_name(self):
        name = self.cleaned_data["full_name"].strip()
        if BAD_WORDS_RX.search(name):
            raise forms.ValidationError("No se permiten palabras inapropiadas.")
        return name

    def clean_video(self):
        video = self.cleaned_data.get("video")
        if not video:
            return None
        content_type = getattr(video, "content_type", "") or ""
        if not content_type.startswith("video/"):
            raise forms.ValidationError("Selecciona un archivo de video.")
        max_mb = getattr(settings, "RANKCORE_MAX_VIDEO_MB", 50)
        if video.size > max_mb * 1024 * 1024:
            raise forms.ValidationError(f"El video debe pesar menos de {max_mb} MB.")
        return video

    def clean_website(self):
        if self.cleaned_data.get("website"):
            raise forms.ValidationError("Inválido.")
        return ""


# ---------- Herramientas del dueño ----------
class ManualEntryForm(_ValueFieldMixin, forms.Form):
    full_name = forms.CharField(label="Nombre completo", max_length=120)
    email = forms.EmailField(label="Email")
    gender = forms.ChoiceField(label="Género", choices=GENDER_CHOICES, initial="male")
    value = forms.CharField(label="Resultado", max_length=64)

    def __init__(self, *args, **kwargs):
        self.leaderboard = kwargs.pop("leaderboard")
        super().__init__(*args, **kwargs)
        self.parsed = None
        self.fields["value"].widget.attrs["placeholder"] = value_placeholder(self.leaderboard)


class SubmissionEditForm(_ValueFieldMixin, forms.Form):
    full_name = forms.CharField(label="Nombre completo", max_length=120, required=False)
    email = forms.EmailField(label="Email", required=False)
    gender = forms.ChoiceField(label="Género", choices=(("", "—"),) + GENDER_CHOICES, required=False)
    value = forms.CharField(label="Resultado", max_length=64, required=False)

    def __init__(self, *args, **kwargs):
        self.leaderboard = kwargs.pop("leaderboard")
        super().__init__(*args, **kwargs)
        self.parsed = None

    def clean_value(self):
        # Vacío = no cambiar el valor
        if not (self.cleaned_data.get("value") or "").strip():
            return ""
        return super().clean_value()


class RejectForm(forms.Form):
    reason = forms.CharField(label="Motivo del rechazo", widget=forms.Textarea(attrs={"rows": 2}))


class MoveForm(forms.Form):
    submission = forms.UUIDField()
    position = forms.IntegerField(min_value=1)
    q = forms.CharField(required=False)
