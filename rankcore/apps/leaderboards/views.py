from __future__ import annotations

from functools import wraps
from typing import Any, Dict, List

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.views import redirect_to_login
from django.core.exceptions import ValidationError
from django.http import HttpRequest, HttpResponse, HttpResponseForbidden, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render

from rankcore.apps.scoring.services.ranking import rank_submissions, short_name
from rankcore.apps.scoring.services.stats import compute_stats
from rankcore.apps.submissions.forms import SubmissionForm
from rankcore.apps.submissions.services import moderation
from rankcore.apps.submissions.services.exceptions import SubmissionRefused
from rankcore.apps.submissions.services.store import DjangoSubmissionStore, leaderboard_counters

from .forms import LeaderboardEditForm, LeaderboardForm
from .models import Leaderboard


# -------------------------------
# Utilidades
# -------------------------------
def owner_required(view_func):
    """
    Resuelve el leaderboard por slug y exige dueño o staff.
    - Si NO autenticado → login con ?next=
    - Si autenticado sin permisos → 403
    La vista recibe el leaderboard en lugar del slug.
    """
    @wraps(view_func)
    def _wrapped(request: HttpRequest, slug: str, *args, **kwargs):
        if not request.user.is_authenticated:
            return redirect_to_login(request.get_full_path())
        leaderboard = get_object_or_404(Leaderboard, slug=slug)
        if not leaderboard.can_manage(request.user):
            return HttpResponseForbidden("Solo el dueño del leaderboard.")
        return view_func(request, leaderboard, *args, **kwargs)
    return _wrapped


def _public_rows(leaderboard: Leaderboard, approved: List[Any]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for row in rank_submissions(approved, leaderboard.sort_direction):
        s = row.submission
        rows.append(
            {
                "rank": row.rank,
                "name": short_name(s.full_name),
                "value_display": s.value_display,
                "submitted_at": s.submitted_at,
                "proof_url": s.proof_url or None,
                "video_url": s.video.url if s.video else None,
            }
        )
    return rows


# -------------------------------
# Públicas
# -------------------------------
def home(request: HttpRequest) -> HttpResponse:
    leaderboards = Leaderboard.objects.all().order_by("-created_at")[:200]
    return render(request, "leaderboards/index.html", {"leaderboards": leaderboards})


def leaderboard_detail(request: HttpRequest, slug: str) -> HttpResponse:
    """
    Página pública del leaderboard:
      - Tabla con ranking automático (empates comparten puesto) y nombres abreviados
      - Barra de estadísticas
      - Formulario de envío
    """
    leaderboard = get_object_or_404(Leaderboard, slug=slug)
    store = DjangoSubmissionStore()

    if request.method == "POST":
        form = SubmissionForm(request.POST, request.FILES, leaderboard=leaderboard)
        if form.is_valid():
            data = form.cleaned_data
            try:
                moderation.submit(
                    store,
                    leaderboard,
                    full_name=data["full_name"],
                    email=data["email"],
                    gender=data["gender"],
                    value=data["value"],
                    proof_url=data.get("proof_url") or "",
                    video=data.get("video"),
                    notes=data.get("notes") or "",
                )
            except SubmissionRefused as e:
                form.add_error(None, str(e))
            except ValidationError as e:
                form.add_error("value", e)
            else:
                if leaderboard.auto_approve:
                    messages.success(request, "¡Listo! Tu resultado ya está en el leaderboard.")
                else:
                    messages.success(request, "Envío recibido. Aparecerá cuando el organizador lo apruebe.")
                return redirect("leaderboard_detail", slug=leaderboard.slug)
        else:
            messages.error(request, "Hay errores en el formulario. Revisa los campos.")
    else:
        form = SubmissionForm(leaderboard=leaderboard)

    approved = store.fetch_approved_submissions(leaderboard.pk)
    ctx = {
        "leaderboard": leaderboard,
        "rows": _public_rows(leaderboard, approved),
        "stats": compute_stats(approved, leaderboard.sort_direction, leaderboard.metric_type),
        "form": form,
        "can_manage": leaderboard.can_manage(request.user),
    }
    return render(request, "leaderboards/detail.html", ctx)


# -------------------------------
# Dueños
# -------------------------------
@login_required
def dashboard(request: HttpRequest) -> HttpResponse:
    boards = Leaderboard.objects.filter(owner=request.user).order_by("-created_at")
    items = [{"leaderboard": lb, "counters": leaderboard_counters(lb.pk)} for lb in boards]
    return render(request, "leaderboards/dashboard.html", {"items": items})


@login_required
def leaderboard_create(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        form = LeaderboardForm(request.POST)
        if form.is_valid():
            lb: Leaderboard = form.save(commit=False)
            lb.owner = request.user
            lb.save()
            messages.success(request, f"Leaderboard '{lb.title}' creado.")
            return redirect("submissions_manage", slug=lb.slug)
    else:
        form = LeaderboardForm()
    return render(request, "leaderboards/form.html", {"form": form, "leaderboard": None})


@owner_required
def leaderboard_edit(request: HttpRequest, leaderboard: Leaderboard) -> HttpResponse:
    if request.method == "POST":
        form = LeaderboardEditForm(request.POST, instance=leaderboard)
        if form.is_valid():
            form.save()
            messages.success(request, "Cambios guardados.")
            return redirect("submissions_manage", slug=leaderboard.slug)
    else:
        form = LeaderboardEditForm(instance=leaderboard)
    return render(request, "leaderboards/form.html", {"form": form, "leaderboard": leaderboard})


# -------- Healthcheck simple --------
def health(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"ok": True})

