# rankcore/apps/submissions/views.py
from __future__ import annotations

from typing import Any, Dict, List

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils.http import urlencode
from django.views.decorators.http import require_POST

from rankcore.apps.leaderboards.models import Leaderboard
from rankcore.apps.leaderboards.views import owner_required
from rankcore.apps.scoring.services.ranking import MODE_MANUAL, rank_submissions

from .forms import ManualEntryForm, MoveForm, RejectForm, SubmissionEditForm
from .models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Submission
from .services import moderation
from .services.exceptions import ModerationError, ReorderFailed
from .services.store import DjangoSubmissionStore, leaderboard_counters


# -------------------------------
# Utilidades
# -------------------------------
def _manage_url(leaderboard: Leaderboard, q: str = "") -> str:
    url = reverse("submissions_manage", args=[leaderboard.slug])
    return f"{url}?{urlencode({'q': q})}" if q else url


def _visible_approved(leaderboard: Leaderboard, q: str) -> List[Any]:
    """Aprobados en orden manual, filtrados por nombre/email (lo que ve el dueño)."""
    qs = Submission.objects.filter(leaderboard=leaderboard, status=STATUS_APPROVED)
    if q:
        qs = qs.filter(Q(full_name__icontains=q) | Q(email__icontains=q))
    return rank_submissions(qs, leaderboard.sort_direction, mode=MODE_MANUAL)


def _wants_json(request: HttpRequest) -> bool:
    return request.headers.get("x-requested-with") == "XMLHttpRequest"


def _get_submission(leaderboard: Leaderboard, pk) -> Submission:
    return get_object_or_404(Submission.objects.select_related("leaderboard"), pk=pk, leaderboard=leaderboard)


# -------------------------------
# Panel de gestión
# -------------------------------
@owner_required
def manage(request: HttpRequest, leaderboard: Leaderboard) -> HttpResponse:
    """
    Gestión del dueño:
      - Aprobados en orden manual (manual_rank primero, luego criterio automático)
      - Cola de pendientes
      - Alta manual, edición, borrado, reordenamiento
    """
    q = (request.GET.get("q") or "").strip()
    pending = Submission.objects.filter(leaderboard=leaderboard, status=STATUS_PENDING).order_by("submitted_at")
    rejected = Submission.objects.filter(leaderboard=leaderboard, status=STATUS_REJECTED).order_by("-submitted_at")[:50]

    ctx: Dict[str, Any] = {
        "leaderboard": leaderboard,
        "q": q,
        "rows": _visible_approved(leaderboard, q),
        "pending": list(pending),
        "rejected": list(rejected),
        "counters": leaderboard_counters(leaderboard.pk),
        "entry_form": ManualEntryForm(leaderboard=leaderboard),
        "reject_form": RejectForm(),
    }
    return render(request, "submissions/manage.html", ctx)


# -------------------------------
# Moderación
# -------------------------------
@require_POST
@owner_required
def approve_submission(request: HttpRequest, leaderboard: Leaderboard, pk) -> HttpResponse:
    submission = _get_submission(leaderboard, pk)
    try:
        moderation.approve(submission, request.user)
    except ModerationError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f"Envío de {submission.full_name} aprobado.")
    return redirect(_manage_url(leaderboard))


@require_POST
@owner_required
def reject_submission(request: HttpRequest, leaderboard: Leaderboard, pk) -> HttpResponse:
    submission = _get_submission(leaderboard, pk)
    form = RejectForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Indica el motivo del rechazo.")
        return redirect(_manage_url(leaderboard))
    try:
        moderation.reject(submission, request.user, form.cleaned_data["reason"])
    except ModerationError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f"Envío de {submission.full_name} rechazado.")
    return redirect(_manage_url(leaderboard))


@require_POST
@owner_required
def delete_submission(request: HttpRequest, leaderboard: Leaderboard, pk) -> HttpResponse:
    submission = _get_submission(leaderboard, pk)
    name = submission.full_name
    submission.delete()
    messages.success(request, f"Envío de {name} eliminado.")
    return redirect(_manage_url(leaderboard))


@require_POST
@owner_required
def edit_submission(request: HttpRequest, leaderboard: Leaderboard, pk) -> HttpResponse:
    submission = _get_submission(leaderboard, pk)
    form = SubmissionEditForm(request.POST, leaderboard=leaderboard)
    if form.is_valid():
        data = form.cleaned_data
        moderation.update_submission(
            submission,
            full_name=data.get("full_name"),
            email=data.get("email"),
            gender=data.get("gender"),
            value=data.get("value"),
        )
        messages.success(request, "Entrada actualizada.")
    else:
        for errs in form.errors.values():
            for err in errs:
                messages.error(request, err)
    return redirect(_manage_url(leaderboard))


@require_POST
@owner_required
def add_entry(request: HttpRequest, leaderboard: Leaderboard) -> HttpResponse:
    form = ManualEntryForm(request.POST, leaderboard=leaderboard)
    if form.is_valid():
        data = form.cleaned_data
        try:
            moderation.add_manual_entry(
                DjangoSubmissionStore(),
                leaderboard,
                full_name=data["full_name"],
                email=data["email"],
                gender=data["gender"],
                value=data["value"],
                moderator=request.user,
            )
        except ValidationError as e:
            messages.error(request, " ".join(e.messages))
        else:
            messages.success(request, "Entrada manual agregada.")
    else:
        for errs in form.errors.values():
            for err in errs:
                messages.error(request, err)
    return redirect(_manage_url(leaderboard))


# -------------------------------
# Orden manual
# -------------------------------
@require_POST
@owner_required
def reorder_submissions(request: HttpRequest, leaderboard: Leaderboard) -> HttpResponse:
    """
    Dos formas de enviar el orden:
      • order=<uuid>&order=<uuid>…  (lista visible completa, p.ej. drag & drop)
      • submission=<uuid>&position=<n>[&q=…]  (mover uno dentro de la lista visible)
    Si falla algún guardado se informa y se recarga el estado real.
    """
    store = DjangoSubmissionStore()
    order = request.POST.getlist("order")
    q = (request.POST.get("q") or "").strip()

    try:
        if order:
            moderation.reorder(store, leaderboard.pk, order)
        else:
            form = MoveForm(request.POST)
            if not form.is_valid():
                raise ModerationError("Posición inválida.")
            visible = [row.submission.pk for row in _visible_approved(leaderboard, q)]
            moderation.move_submission(
                store,
                leaderboard.pk,
                visible,
                form.cleaned_data["submission"],
                form.cleaned_data["position"],
            )
    except ReorderFailed as e:
        if _wants_json(request):
            return JsonResponse({"ok": False, "error": str(e), "reload": True}, status=409)
        messages.error(request, str(e))
    except ModerationError as e:
        if _wants_json(request):
            return JsonResponse({"ok": False, "error": str(e)}, status=400)
        messages.error(request, str(e))
    else:
        if _wants_json(request):
            return JsonResponse({"ok": True})
        messages.success(request, "Orden guardado.")
    return redirect(_manage_url(leaderboard, q))


@require_POST
@owner_required
def reset_order(request: HttpRequest, leaderboard: Leaderboard) -> HttpResponse:
    try:
        n = moderation.clear_manual_ranks(DjangoSubmissionStore(), leaderboard.pk)
    except ModerationError as e:
        messages.error(request, str(e))
    else:
        messages.success(request, f"Orden automático restablecido ({n} cambios).")
    return redirect(_manage_url(leaderboard))
