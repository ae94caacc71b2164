# rankcore/apps/submissions/services/moderation.py
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from django.utils import timezone

from rankcore.apps.scoring.services.parsing import parse_value
from rankcore.apps.scoring.services.ranking import move_item

from ..models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Submission
from .exceptions import ModerationError, ReorderFailed, SubmissionRefused
from .store import SubmissionStore

logger = logging.getLogger(__name__)


def _parse_for(leaderboard, value: str):
    return parse_value(leaderboard.metric_type, value, leaderboard.smart_time_parsing)


# ------------------------------
# Altas
# ------------------------------
def check_submission_policy(store: SubmissionStore, leaderboard, *, email: str, has_proof: bool) -> None:
    """Reglas del leaderboard para envíos públicos. Lanza SubmissionRefused."""
    if not leaderboard.is_open:
        raise SubmissionRefused("El plazo de envíos de este leaderboard ya cerró.")

    cap = leaderboard.submissions_per_user
    if cap and store.count_for_email(leaderboard.pk, email) >= cap:
        raise SubmissionRefused(f"Alcanzaste el máximo de {cap} envío(s) para este leaderboard.")

    if leaderboard.requires_verification and not has_proof:
        raise SubmissionRefused("Este leaderboard exige un link de prueba o un video.")


def submit(
    store: SubmissionStore,
    leaderboard,
    *,
    full_name: str,
    email: str,
    gender: str,
    value: str,
    proof_url: str = "",
    video=None,
    notes: str = "",
) -> Any:
    """
    Envío público. Devuelve el id creado.
      • status APPROVED si el leaderboard tiene auto_approve, si no PENDING
      • el valor se normaliza con el parser de la métrica del leaderboard
    """
    email = (email or "").strip().lower()
    check_submission_policy(store, leaderboard, email=email, has_proof=bool(proof_url or video))
    parsed = _parse_for(leaderboard, value)

    now = timezone.now()
    approved = leaderboard.auto_approve
    return store.insert_submission(
        leaderboard=leaderboard,
        full_name=full_name.strip(),
        email=email,
        gender=gender,
        value_raw=parsed.value_raw,
        value_display=parsed.value_display,
        proof_url=proof_url or "",
        video=video or "",
        notes=notes or "",
        status=STATUS_APPROVED if approved else STATUS_PENDING,
        submitted_at=now,
        approved_at=now if approved else None,
        submission_metadata={
            "smart_parsing_used": bool(leaderboard.smart_time_parsing),
            "original_input": value,
            "has_video": bool(video),
        },
    )


def add_manual_entry(
    store: SubmissionStore,
    leaderboard,
    *,
    full_name: str,
    email: str,
    gender: str,
    value: str,
    moderator=None,
) -> Any:
    """Entrada cargada por el dueño: entra aprobada y marcada como manual."""
    parsed = _parse_for(leaderboard, value)
    now = timezone.now()
    return store.insert_submission(
        leaderboard=leaderboard,
        full_name=full_name.strip(),
        email=(email or "").strip().lower(),
        gender=gender,
        value_raw=parsed.value_raw,
        value_display=parsed.value_display,
        status=STATUS_APPROVED,
        is_manual_entry=True,
        submitted_at=now,
        approved_at=now,
        approved_by=moderator,
        submission_metadata={
            "smart_parsing_used": bool(leaderboard.smart_time_parsing),
            "original_input": value,
            "has_video": False,
        },
    )


# ------------------------------
# Moderación
# ------------------------------
def approve(submission: Submission, moderator) -> Submission:
    if submission.status != STATUS_PENDING:
        raise ModerationError("Solo se pueden aprobar envíos pendientes.")
    submission.status = STATUS_APPROVED
    submission.approved_at = timezone.now()
    submission.approved_by = moderator
    submission.save(update_fields=["status", "approved_at", "approved_by"])
    return submission


def reject(submission: Submission, moderator, reason: str) -> Submission:
    if submission.status != STATUS_PENDING:
        raise ModerationError("Solo se pueden rechazar envíos pendientes.")
    reason = (reason or "").strip()
    if not reason:
        raise ModerationError("Indica el motivo del rechazo.")
    submission.status = STATUS_REJECTED
    submission.rejection_reason = reason
    submission.approved_by = moderator
    submission.save(update_fields=["status", "rejection_reason", "approved_by"])
    return submission


def update_submission(
    submission: Submission,
    *,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    gender: Optional[str] = None,
    value: Optional[str] = None,
) -> Submission:
    """Edición del dueño. Si cambia el valor se vuelve a parsear con la gramática del leaderboard."""
    fields: List[str] = []
    if full_name:
        submission.full_name = full_name.strip()
        fields.append("full_name")
    if email:
        submission.email = email.strip().lower()
        fields.append("email")
    if gender:
        submission.gender = gender
        fields.append("gender")
    if value:
        parsed = _parse_for(submission.leaderboard, value)
        submission.value_raw = parsed.value_raw
        submission.value_display = parsed.value_display
        meta = dict(submission.submission_metadata or {})
        meta["original_input"] = value
        submission.submission_metadata = meta
        fields += ["value_raw", "value_display", "submission_metadata"]
    if fields:
        submission.save(update_fields=fields)
    return submission


# ------------------------------
# Orden manual
# ------------------------------
def reorder(store: SubmissionStore, leaderboard_id, ordered_ids: Iterable[Any]) -> int:
    """
    Asigna manual_rank 1..N a los envíos visibles en el orden recibido, uno por uno.
    Si algún guardado falla se lanza ReorderFailed y la transacción se revierte:
    quien llama debe recargar el estado real.
    """
    ids = [str(i) for i in ordered_ids]
    if len(set(ids)) != len(ids):
        raise ModerationError("El orden recibido tiene envíos repetidos.")

    with store.reorder_guard(leaderboard_id):
        approved = {str(s.id) for s in store.fetch_approved_submissions(leaderboard_id)}
        foreign = [i for i in ids if i not in approved]
        if foreign:
            raise ModerationError("El orden incluye envíos que no están aprobados en este leaderboard.")

        for rank, sid in enumerate(ids, start=1):
            if not store.persist_manual_rank(sid, rank):
                logger.error("No se pudo guardar manual_rank=%s para %s (leaderboard %s)", rank, sid, leaderboard_id)
                raise ReorderFailed("No se pudo guardar el nuevo orden. Recarga la página.", failed_ids=[sid])
    return len(ids)


def move_submission(
    store: SubmissionStore,
    leaderboard_id,
    visible_ids: Iterable[Any],
    submission_id,
    position: int,
) -> List[str]:
    """Mueve un envío a `position` (1..N) dentro de la lista visible y guarda el orden completo."""
    ids = [str(i) for i in visible_ids]
    sid = str(submission_id)
    if sid not in ids:
        raise ModerationError("El envío no está en la lista visible.")
    new_order = move_item(ids, ids.index(sid), int(position) - 1)
    reorder(store, leaderboard_id, new_order)
    return new_order


def clear_manual_ranks(store: SubmissionStore, leaderboard_id) -> int:
    """Vuelve al orden automático quitando todos los manual_rank."""
    cleared = 0
    with store.reorder_guard(leaderboard_id):
        for s in store.fetch_approved_submissions(leaderboard_id):
            if s.manual_rank is None:
                continue
            if not store.persist_manual_rank(s.id, None):
                logger.error("No se pudo limpiar manual_rank de %s (leaderboard %s)", s.id, leaderboard_id)
                raise ReorderFailed("No se pudo restablecer el orden. Recarga la página.", failed_ids=[s.id])
            cleared += 1
    return cleared
