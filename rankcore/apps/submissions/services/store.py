# rankcore/apps/submissions/services/store.py
from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Any, ContextManager, Dict, List, Optional

from django.db import transaction
from django.db.models import Count, Q

from ..models import STATUS_APPROVED, STATUS_PENDING, Submission
from .exceptions import ReorderInProgress


class SubmissionStore:
    """
    Colaborador de persistencia que usan los servicios de envíos.
    Se pasa explícitamente a cada servicio (no hay cliente global).
    """

    def fetch_approved_submissions(self, leaderboard_id) -> List[Any]:
        raise NotImplementedError

    def persist_manual_rank(self, submission_id, rank: Optional[int]) -> bool:
        raise NotImplementedError

    def insert_submission(self, **fields) -> Any:
        raise NotImplementedError

    def count_for_email(self, leaderboard_id, email: str) -> int:
        raise NotImplementedError

    def reorder_guard(self, leaderboard_id) -> ContextManager[None]:
        raise NotImplementedError


class DjangoSubmissionStore(SubmissionStore):
    """Implementación sobre el ORM."""

    # Reordenamientos en curso en este proceso, por leaderboard.
    # La entrada desaparece cuando nadie sostiene el lock.
    _reorder_locks: "weakref.WeakValueDictionary[Any, threading.Lock]" = weakref.WeakValueDictionary()
    _registry_lock = threading.Lock()

    def fetch_approved_submissions(self, leaderboard_id) -> List[Submission]:
        return list(
            Submission.objects.filter(leaderboard_id=leaderboard_id, status=STATUS_APPROVED)
        )

    def persist_manual_rank(self, submission_id, rank: Optional[int]) -> bool:
        updated = Submission.objects.filter(pk=submission_id).update(manual_rank=rank)
        return updated == 1

    def insert_submission(self, **fields) -> Any:
        return Submission.objects.create(**fields).pk

    def count_for_email(self, leaderboard_id, email: str) -> int:
        return Submission.objects.filter(leaderboard_id=leaderboard_id, email__iexact=email).count()

    @classmethod
    def _lock_for(cls, leaderboard_id) -> threading.Lock:
        with cls._registry_lock:
            return cls._reorder_locks.setdefault(leaderboard_id, threading.Lock())

    @contextmanager
    def reorder_guard(self, leaderboard_id):
        from rankcore.apps.leaderboards.models import Leaderboard  # import local para evitar ciclos

        lock = self._lock_for(leaderboard_id)
        if not lock.acquire(blocking=False):
            raise ReorderInProgress("Ya se está guardando otro orden para este leaderboard.")
        try:
            with transaction.atomic():
                # Bloquea la fila del leaderboard: otros procesos esperan a que termine este orden
                list(Leaderboard.objects.select_for_update().filter(pk=leaderboard_id).values_list("pk", flat=True))
                yield
        finally:
            lock.release()


def leaderboard_counters(leaderboard_id) -> Dict[str, int]:
    """Totales para el panel del dueño (total, aprobados, pendientes, participantes únicos)."""
    agg = Submission.objects.filter(leaderboard_id=leaderboard_id).aggregate(
        total=Count("id"),
        approved=Count("id", filter=Q(status=STATUS_APPROVED)),
        pending=Count("id", filter=Q(status=STATUS_PENDING)),
        unique_participants=Count("email", distinct=True),
    )
    return {k: int(v or 0) for k, v in agg.items()}
