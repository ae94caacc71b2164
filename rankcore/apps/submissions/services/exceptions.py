from __future__ import annotations


class ModerationError(Exception):
    """Operación de moderación no permitida en el estado actual."""


class SubmissionRefused(ModerationError):
    """El leaderboard no acepta este envío (plazo, cupo por email, falta prueba)."""


class ReorderInProgress(ModerationError):
    """Ya hay un reordenamiento en curso para el mismo leaderboard."""


class ReorderFailed(ModerationError):
    """Algún manual_rank no se pudo guardar; hay que recargar el estado real."""

    def __init__(self, message: str, failed_ids=()):
        super().__init__(message)
        self.failed_ids = list(failed_ids)
