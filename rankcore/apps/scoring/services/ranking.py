# rankcore/apps/scoring/services/ranking.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence, Tuple

SORT_ASC = "asc"
SORT_DESC = "desc"

SORT_CHOICES = (
    (SORT_ASC, "Menor es mejor"),
    (SORT_DESC, "Mayor es mejor"),
)

MODE_AUTO = "auto"
MODE_MANUAL = "manual"


@dataclass(frozen=True)
class RankedSubmission:
    """Fila derivada: el envío original (sin tocar) + su posición."""
    submission: Any
    rank: int

    def __getattr__(self, name: str) -> Any:
        # Acceso directo a los campos del envío desde los templates (row.full_name, row.value_display…)
        if name == "submission" or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.submission, name)


# ---------- Claves de orden ----------

def _nulls_last(value: Any) -> Tuple:
    return (1,) if value is None else (0, value)


def _auto_key(sort_direction: str):
    """
    Clave del modo automático:
      1) value_raw (asc o desc según el leaderboard)
      2) approved_at más antiguo primero (sin aprobar al final)
      3) submitted_at más antiguo primero
    """
    sign = 1 if sort_direction == SORT_ASC else -1

    def key(s: Any) -> Tuple:
        return (
            sign * int(s.value_raw),
            _nulls_last(getattr(s, "approved_at", None)),
            _nulls_last(getattr(s, "submitted_at", None)),
        )
    return key


def _manual_key(sort_direction: str):
    auto = _auto_key(sort_direction)

    def key(s: Any) -> Tuple:
        return (_nulls_last(getattr(s, "manual_rank", None)), auto(s))
    return key


def _check_direction(sort_direction: str) -> None:
    if sort_direction not in (SORT_ASC, SORT_DESC):
        raise ValueError(f"sort_direction inválido: {sort_direction!r}")


# ---------- Ranking ----------

def competition_ranks(values: Sequence[int]) -> List[int]:
    """Ranking de competición sobre valores ya ordenados: [10, 10, 12] -> [1, 1, 3]."""
    ranks: List[int] = []
    last = None
    current = 0
    for idx, v in enumerate(values):
        if last is None or v != last:
            current = idx + 1
            last = v
        ranks.append(current)
    return ranks


def rank_submissions(
    submissions: Iterable[Any],
    sort_direction: str,
    mode: str = MODE_AUTO,
) -> List[RankedSubmission]:
    """
    Ordena y asigna rank a envíos ya aprobados. No modifica la entrada.
      • auto   -> vista pública/estadísticas; empates de value_raw comparten rank
      • manual -> vista del dueño; manual_rank asc (nulos al final), luego criterio auto.
                  El rank es la posición (el orden manual no tiene empates).
    """
    _check_direction(sort_direction)
    items = list(submissions)

    if mode == MODE_AUTO:
        ordered = sorted(items, key=_auto_key(sort_direction))
        ranks = competition_ranks([int(s.value_raw) for s in ordered])
        return [RankedSubmission(s, r) for s, r in zip(ordered, ranks)]

    if mode == MODE_MANUAL:
        ordered = sorted(items, key=_manual_key(sort_direction))
        return [RankedSubmission(s, idx) for idx, s in enumerate(ordered, start=1)]

    raise ValueError(f"Modo de ranking inválido: {mode!r}")


def move_item(items: Sequence[Any], old_index: int, new_index: int) -> List[Any]:
    """Copia de la lista con el elemento movido de old_index a new_index."""
    out = list(items)
    if not out:
        return out
    new_index = max(0, min(new_index, len(out) - 1))
    out.insert(new_index, out.pop(old_index))
    return out


def short_name(full_name: str) -> str:
    """'Jane Marie Athlete' -> 'Jane A.'; un solo nombre queda igual."""
    parts = (full_name or "").strip().split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]} {parts[-1][0]}."
