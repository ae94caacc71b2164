# rankcore/apps/scoring/services/stats.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from .parsing import format_raw_value, round_half_up
from .ranking import rank_submissions


@dataclass(frozen=True)
class LeaderboardStats:
    total: int = 0
    approved: int = 0
    best_display: Optional[str] = None
    avg_display: Optional[str] = None
    last_updated: Optional[datetime] = None

    @property
    def approval_rate(self) -> int:
        return round_half_up(Decimal(self.approved * 100) / max(self.total, 1))


def compute_stats(submissions: Iterable[Any], sort_direction: str, metric_type: str) -> LeaderboardStats:
    """Barra de estadísticas de la vista pública (sobre envíos aprobados)."""
    subs = list(submissions)
    if not subs:
        return LeaderboardStats()

    best = rank_submissions(subs, sort_direction)[0]
    avg_raw = round_half_up(Decimal(sum(int(s.value_raw) for s in subs)) / len(subs))
    last = max(getattr(s, "approved_at", None) or s.submitted_at for s in subs)

    return LeaderboardStats(
        total=len(subs),
        approved=len(subs),
        best_display=best.value_display,
        avg_display=format_raw_value(metric_type, avg_raw) if avg_raw else None,
        last_updated=last,
    )
