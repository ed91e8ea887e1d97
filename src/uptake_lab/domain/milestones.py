"""Meilensteine einer Adoptionsreihe.

Schwellwert-Perioden (10/50/90% der Obergrenze), "Time to Peak" (99%) und
die Periode mit dem groessten Zuwachs.
"""

from __future__ import annotations

from collections.abc import Sequence

from uptake_lab.domain.models import Milestones

PEAK_THRESHOLD_PCT = 99.0


def inferred_milestone_period(
    cumulative: Sequence[float], ceiling_pct: float, threshold_pct: float
) -> int | None:
    """
    Erste Periode (1-basiert), in der ``cumulative >= ceiling * threshold / 100``.

    Returns:
        Periode oder None, wenn der Schwellwert im Horizont nie erreicht wird.
    """
    target = ceiling_pct * threshold_pct / 100.0
    for i, value in enumerate(cumulative):
        if value >= target:
            return i + 1
    return None


def derive_milestones(
    cumulative: Sequence[float],
    incremental: Sequence[float],
    ceiling_pct: float,
) -> Milestones:
    """Meilensteine aus kumulativer und inkrementeller Reihe ableiten."""
    peak_growth_pct = 0.0
    peak_growth_at = 1
    # strikt groesser: bei Gleichstand gewinnt die fruehere Periode
    for i, value in enumerate(incremental):
        if value > peak_growth_pct:
            peak_growth_pct = float(value)
            peak_growth_at = i + 1

    return Milestones(
        reach10=inferred_milestone_period(cumulative, ceiling_pct, 10),
        reach50=inferred_milestone_period(cumulative, ceiling_pct, 50),
        reach90=inferred_milestone_period(cumulative, ceiling_pct, 90),
        peak_growth_pct=peak_growth_pct,
        peak_growth_at=peak_growth_at,
        peak_at=inferred_milestone_period(cumulative, ceiling_pct, PEAK_THRESHOLD_PCT),
        ceiling_pct=ceiling_pct,
    )
