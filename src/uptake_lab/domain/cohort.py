"""Kohorten-Wasserfall: monatliche Neustarts folgen der Persistenzkurve."""

from __future__ import annotations

import numpy as np

from uptake_lab.domain.models import CohortMonth
from uptake_lab.domain.survival import AnySurvivalParams, survival_curve


def simulate_cohort(
    params: AnySurvivalParams, new_starts: float, sim_months: int
) -> list[CohortMonth]:
    """
    Patienten unter Therapie fuer die Monate 0..sim_months-1.

    In Monat m traegt jede Kohorte c <= m mit ``new_starts * S(m - c) / 100``
    bei. ``cohort_contributions[c]`` ist der Beitrag der Kohorte aus Monat c.

    Args:
        params: Persistenzmodell
        new_starts: Neue Patienten pro Monat
        sim_months: Anzahl simulierter Monate

    Returns:
        Liste von CohortMonth, Summe auf 2 Nachkommastellen gerundet.
    """
    n = max(0, int(sim_months))
    if n == 0:
        return []
    # S(0..n-1) einmal auswerten, Beitraege per Index wiederverwenden
    remaining = new_starts * survival_curve(params, np.arange(n, dtype=np.float64)) / 100.0

    months: list[CohortMonth] = []
    for m in range(n):
        contributions = remaining[m::-1].tolist()
        months.append(
            CohortMonth(
                month=m,
                total_on_drug=round(sum(contributions), 2),
                cohort_contributions=contributions,
            )
        )
    return months
