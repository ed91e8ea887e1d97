"""Kennzahlen einer Persistenzreihe (Duration of Therapy).

- Median DoT: Monat, in dem die Kurve 50% schneidet (interpoliert)
- Mean DoT: Flaeche unter der Kurve (Trapezregel) / 100
- Survival nach 6/12/24 Monaten
- Jaehrliche Vials pro Patient bei gegebener Monatsdosis
"""

from __future__ import annotations

import numpy as np
from scipy.integrate import trapezoid

from uptake_lab.domain.models import PersistencyMetrics, SurvivalPoint


def _find_crossing(series: list[SurvivalPoint], target_pct: float) -> float | None:
    if len(series) < 2:
        return None
    if series[0].survival < target_pct:
        return float(series[0].month)
    for prev, curr in zip(series, series[1:]):
        if curr.survival <= target_pct:
            ds = prev.survival - curr.survival
            if ds == 0:
                return float(curr.month)
            frac = (prev.survival - target_pct) / ds
            return prev.month + frac * (curr.month - prev.month)
    return None


def median_dot(series: list[SurvivalPoint]) -> float | None:
    """Median DoT: erster Schnitt mit 50%, None wenn nie erreicht."""
    return _find_crossing(series, 50.0)


def mean_dot(series: list[SurvivalPoint]) -> float:
    """Mean DoT: AUC in %-Monaten / 100."""
    if len(series) < 2:
        return 0.0
    months = np.array([p.month for p in series], dtype=np.float64)
    survival = np.array([p.survival for p in series], dtype=np.float64)
    return float(trapezoid(survival, months)) / 100.0


def survival_at_month(series: list[SurvivalPoint], month: float) -> float | None:
    """Survival (%) in einem Monat, linear interpoliert und an den Raendern begrenzt."""
    if not series:
        return None
    months = np.array([p.month for p in series], dtype=np.float64)
    survival = np.array([p.survival for p in series], dtype=np.float64)
    return float(np.interp(month, months, survival))


def compute_metrics(series: list[SurvivalPoint], monthly_dose: float) -> PersistencyMetrics:
    """
    Alle Kennzahlen einer Persistenzreihe berechnen.

    Args:
        series: Persistenzreihe (aufsteigende Monate)
        monthly_dose: Vials pro Patient und Monat; <= 0 deaktiviert annual_vials

    Returns:
        PersistencyMetrics. ``annual_vials`` skaliert Mean DoT auf 12 Monate,
        bei Reihen kuerzer als ein Jahr anteilig.
    """
    mean = mean_dot(series)
    annual_vials: float | None = None
    if monthly_dose > 0:
        window = min(series[-1].month, 12) if series else 12
        if window > 0:
            annual_vials = mean * monthly_dose * 12 / window

    return PersistencyMetrics(
        median_dot=median_dot(series),
        mean_dot=mean,
        survival_at_6=survival_at_month(series, 6),
        survival_at_12=survival_at_month(series, 12),
        survival_at_24=survival_at_month(series, 24),
        annual_vials=annual_vials,
    )
