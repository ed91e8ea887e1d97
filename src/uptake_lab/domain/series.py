"""Reihengenerator fuer Adoptions- und Persistenzkurven.

Erzeugt aus Modellparametern und Kontext die vollstaendige Zeitreihe. Die
Reihen werden bei jedem Aufruf komplett neu berechnet (zustandslos).
"""

from __future__ import annotations

import numpy as np

from uptake_lab.domain.curves import AnyAdoptionParams, adoption_curve, period_label
from uptake_lab.domain.models import AdoptionSeries, CoreParams, CurvePoint, SurvivalPoint
from uptake_lab.domain.survival import AnySurvivalParams, hazard_at, survival_curve

_MAX_HAZARD = float(np.finfo(np.float64).max)


def compute_series(model_params: AnyAdoptionParams, core: CoreParams) -> AdoptionSeries:
    """
    Adoptionsreihe fuer die Perioden 1..horizon.

    Args:
        model_params: Parameter der aktiven Kurvenfamilie
        core: Obergrenze, Horizont, Lag, Zeiteinheit und optional TAM

    Returns:
        AdoptionSeries mit kumulativen und inkrementellen Werten (%),
        Volumen nur wenn ``core.tam`` gesetzt ist.
    """
    ceiling = min(100.0, max(0.0, core.ceiling_pct))
    cumulative = adoption_curve(model_params, core.horizon, ceiling, core.launch_lag)
    previous = np.concatenate(([0.0], cumulative[:-1]))
    incremental = np.clip(cumulative - previous, 0.0, ceiling)

    points: list[CurvePoint] = []
    for i, (cum, inc) in enumerate(zip(cumulative.tolist(), incremental.tolist())):
        period = i + 1
        points.append(
            CurvePoint(
                period=period,
                label=period_label(period, core.time_unit),
                cumulative_pct=cum,
                incremental_pct=inc,
                cumulative_volume=None if core.tam is None else cum / 100.0 * core.tam,
                incremental_volume=None if core.tam is None else inc / 100.0 * core.tam,
            )
        )

    return AdoptionSeries(
        points=points,
        cumulative_pct=cumulative.tolist(),
        incremental_pct=incremental.tolist(),
    )


def compute_survival_series(params: AnySurvivalParams, horizon: int) -> list[SurvivalPoint]:
    """
    Persistenzreihe fuer die Monate 0..horizon (inklusive).

    Der Hazard in Monat 0 wird bei t = 0.5 ausgewertet, da einige Modelle
    bei t = 0 einen unendlichen Grenzwert haben. Ein unendlicher Hazard
    (Ueberlauf bei grossem k) wird auf den groessten endlichen Wert begrenzt,
    damit die Reihe JSON-serialisierbar bleibt.
    """
    months = np.arange(0, max(0, int(horizon)) + 1, dtype=np.float64)
    survival = survival_curve(params, months)
    hazards = np.nan_to_num(
        np.array([hazard_at(params, 0.5 if m == 0 else m) for m in months.tolist()]),
        nan=0.0,
        posinf=_MAX_HAZARD,
    )
    return [
        SurvivalPoint(
            month=m,
            survival=float(survival[m]),
            hazard=float(hazards[m]),
        )
        for m in range(len(months))
    ]
