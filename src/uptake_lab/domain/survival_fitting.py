"""Fitting von Persistenzmodellen an Kaplan-Meier-Daten.

Weibull, Exponentiell, Log-Normal und Mixture-Cure werden per begrenztem
Nelder-Mead an KM-Punkte (Monat, Survival %) angepasst. Zielpunkte ("Targets")
sind ebenfalls KM-Punkte und laufen durch denselben Fit. Stueckweise lineare
Kurven sind nicht fitbar.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from uptake_lab.domain.fitting import ParamDef, is_degenerate
from uptake_lab.domain.goodness import compute_fit_metrics
from uptake_lab.domain.models import (
    SURVIVAL_MODELS,
    ExponentialParams,
    FitResult,
    KMDataPoint,
    LogNormalParams,
    MixtureCureParams,
    PersistencyState,
    WeibullParams,
)
from uptake_lab.domain.optimizer import Bound, NelderMeadOptions, multi_start_minimize
from uptake_lab.domain.survival import (
    AnySurvivalParams,
    exponential_survival,
    log_normal_survival,
    mixture_cure_survival,
    weibull_survival,
)

logger = logging.getLogger(__name__)

SURVIVAL_FIT_OPTIONS = NelderMeadOptions(max_iterations=600, tolerance=1e-7, initial_step=0.2)

_LAMBDA = ParamDef("lambda", Bound(0.5, 60.0))
_SHAPE = ParamDef("k", Bound(0.2, 5.0))
_CEILING = ParamDef("ceiling", Bound(50.0, 100.0))

SURVIVAL_PARAM_DEFS: dict[str, tuple[ParamDef, ...]] = {
    "weibull": (_LAMBDA, _SHAPE, _CEILING),
    "exponential": (ParamDef("lambda", Bound(0.005, 1.0)), _CEILING),
    "log_normal": (
        ParamDef("median_months", Bound(1.0, 60.0)),
        ParamDef("sigma", Bound(0.1, 3.0)),
        _CEILING,
    ),
    "piecewise": (),
    "mixture_cure": (ParamDef("pi", Bound(0.01, 0.8)), _LAMBDA, _SHAPE),
}

DEFAULT_SURVIVAL_STARTS: dict[str, list[float]] = {
    "weibull": [8.0, 1.0, 100.0],
    "exponential": [0.1, 100.0],
    "log_normal": [12.0, 0.8, 100.0],
    "mixture_cure": [0.2, 8.0, 1.0],
}

FITTABLE_SURVIVAL_MODELS: tuple[str, ...] = tuple(
    m for m in SURVIVAL_MODELS if SURVIVAL_PARAM_DEFS[m]
)

_CURVES: dict[str, Callable[..., NDArray[np.float64]]] = {
    "weibull": weibull_survival,
    "exponential": exponential_survival,
    "log_normal": log_normal_survival,
    "mixture_cure": mixture_cure_survival,
}


def normalize_km_points(points: Iterable[KMDataPoint]) -> list[KMDataPoint]:
    """Doppelte Monate: spaeterer Punkt gewinnt. Ergebnis aufsteigend sortiert."""
    by_month: dict[float, KMDataPoint] = {}
    for point in points:
        by_month[point.month] = point
    return [by_month[m] for m in sorted(by_month)]


def start_vector(model: str, start_params: AnySurvivalParams | None = None) -> list[float]:
    """Startwerte aus vorhandenen Parametern des Modells oder Standardstart."""
    if start_params is None or start_params.model != model:
        return list(DEFAULT_SURVIVAL_STARTS[model])
    dumped = start_params.model_dump(by_alias=True)
    return [float(dumped[d.key]) for d in SURVIVAL_PARAM_DEFS[model]]


def fit_survival_model(
    model: str,
    observed: Sequence[KMDataPoint],
    start_params: AnySurvivalParams | None = None,
    options: NelderMeadOptions | None = None,
    restart_spread: float = 0.08,
) -> FitResult | None:
    """
    Ein Persistenzmodell an KM-Daten fitten.

    Args:
        model: Modellfamilie (piecewise liefert None)
        observed: KM-Punkte (Monat, Survival %)
        start_params: Optionale Startparameter, sonst feste Standardstarts
        options: Optimierer-Optionen (Standard: 600 Iterationen, Tol 1e-7, Schritt 0.2)
        restart_spread: Anteil der Spannweite fuer die Multi-Start-Verschiebung

    Returns:
        FitResult mit ``fitted_params`` unter den Feldnamen des Modells
        (``lambda`` statt ``lam``) oder None.
    """
    if model not in FITTABLE_SURVIVAL_MODELS:
        logger.debug("Persistenzmodell %s wird nicht gefittet", model)
        return None

    data = normalize_km_points(observed)
    if is_degenerate([p.survival for p in data]):
        logger.debug("KM-Fit %s uebersprungen: %d verwertbare Punkte", model, len(data))
        return None

    curve = _CURVES[model]
    defs = SURVIVAL_PARAM_DEFS[model]
    months = np.array([p.month for p in data], dtype=np.float64)
    y = np.array([p.survival for p in data], dtype=np.float64)

    def objective(x: NDArray[np.float64]) -> float:
        err = y - curve(months, *x.tolist())
        return float(np.sum(err * err))

    result = multi_start_minimize(
        objective,
        [d.bound for d in defs],
        start_vector(model, start_params),
        options or SURVIVAL_FIT_OPTIONS,
        restart_spread,
    )

    metrics = compute_fit_metrics(y, curve(months, *result.x), with_mape=False)
    logger.debug(
        "KM-Fit %s: R2=%.4f SSE=%.4f nach %d Iterationen",
        model, metrics.r2, metrics.sse, result.iterations,
    )
    return FitResult(
        model=model,
        fitted_params=dict(zip([d.key for d in defs], result.x)),
        metrics=metrics,
        loss=result.fx,
    )


def fit_survival_models(
    observed: Sequence[KMDataPoint],
    state: PersistencyState | None = None,
    models: Iterable[str] | None = None,
    options: NelderMeadOptions | None = None,
    restart_spread: float = 0.08,
) -> dict[str, FitResult]:
    """Alle (oder die angegebenen) fitbaren Persistenzmodelle fitten."""
    results: dict[str, FitResult] = {}
    for model in models or FITTABLE_SURVIVAL_MODELS:
        start = getattr(state.params, model) if state is not None else None
        result = fit_survival_model(model, observed, start, options, restart_spread)
        if result is not None:
            results[model] = result
    return results


_PARAM_CLASSES = {
    "weibull": WeibullParams,
    "exponential": ExponentialParams,
    "log_normal": LogNormalParams,
    "mixture_cure": MixtureCureParams,
}


def apply_survival_fit(state: PersistencyState, result: FitResult) -> PersistencyState:
    """
    Fit-Ergebnis uebernehmen: nur das gefittete Modell wird ersetzt und aktiv.

    Ein geladenes Preset gilt danach nicht mehr als aktiv.
    """
    param_cls = _PARAM_CLASSES.get(result.model)
    if param_cls is None:
        raise TypeError(f"Persistenzmodell nicht fitbar: {result.model}")
    current = getattr(state.params, result.model).model_dump(by_alias=True)
    fitted = param_cls.model_validate({**current, **result.fitted_params})
    return state.model_copy(
        update={
            "active_model": result.model,
            "params": state.params.model_copy(update={result.model: fitted}),
            "active_preset_id": None,
        }
    )
