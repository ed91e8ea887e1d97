"""Fitting-Engine fuer Adoptionskurven.

Passt jede fitbare Kurvenfamilie (Logistisch, Gompertz, Richards, Bass) per
begrenztem Nelder-Mead an beobachtete kumulative Adoption an. Zielfunktion
ist die Summe der quadrierten Fehler (SSE) zwischen Modellreihe und
Beobachtung. Neben den Formparametern werden Obergrenze und Launch-Lag
mitgefittet.

t0 wird waehrend der Optimierung als Anteil des Fitting-Horizonts gefuehrt
(Grenzen 0.05..0.95) und im Ergebnis in Perioden zurueckgegeben.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from uptake_lab.domain.curves import AnyAdoptionParams, adoption_curve
from uptake_lab.domain.goodness import compute_fit_metrics
from uptake_lab.domain.models import (
    ADOPTION_MODELS,
    AdoptionState,
    BassParams,
    FitResult,
    GompertzParams,
    LogisticParams,
    ObservedPoint,
    RichardsParams,
)
from uptake_lab.domain.optimizer import Bound, NelderMeadOptions, multi_start_minimize

logger = logging.getLogger(__name__)

ADOPTION_FIT_OPTIONS = NelderMeadOptions(max_iterations=350, tolerance=1e-8, initial_step=0.22)

MIN_FIT_HORIZON = 12


@dataclass(frozen=True)
class ParamDef:
    """Ein freier Parameter mit seinen Grenzen."""

    key: str
    bound: Bound


_SHAPE_K = ParamDef("k", Bound(0.05, 1.0))
_SHAPE_T0 = ParamDef("t0", Bound(0.05, 0.95))
_CEILING = ParamDef("ceiling_pct", Bound(1.0, 100.0))
_LAG = ParamDef("launch_lag", Bound(0.0, 24.0))

ADOPTION_PARAM_DEFS: dict[str, tuple[ParamDef, ...]] = {
    "logistic": (_SHAPE_K, _SHAPE_T0, _CEILING, _LAG),
    "gompertz": (_SHAPE_K, _SHAPE_T0, _CEILING, _LAG),
    "richards": (_SHAPE_K, _SHAPE_T0, ParamDef("nu", Bound(0.1, 5.0)), _CEILING, _LAG),
    "bass": (
        ParamDef("p", Bound(0.001, 0.1)),
        ParamDef("q", Bound(0.01, 0.8)),
        _CEILING,
        _LAG,
    ),
    "linear": (),
}

FITTABLE_ADOPTION_MODELS: tuple[str, ...] = tuple(
    m for m in ADOPTION_MODELS if ADOPTION_PARAM_DEFS[m]
)


def normalize_observations(points: Iterable[ObservedPoint]) -> list[ObservedPoint]:
    """Doppelte Perioden: spaetere Beobachtung gewinnt. Ergebnis aufsteigend sortiert."""
    by_period: dict[int, ObservedPoint] = {}
    for point in points:
        by_period[point.period] = point
    return [by_period[p] for p in sorted(by_period)]


def fitting_horizon(horizon: int, periods: Iterable[float]) -> int:
    """Horizont der Fit-Reihe: max(Horizont, letzte Beobachtung, 12)."""
    return int(max([horizon, MIN_FIT_HORIZON, *[math.ceil(p) for p in periods]]))


def is_degenerate(values: Sequence[float]) -> bool:
    """Weniger als zwei Werte oder alle identisch: kein sinnvoller Fit."""
    return len(values) < 2 or max(values) - min(values) == 0


def _candidate_params(model: str, values: dict[str, float], horizon: int) -> AnyAdoptionParams:
    if model == "logistic":
        return LogisticParams(k=values["k"], t0=values["t0"] * horizon)
    if model == "gompertz":
        return GompertzParams(k=values["k"], t0=values["t0"] * horizon)
    if model == "richards":
        return RichardsParams(k=values["k"], t0=values["t0"] * horizon, nu=values["nu"])
    if model == "bass":
        return BassParams(p=values["p"], q=values["q"])
    raise TypeError(f"Modell nicht fitbar: {model}")


def _start_vector(state: AdoptionState, model: str, horizon: int) -> list[float]:
    current = getattr(state.params, model)
    start: list[float] = []
    for definition in ADOPTION_PARAM_DEFS[model]:
        if definition.key == "ceiling_pct":
            start.append(state.core.ceiling_pct)
        elif definition.key == "launch_lag":
            start.append(float(state.core.launch_lag))
        elif definition.key == "t0":
            start.append(current.t0 / horizon)
        else:
            start.append(float(getattr(current, definition.key)))
    return start


def _predict(model: str, values: dict[str, float], horizon: int) -> NDArray[np.float64]:
    params = _candidate_params(model, values, horizon)
    return adoption_curve(params, horizon, values["ceiling_pct"], values["launch_lag"])


def fit_adoption_model(
    state: AdoptionState,
    model: str,
    observed: Sequence[ObservedPoint],
    options: NelderMeadOptions | None = None,
    restart_spread: float = 0.08,
) -> FitResult | None:
    """
    Eine Adoptionskurve an Beobachtungen fitten.

    Args:
        state: Aktueller Zustand; liefert Startwerte und Horizont
        model: Kurvenfamilie
        observed: Beobachtete kumulative Adoption (Periode, %)
        options: Optimierer-Optionen (Standard: 350 Iterationen, Tol 1e-8, Schritt 0.22)
        restart_spread: Anteil der Spannweite fuer die Multi-Start-Verschiebung

    Returns:
        FitResult oder None (Linear, keine/degenerierte Daten).
    """
    if model not in FITTABLE_ADOPTION_MODELS:
        logger.debug("Modell %s wird nicht gefittet", model)
        return None

    data = [p for p in normalize_observations(observed) if p.period >= 1]
    if is_degenerate([p.value_pct for p in data]):
        logger.debug("Fit %s uebersprungen: %d verwertbare Beobachtungen", model, len(data))
        return None

    horizon = fitting_horizon(state.core.horizon, (p.period for p in data))
    defs = ADOPTION_PARAM_DEFS[model]
    keys = [d.key for d in defs]
    idx = np.array([p.period - 1 for p in data], dtype=np.int64)
    y = np.array([p.value_pct for p in data], dtype=np.float64)

    def objective(x: NDArray[np.float64]) -> float:
        values = dict(zip(keys, x.tolist()))
        err = _predict(model, values, horizon)[idx] - y
        return float(np.sum(err * err))

    result = multi_start_minimize(
        objective,
        [d.bound for d in defs],
        _start_vector(state, model, horizon),
        options or ADOPTION_FIT_OPTIONS,
        restart_spread,
    )

    values = dict(zip(keys, result.x))
    prediction = _predict(model, values, horizon)
    metrics = compute_fit_metrics(y, prediction[idx])

    fitted = dict(values)
    if "t0" in fitted:
        fitted["t0"] = fitted["t0"] * horizon

    logger.debug(
        "Fit %s: R2=%.4f RMSE=%.4f nach %d Iterationen",
        model, metrics.r2, metrics.rmse, result.iterations,
    )
    return FitResult(model=model, fitted_params=fitted, metrics=metrics, loss=result.fx)


def fit_adoption_models(
    state: AdoptionState,
    observed: Sequence[ObservedPoint],
    models: Iterable[str] | None = None,
    options: NelderMeadOptions | None = None,
    restart_spread: float = 0.08,
) -> dict[str, FitResult]:
    """Alle (oder die angegebenen) fitbaren Modelle fitten; None-Ergebnisse fehlen."""
    results: dict[str, FitResult] = {}
    for model in models or FITTABLE_ADOPTION_MODELS:
        result = fit_adoption_model(state, model, observed, options, restart_spread)
        if result is not None:
            results[model] = result
    return results


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def apply_adoption_fit(state: AdoptionState, result: FitResult) -> AdoptionState:
    """
    Fit-Ergebnis in einen neuen Zustand uebernehmen.

    Nur die Parameter des gefitteten Modells werden ersetzt; Obergrenze und
    (gerundeter) Lag wandern in den gemeinsamen Kontext, das Modell wird aktiv.
    """
    if result.model not in FITTABLE_ADOPTION_MODELS:
        raise TypeError(f"Modell nicht fitbar: {result.model}")

    current = getattr(state.params, result.model)
    shape_update = {
        key: value
        for key, value in result.fitted_params.items()
        if key in type(current).model_fields and key != "model"
    }
    params = state.params.model_copy(
        update={result.model: current.model_copy(update=shape_update)}
    )
    core = state.core.model_copy(
        update={
            "ceiling_pct": result.fitted_params.get("ceiling_pct", state.core.ceiling_pct),
            "launch_lag": _round_half_up(
                result.fitted_params.get("launch_lag", state.core.launch_lag)
            ),
        }
    )
    return state.model_copy(update={"active_model": result.model, "core": core, "params": params})
