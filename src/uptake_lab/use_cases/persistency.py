"""Persistenz: Survival-Reihe, Kennzahlen, KM-Fit und Kohorten-Wasserfall."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from uptake_lab.config import Settings
from uptake_lab.domain.cohort import simulate_cohort
from uptake_lab.domain.models import (
    CohortPanel,
    FitPanel,
    KMDataPoint,
    PersistencyPanel,
    PersistencyState,
)
from uptake_lab.domain.persistency_metrics import compute_metrics
from uptake_lab.domain.presets import benchmark_series, get_preset
from uptake_lab.domain.scenarios import compute_survival_scenario_series
from uptake_lab.domain.series import compute_survival_series
from uptake_lab.domain.state import hydrate_persistency_state
from uptake_lab.domain.survival import MODEL_LABELS
from uptake_lab.domain.survival_fitting import (
    FITTABLE_SURVIVAL_MODELS,
    apply_survival_fit,
    fit_survival_models,
)
from uptake_lab.use_cases._helpers import build_fit_panel, warn_scenario_overflow

logger = logging.getLogger(__name__)


def resolve_persistency_state(
    state: PersistencyState | Mapping[str, Any] | None,
    settings: Settings,
    warnings: list[str],
) -> PersistencyState:
    """Vollstaendigen Zustand aus Objekt oder gespeicherten Teildaten herstellen."""
    if isinstance(state, PersistencyState):
        return state
    warn_scenario_overflow(state, settings.max_scenarios, warnings)
    return hydrate_persistency_state(state, settings.max_scenarios, warnings)


def compute_persistency(
    state: PersistencyState | Mapping[str, Any] | None = None,
    *,
    benchmarks: Sequence[str] = (),
    settings: Settings | None = None,
) -> tuple[PersistencyPanel, list[str], list[str]]:
    """
    Persistenzreihe des aktiven Modells mit Kennzahlen, Szenarien und Benchmarks.

    Args:
        state: Zustand oder gespeicherte Teildaten (Default: Standardzustand)
        benchmarks: Preset-IDs, die als Vergleichskurven berechnet werden
        settings: Optional: Settings-Instanz (Default: neu erzeugt)

    Returns:
        (Panel, Methoden, Warnungen)
    """
    if settings is None:
        settings = Settings()
    methods: list[str] = []
    warnings: list[str] = []

    resolved = resolve_persistency_state(state, settings, warnings)
    model = resolved.active_model
    params = getattr(resolved.params, model)

    series = compute_survival_series(params, resolved.horizon)
    metrics = compute_metrics(series, resolved.monthly_dose)
    methods.append(f"{MODEL_LABELS[model]} ueber {resolved.horizon} Monate")
    if model in ("log_normal", "piecewise"):
        methods.append("Hazard per zentraler Differenz (dt = 0.01)")
    else:
        methods.append("Hazard analytisch")
    methods.append("Mean DoT: Trapezregel (AUC / 100)")

    if metrics.median_dot is None:
        warnings.append(f"Median DoT wird im Horizont ({resolved.horizon} Monate) nicht erreicht")

    unknown = [b for b in benchmarks if get_preset(b) is None]
    if unknown:
        warnings.append(f"Unbekannte Benchmarks ignoriert: {', '.join(unknown)}")

    panel = PersistencyPanel(
        model=model,
        series=series,
        metrics=metrics,
        scenarios=compute_survival_scenario_series(resolved.scenarios, resolved.horizon),
        benchmarks=benchmark_series(list(benchmarks), resolved.horizon),
    )
    return panel, methods, warnings


def fit_persistency(
    state: PersistencyState | Mapping[str, Any] | None,
    observed: Sequence[KMDataPoint],
    *,
    models: Sequence[str] | None = None,
    apply_best: bool = False,
    settings: Settings | None = None,
) -> tuple[FitPanel, PersistencyState | None, list[str], list[str]]:
    """
    Persistenzmodelle an Kaplan-Meier-Punkte (oder Zielpunkte) fitten.

    Startwerte kommen aus den aktuellen Parametern des Zustands.

    Returns:
        (FitPanel, neuer Zustand oder None, Methoden, Warnungen)
    """
    if settings is None:
        settings = Settings()
    methods: list[str] = []
    warnings: list[str] = []

    resolved = resolve_persistency_state(state, settings, warnings)
    selected = list(models) if models else list(FITTABLE_SURVIVAL_MODELS)
    skipped = [m for m in selected if m not in FITTABLE_SURVIVAL_MODELS]
    if skipped:
        warnings.append(f"Nicht fitbar: {', '.join(skipped)}")

    opts = settings.survival_fit_options
    results = fit_survival_models(
        observed,
        resolved,
        [m for m in selected if m in FITTABLE_SURVIVAL_MODELS],
        opts,
        settings.fit_restart_spread,
    )
    methods.append(
        f"Begrenzter Nelder-Mead (Logit-Raum, {opts.max_iterations} Iterationen, "
        f"3 deterministische Starts)"
    )
    methods.append("Ranking: SSE aufsteigend, R² absteigend")

    panel = build_fit_panel(results, "sse", len(observed), warnings)

    applied: PersistencyState | None = None
    if apply_best and panel.best_model is not None:
        applied = apply_survival_fit(resolved, results[panel.best_model])
        logger.info("KM-Fit uebernommen: %s", panel.best_model)

    return panel, applied, methods, warnings


def simulate_persistency_cohort(
    state: PersistencyState | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
) -> tuple[CohortPanel, list[str], list[str]]:
    """
    Kohorten-Wasserfall mit den Neustarts und der Laufzeit aus dem Zustand.

    Die Laufzeit wird auf ``settings.max_cohort_months`` begrenzt.
    """
    if settings is None:
        settings = Settings()
    methods: list[str] = []
    warnings: list[str] = []

    resolved = resolve_persistency_state(state, settings, warnings)
    months = resolved.cohort_months
    if months > settings.max_cohort_months:
        warnings.append(
            f"Kohorten-Laufzeit auf {settings.max_cohort_months} Monate begrenzt "
            f"(angefragt: {months})"
        )
        months = settings.max_cohort_months

    params = getattr(resolved.params, resolved.active_model)
    cohort = simulate_cohort(params, resolved.cohort_new_starts, months)
    methods.append(
        f"{resolved.cohort_new_starts:g} Neustarts/Monat ueber {months} Monate, "
        f"{MODEL_LABELS[resolved.active_model]}"
    )

    panel = CohortPanel(
        new_starts=resolved.cohort_new_starts,
        months=cohort,
        peak_on_drug=max((m.total_on_drug for m in cohort), default=0.0),
    )
    return panel, methods, warnings
