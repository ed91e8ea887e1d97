"""Adoption: Reihe, Meilensteine, Szenarien und Kurven-Fit."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from uptake_lab.config import Settings
from uptake_lab.domain.curves import MODEL_LABELS, inflection_text
from uptake_lab.domain.fitting import (
    FITTABLE_ADOPTION_MODELS,
    apply_adoption_fit,
    fit_adoption_models,
)
from uptake_lab.domain.milestones import derive_milestones
from uptake_lab.domain.models import (
    AdoptionPanel,
    AdoptionState,
    FitPanel,
    ObservedPoint,
    RichardsParams,
)
from uptake_lab.domain.scenarios import compute_scenario_series
from uptake_lab.domain.series import compute_series
from uptake_lab.domain.state import hydrate_adoption_state
from uptake_lab.use_cases._helpers import build_fit_panel, warn_scenario_overflow

logger = logging.getLogger(__name__)


def resolve_adoption_state(
    state: AdoptionState | Mapping[str, Any] | None,
    settings: Settings,
    warnings: list[str],
) -> AdoptionState:
    """Vollstaendigen Zustand aus Objekt oder gespeicherten Teildaten herstellen."""
    if isinstance(state, AdoptionState):
        return state
    warn_scenario_overflow(state, settings.max_scenarios, warnings)
    return hydrate_adoption_state(state, settings.max_scenarios, warnings)


def compute_adoption(
    state: AdoptionState | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
) -> tuple[AdoptionPanel, list[str], list[str]]:
    """
    Adoptionsreihe des aktiven Modells inkl. Meilensteine und Szenario-Overlays.

    Args:
        state: Zustand oder gespeicherte Teildaten (Default: Standardzustand)
        settings: Optional: Settings-Instanz (Default: neu erzeugt)

    Returns:
        (Panel, Methoden, Warnungen)
    """
    if settings is None:
        settings = Settings()
    methods: list[str] = []
    warnings: list[str] = []

    resolved = resolve_adoption_state(state, settings, warnings)
    model = resolved.active_model
    params = getattr(resolved.params, model)
    core = resolved.core

    series = compute_series(params, core)
    milestones = derive_milestones(series.cumulative_pct, series.incremental_pct, core.ceiling_pct)
    methods.append(
        f"{MODEL_LABELS[model]} ueber {core.horizon} Perioden "
        f"(Obergrenze {core.ceiling_pct:g}%, Lag {core.launch_lag})"
    )
    if model == "bass":
        methods.append("Bass-Diffusion per Euler-Schritt je Periode")

    if milestones.reach90 is None:
        warnings.append(f"90% der Obergrenze wird im Horizont ({core.horizon}) nicht erreicht")

    scenarios = compute_scenario_series(resolved.scenarios, core)
    if scenarios:
        methods.append(f"{len(scenarios)} Szenario-Overlays (gemeinsamer Horizont)")

    nu = params.nu if isinstance(params, RichardsParams) else None
    panel = AdoptionPanel(
        model=model,
        series=series,
        milestones=milestones,
        scenarios=scenarios,
        inflection_text=inflection_text(model, nu),
    )
    return panel, methods, warnings


def fit_adoption(
    state: AdoptionState | Mapping[str, Any] | None,
    observed: Sequence[ObservedPoint],
    *,
    models: Sequence[str] | None = None,
    apply_best: bool = False,
    settings: Settings | None = None,
) -> tuple[FitPanel, AdoptionState | None, list[str], list[str]]:
    """
    Fitbare Adoptionsmodelle an Beobachtungen anpassen und ranken.

    Args:
        state: Zustand (Startwerte, Horizont)
        observed: Beobachtete kumulative Adoption
        models: Optional: Teilmenge der Modelle (Default: alle fitbaren)
        apply_best: Bestes Ergebnis in einen neuen Zustand uebernehmen
        settings: Optional: Settings-Instanz (Default: neu erzeugt)

    Returns:
        (FitPanel, neuer Zustand oder None, Methoden, Warnungen)
    """
    if settings is None:
        settings = Settings()
    methods: list[str] = []
    warnings: list[str] = []

    resolved = resolve_adoption_state(state, settings, warnings)
    selected = list(models) if models else list(FITTABLE_ADOPTION_MODELS)
    skipped = [m for m in selected if m not in FITTABLE_ADOPTION_MODELS]
    if skipped:
        warnings.append(f"Nicht fitbar: {', '.join(skipped)}")

    opts = settings.adoption_fit_options
    results = fit_adoption_models(
        resolved,
        observed,
        [m for m in selected if m in FITTABLE_ADOPTION_MODELS],
        opts,
        settings.fit_restart_spread,
    )
    methods.append(
        f"Begrenzter Nelder-Mead (Logit-Raum, {opts.max_iterations} Iterationen, "
        f"3 deterministische Starts)"
    )
    methods.append("Ranking: RMSE aufsteigend, R² absteigend")

    panel = build_fit_panel(results, "rmse", len(observed), warnings)

    applied: AdoptionState | None = None
    if apply_best and panel.best_model is not None:
        applied = apply_adoption_fit(resolved, results[panel.best_model])
        logger.info("Fit uebernommen: %s", panel.best_model)

    return panel, applied, methods, warnings
