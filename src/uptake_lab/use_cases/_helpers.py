"""Shared Hilfsfunktionen fuer Use Cases.

Reduziert Boilerplate-Duplikation zwischen Adoption und Persistenz.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from uptake_lab.domain.goodness import rank_results
from uptake_lab.domain.models import FitPanel, FitResult


def build_fit_panel(
    results: Mapping[str, FitResult], by: str, n_observations: int, warnings: list[str]
) -> FitPanel:
    """Fit-Ergebnisse ranken und als Panel buendeln.

    Fuegt eine Warnung hinzu, wenn kein Modell ein Ergebnis geliefert hat.
    """
    ranking = rank_results(results, by)
    if not ranking:
        warnings.append(
            f"Kein fitbares Modell lieferte ein Ergebnis ({n_observations} Beobachtungen; "
            "mindestens 2 unterschiedliche Werte noetig)"
        )
    return FitPanel(
        results=dict(results),
        ranking=ranking,
        best_model=ranking[0] if ranking else None,
        n_observations=n_observations,
    )


def warn_scenario_overflow(
    raw: Mapping[str, Any] | None, max_scenarios: int, warnings: list[str]
) -> None:
    """Warnung, wenn gespeicherte Daten mehr Szenarien enthalten als erlaubt."""
    scenarios = raw.get("scenarios") if isinstance(raw, Mapping) else None
    if isinstance(scenarios, list) and len(scenarios) > max_scenarios:
        warnings.append(
            f"{len(scenarios)} Szenarien uebergeben, nur die ersten "
            f"{max_scenarios} werden berechnet"
        )
