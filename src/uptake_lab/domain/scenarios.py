"""Szenarien: eingefrorene Kopien von Modell und Parametern als Overlays.

Ein Szenario haelt Modell, Parameter und (Adoption) Obergrenze und Lag zum
Zeitpunkt der Erfassung. Horizont, Zeiteinheit und TAM kommen immer aus dem
gemeinsamen Kontext. Hoechstens drei Szenarien, benannt "Scenario A", "B", ...
"""

from __future__ import annotations

import logging
import uuid
from typing import TypeVar

from uptake_lab.domain.models import (
    AdoptionScenario,
    AdoptionState,
    CoreParams,
    PersistencyScenario,
    PersistencyState,
    ScenarioCore,
    ScenarioSeries,
    SurvivalScenarioSeries,
)
from uptake_lab.domain.series import compute_series, compute_survival_series

logger = logging.getLogger(__name__)

SCENARIO_COLORS: tuple[str, ...] = ("#00d4b4", "#f0a500", "#a78bfa", "#ff6b9a")
MAX_SCENARIOS = 3

StateT = TypeVar("StateT", AdoptionState, PersistencyState)


def scenario_name(index: int) -> str:
    """Name nach Position: 0 -> "Scenario A", 1 -> "Scenario B", ..."""
    return f"Scenario {chr(65 + index)}"


def scenario_color(index: int) -> str:
    return SCENARIO_COLORS[index % len(SCENARIO_COLORS)]


def snapshot_adoption_scenario(state: AdoptionState, index: int) -> AdoptionScenario:
    """Aktives Modell, seine Parameter sowie Obergrenze und Lag einfrieren."""
    return AdoptionScenario(
        id=str(uuid.uuid4()),
        name=scenario_name(index),
        color=scenario_color(index),
        model=state.active_model,
        core_snapshot=ScenarioCore(
            ceiling_pct=state.core.ceiling_pct, launch_lag=state.core.launch_lag
        ),
        params_snapshot=getattr(state.params, state.active_model).model_copy(deep=True),
    )


def snapshot_persistency_scenario(state: PersistencyState, index: int) -> PersistencyScenario:
    """Aktives Persistenzmodell mit vollstaendigen Parametern einfrieren."""
    return PersistencyScenario(
        id=str(uuid.uuid4()),
        name=scenario_name(index),
        color=scenario_color(index),
        model=state.active_model,
        params_snapshot=getattr(state.params, state.active_model).model_copy(deep=True),
    )


def add_scenario(state: StateT, max_scenarios: int = MAX_SCENARIOS) -> StateT:
    """
    Aktuellen Zustand als neues Szenario anhaengen.

    Ist das Maximum erreicht, bleibt der Zustand unveraendert.
    """
    index = len(state.scenarios)
    if index >= max_scenarios:
        logger.info("Maximum von %d Szenarien erreicht", max_scenarios)
        return state
    if isinstance(state, AdoptionState):
        scenario: AdoptionScenario | PersistencyScenario = snapshot_adoption_scenario(state, index)
    else:
        scenario = snapshot_persistency_scenario(state, index)
    return state.model_copy(update={"scenarios": [*state.scenarios, scenario]})


def rename_scenario(state: StateT, scenario_id: str, name: str) -> StateT:
    scenarios = [
        s.model_copy(update={"name": name}) if s.id == scenario_id else s
        for s in state.scenarios
    ]
    return state.model_copy(update={"scenarios": scenarios})


def remove_scenario(state: StateT, scenario_id: str) -> StateT:
    scenarios = [s for s in state.scenarios if s.id != scenario_id]
    editing = None if state.editing_scenario_id == scenario_id else state.editing_scenario_id
    return state.model_copy(update={"scenarios": scenarios, "editing_scenario_id": editing})


def clear_scenarios(state: StateT) -> StateT:
    return state.model_copy(update={"scenarios": [], "editing_scenario_id": None})


def set_editing_scenario(state: StateT, scenario_id: str | None) -> StateT:
    """Bearbeitungsmodus fuer ein Szenario setzen (None beendet ihn)."""
    if scenario_id is not None and all(s.id != scenario_id for s in state.scenarios):
        raise ValueError(f"Unbekanntes Szenario: {scenario_id}")
    return state.model_copy(update={"editing_scenario_id": scenario_id})


def mirror_into_editing_scenario(state: StateT) -> StateT:
    """
    Live-Parameter in das Szenario im Bearbeitungsmodus uebertragen.

    Nur dieses eine Szenario wird aktualisiert; es uebernimmt die aktuellen
    Parameter seines eigenen Modells (Adoption zusaetzlich Obergrenze und Lag).
    """
    if state.editing_scenario_id is None:
        return state

    updated = []
    for scenario in state.scenarios:
        if scenario.id != state.editing_scenario_id:
            updated.append(scenario)
            continue
        changes: dict[str, object] = {
            "params_snapshot": getattr(state.params, scenario.model).model_copy(deep=True),
        }
        if isinstance(state, AdoptionState):
            changes["core_snapshot"] = ScenarioCore(
                ceiling_pct=state.core.ceiling_pct, launch_lag=state.core.launch_lag
            )
        updated.append(scenario.model_copy(update=changes))
    return state.model_copy(update={"scenarios": updated})


def compute_scenario_series(
    scenarios: list[AdoptionScenario], core: CoreParams
) -> list[ScenarioSeries]:
    """Jedes Szenario mit eigenen Parametern, Obergrenze und Lag neu rechnen."""
    result = []
    for scenario in scenarios:
        scenario_core = core.model_copy(
            update={
                "ceiling_pct": scenario.core_snapshot.ceiling_pct,
                "launch_lag": scenario.core_snapshot.launch_lag,
            }
        )
        result.append(
            ScenarioSeries(
                scenario=scenario,
                series=compute_series(scenario.params_snapshot, scenario_core),
            )
        )
    return result


def compute_survival_scenario_series(
    scenarios: list[PersistencyScenario], horizon: int
) -> list[SurvivalScenarioSeries]:
    """Jedes Persistenzszenario gegen den gemeinsamen Horizont neu rechnen."""
    return [
        SurvivalScenarioSeries(
            scenario=scenario,
            series=compute_survival_series(scenario.params_snapshot, horizon),
        )
        for scenario in scenarios
    ]
