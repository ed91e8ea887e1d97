"""Zustand aus (teilweise) gespeicherten Daten wiederherstellen.

Gespeicherte oder geteilte Zustaende sind unvollstaendig und evtl. veraltet.
Sie werden rekursiv ueber den Standardzustand gelegt und anschliessend
vollstaendig validiert. Ungueltige Daten werden nie teilweise uebernommen:
es gilt dann der Standardzustand.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from uptake_lab.domain.models import AdoptionState, PersistencyState
from uptake_lab.domain.scenarios import MAX_SCENARIOS

logger = logging.getLogger(__name__)


def default_adoption_state() -> AdoptionState:
    return AdoptionState()


def default_persistency_state() -> PersistencyState:
    return PersistencyState()


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    ``override`` rekursiv ueber ``base`` legen.

    Nur Mappings werden zusammengefuehrt; Listen und Skalare ersetzen den
    Basiswert vollstaendig. ``None`` in ``override`` ersetzt ebenfalls.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


INVALID_STATE_WARNING = "Zustand ungueltig, Standard verwendet"


def _hydrate(
    default: AdoptionState | PersistencyState,
    saved: Mapping[str, Any] | None,
    max_scenarios: int,
    warnings: list[str] | None,
) -> Any:
    if not saved:
        return default
    if not isinstance(saved, Mapping):
        logger.warning("Gespeicherter Zustand ist kein Objekt, verwende Standard")
        if warnings is not None:
            warnings.append(INVALID_STATE_WARNING)
        return default

    merged = deep_merge(default.model_dump(by_alias=True), saved)
    scenarios = merged.get("scenarios")
    if isinstance(scenarios, list):
        merged["scenarios"] = scenarios[:max_scenarios]

    try:
        return type(default).model_validate(merged)
    except ValidationError as e:
        logger.warning(
            "Gespeicherter Zustand ungueltig (%d Fehler), verwende Standard",
            e.error_count(),
        )
        if warnings is not None:
            warnings.append(f"{INVALID_STATE_WARNING} ({e.error_count()} Fehler)")
        return default


def hydrate_adoption_state(
    saved: Mapping[str, Any] | None,
    max_scenarios: int = MAX_SCENARIOS,
    warnings: list[str] | None = None,
) -> AdoptionState:
    """
    Adoptionszustand aus gespeicherten Teildaten (Standardwerte ergaenzt).

    Faellt die Validierung durch, wird der Standardzustand verwendet und,
    falls ``warnings`` uebergeben ist, eine Warnung angehaengt.
    """
    state: AdoptionState = _hydrate(default_adoption_state(), saved, max_scenarios, warnings)
    return state


def hydrate_persistency_state(
    saved: Mapping[str, Any] | None,
    max_scenarios: int = MAX_SCENARIOS,
    warnings: list[str] | None = None,
) -> PersistencyState:
    """Persistenzzustand aus gespeicherten Teildaten (Standardwerte ergaenzt)."""
    state: PersistencyState = _hydrate(
        default_persistency_state(), saved, max_scenarios, warnings
    )
    return state
