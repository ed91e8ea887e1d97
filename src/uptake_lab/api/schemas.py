"""Pydantic Request/Response Models fuer die API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from uptake_lab.domain.models import (
    AdoptionModel,
    AdoptionPanel,
    AdoptionState,
    CohortPanel,
    ExplainabilityMetadata,
    FitPanel,
    KMDataPoint,
    ObservedPoint,
    PersistencyPanel,
    PersistencyState,
    Preset,
    SurvivalModel,
)

# --- Request ---

class AdoptionSeriesRequest(BaseModel):
    """Adoptionsreihe fuer einen (teilweise) gespeicherten Zustand."""

    state: dict[str, Any] = Field(
        default_factory=dict,
        description="Zustand; fehlende Felder werden mit Standardwerten ergaenzt",
    )


class AdoptionFitRequest(BaseModel):
    """Kurven-Fit an beobachtete kumulative Adoption."""

    state: dict[str, Any] = Field(default_factory=dict)
    observed: list[ObservedPoint] = Field(..., max_length=5000)
    models: list[AdoptionModel] | None = Field(
        None, description="Teilmenge der Modelle (Default: alle fitbaren)"
    )
    apply_best: bool = Field(False, description="Bestes Ergebnis in neuen Zustand uebernehmen")


class PersistencySeriesRequest(BaseModel):
    """Persistenzreihe mit optionalen Benchmark-Overlays."""

    state: dict[str, Any] = Field(default_factory=dict)
    benchmarks: list[str] = Field(default_factory=list, description="Preset-IDs")


class PersistencyFitRequest(BaseModel):
    """Fit an Kaplan-Meier-Punkte oder Zielpunkte."""

    state: dict[str, Any] = Field(default_factory=dict)
    observed: list[KMDataPoint] = Field(..., max_length=5000)
    models: list[SurvivalModel] | None = None
    apply_best: bool = False


class CohortRequest(BaseModel):
    """Kohorten-Wasserfall; optionale Werte ueberschreiben den Zustand."""

    state: dict[str, Any] = Field(default_factory=dict)
    new_starts: float | None = Field(None, ge=0, description="Neue Patienten pro Monat")
    months: int | None = Field(None, ge=1, description="Simulierte Monate")


# --- Response ---

class ParameterBound(BaseModel):
    """Fit-Grenzen eines Parameters."""

    key: str
    min: float
    max: float


class ModelInfo(BaseModel):
    """Katalogeintrag einer Modellfamilie."""

    id: str
    label: str
    description: str
    fittable: bool
    bounds: list[ParameterBound] = []


class ModelCatalogResponse(BaseModel):
    adoption: list[ModelInfo] = []
    persistency: list[ModelInfo] = []


class PresetsResponse(BaseModel):
    presets: list[Preset] = []


class AdoptionSeriesResponse(BaseModel):
    """Adoptionsreihe mit Meilensteinen und Szenarien."""

    adoption: AdoptionPanel = AdoptionPanel()
    explainability: ExplainabilityMetadata = ExplainabilityMetadata()


class AdoptionFitResponse(BaseModel):
    """Fit-Vergleich; ``applied_state`` nur bei ``apply_best``."""

    fit: FitPanel = FitPanel()
    applied_state: AdoptionState | None = None
    explainability: ExplainabilityMetadata = ExplainabilityMetadata()


class PersistencySeriesResponse(BaseModel):
    persistency: PersistencyPanel = PersistencyPanel()
    explainability: ExplainabilityMetadata = ExplainabilityMetadata()


class PersistencyFitResponse(BaseModel):
    fit: FitPanel = FitPanel()
    applied_state: PersistencyState | None = None
    explainability: ExplainabilityMetadata = ExplainabilityMetadata()


class CohortResponse(BaseModel):
    cohort: CohortPanel = CohortPanel()
    explainability: ExplainabilityMetadata = ExplainabilityMetadata()
