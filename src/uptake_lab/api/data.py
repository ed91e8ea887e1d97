"""GET-Endpoints fuer Health, Modellkatalog und Presets."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter

from uptake_lab.api.schemas import (
    ModelCatalogResponse,
    ModelInfo,
    ParameterBound,
    PresetsResponse,
)
from uptake_lab.config import Settings
from uptake_lab.domain import curves, survival
from uptake_lab.domain.fitting import ADOPTION_PARAM_DEFS, ParamDef
from uptake_lab.domain.models import ADOPTION_MODELS, SURVIVAL_MODELS
from uptake_lab.domain.presets import PRESETS
from uptake_lab.domain.survival_fitting import SURVIVAL_PARAM_DEFS

router = APIRouter(tags=["Data"])
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@router.get("/health")
def health_check() -> dict[str, Any]:
    """Service Health Check mit aktiven Fit-Einstellungen."""
    settings = Settings()
    return {
        "status": "healthy",
        "version": VERSION,
        "timestamp": datetime.now().isoformat(),
        "fit": {
            "adoption_max_iterations": settings.adoption_fit_max_iterations,
            "survival_max_iterations": settings.survival_fit_max_iterations,
            "restart_spread": settings.fit_restart_spread,
        },
    }


def _bounds(defs: tuple[ParamDef, ...]) -> list[ParameterBound]:
    return [ParameterBound(key=d.key, min=d.bound.min, max=d.bound.max) for d in defs]


@router.get("/api/v1/models", response_model=ModelCatalogResponse)
def model_catalogue() -> ModelCatalogResponse:
    """Alle Modellfamilien mit Beschreibung, Fitbarkeit und Fit-Grenzen."""
    adoption = [
        ModelInfo(
            id=m,
            label=curves.MODEL_LABELS[m],
            description=curves.MODEL_DESCRIPTIONS[m],
            fittable=bool(ADOPTION_PARAM_DEFS[m]),
            bounds=_bounds(ADOPTION_PARAM_DEFS[m]),
        )
        for m in ADOPTION_MODELS
    ]
    persistency = [
        ModelInfo(
            id=m,
            label=survival.MODEL_LABELS[m],
            description=survival.MODEL_DESCRIPTIONS[m],
            fittable=bool(SURVIVAL_PARAM_DEFS[m]),
            bounds=_bounds(SURVIVAL_PARAM_DEFS[m]),
        )
        for m in SURVIVAL_MODELS
    ]
    return ModelCatalogResponse(adoption=adoption, persistency=persistency)


@router.get("/api/v1/persistency/presets", response_model=PresetsResponse)
def persistency_presets() -> PresetsResponse:
    """Therapie-Presets (auch als Benchmark-IDs verwendbar)."""
    return PresetsResponse(presets=list(PRESETS))
