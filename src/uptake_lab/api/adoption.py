"""POST /api/v1/adoption/*: Adoptionsreihe und Kurven-Fit."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter

from uptake_lab.api.schemas import (
    AdoptionFitRequest,
    AdoptionFitResponse,
    AdoptionSeriesRequest,
    AdoptionSeriesResponse,
)
from uptake_lab.config import Settings
from uptake_lab.domain.models import ExplainabilityMetadata
from uptake_lab.use_cases.adoption import compute_adoption, fit_adoption

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/adoption", tags=["Adoption"])


@router.post("/series", response_model=AdoptionSeriesResponse)
def adoption_series(request: AdoptionSeriesRequest) -> AdoptionSeriesResponse:
    """Adoptionsreihe, Meilensteine, Wendepunkt-Text und Szenario-Overlays."""
    t0 = time.monotonic()
    panel, methods, warnings = compute_adoption(request.state, settings=Settings())
    elapsed_ms = int((time.monotonic() - t0) * 1000)
    return AdoptionSeriesResponse(
        adoption=panel,
        explainability=ExplainabilityMetadata(
            methods=methods, warnings=warnings, query_time_ms=elapsed_ms,
        ),
    )


@router.post("/fit", response_model=AdoptionFitResponse)
def adoption_fit(request: AdoptionFitRequest) -> AdoptionFitResponse:
    """
    Fitbare Kurvenfamilien an Beobachtungen anpassen.

    Linear wird nie gefittet. Mit ``apply_best`` enthaelt die Antwort den
    Zustand nach Uebernahme des besten Ergebnisses.
    """
    t0 = time.monotonic()
    panel, applied, methods, warnings = fit_adoption(
        request.state,
        request.observed,
        models=request.models,
        apply_best=request.apply_best,
        settings=Settings(),
    )
    elapsed_ms = int((time.monotonic() - t0) * 1000)
    logger.info(
        "Adoptions-Fit: %d Beobachtungen, bestes Modell %s (%d ms)",
        len(request.observed), panel.best_model, elapsed_ms,
    )
    return AdoptionFitResponse(
        fit=panel,
        applied_state=applied,
        explainability=ExplainabilityMetadata(
            methods=methods, warnings=warnings, query_time_ms=elapsed_ms,
        ),
    )
