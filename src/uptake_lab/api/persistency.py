"""POST /api/v1/persistency/*: Persistenzreihe, KM-Fit und Kohorten."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter

from uptake_lab.api.schemas import (
    CohortRequest,
    CohortResponse,
    PersistencyFitRequest,
    PersistencyFitResponse,
    PersistencySeriesRequest,
    PersistencySeriesResponse,
)
from uptake_lab.config import Settings
from uptake_lab.domain.models import ExplainabilityMetadata
from uptake_lab.use_cases.persistency import (
    compute_persistency,
    fit_persistency,
    simulate_persistency_cohort,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/persistency", tags=["Persistency"])


def _metadata(t0: float, methods: list[str], warnings: list[str]) -> ExplainabilityMetadata:
    return ExplainabilityMetadata(
        methods=methods,
        warnings=warnings,
        query_time_ms=int((time.monotonic() - t0) * 1000),
    )


@router.post("/series", response_model=PersistencySeriesResponse)
def persistency_series(request: PersistencySeriesRequest) -> PersistencySeriesResponse:
    """Survival- und Hazard-Reihe, DoT-Kennzahlen, Szenarien und Benchmarks."""
    t0 = time.monotonic()
    panel, methods, warnings = compute_persistency(
        request.state, benchmarks=request.benchmarks, settings=Settings(),
    )
    return PersistencySeriesResponse(
        persistency=panel, explainability=_metadata(t0, methods, warnings),
    )


@router.post("/fit", response_model=PersistencyFitResponse)
def persistency_fit(request: PersistencyFitRequest) -> PersistencyFitResponse:
    """Persistenzmodelle an Kaplan-Meier-Punkte fitten (Piecewise ausgenommen)."""
    t0 = time.monotonic()
    panel, applied, methods, warnings = fit_persistency(
        request.state,
        request.observed,
        models=request.models,
        apply_best=request.apply_best,
        settings=Settings(),
    )
    logger.info(
        "KM-Fit: %d Punkte, bestes Modell %s", len(request.observed), panel.best_model,
    )
    return PersistencyFitResponse(
        fit=panel, applied_state=applied, explainability=_metadata(t0, methods, warnings),
    )


@router.post("/cohort", response_model=CohortResponse)
def persistency_cohort(request: CohortRequest) -> CohortResponse:
    """Kohorten-Wasserfall: Patienten unter Therapie je Monat."""
    t0 = time.monotonic()
    state = dict(request.state)
    if request.new_starts is not None:
        state["cohort_new_starts"] = request.new_starts
    if request.months is not None:
        state["cohort_months"] = request.months
    panel, methods, warnings = simulate_persistency_cohort(state, settings=Settings())
    return CohortResponse(cohort=panel, explainability=_metadata(t0, methods, warnings))
