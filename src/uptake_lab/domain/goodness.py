"""Anpassungsguete und Modell-Ranking fuer Fit-Ergebnisse."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

import numpy as np

from uptake_lab.domain.models import FitMetrics, FitResult

_TINY = 1e-12


def compute_fit_metrics(
    observed: Sequence[float],
    predicted: Sequence[float],
    with_mape: bool = True,
) -> FitMetrics:
    """
    R², RMSE, SSE und (optional) MAPE zwischen Beobachtung und Modell.

    R² = 1 - SSres/SStot; bei konstanter Beobachtung (SStot ~ 0) ist R² = 1
    nur fuer einen exakten Fit, sonst 0. MAPE ignoriert Beobachtungen ~ 0.
    """
    y = np.asarray(observed, dtype=np.float64)
    yhat = np.asarray(predicted, dtype=np.float64)
    n = max(1, len(y))
    err = y - yhat
    ss_res = float(np.sum(err**2))
    ss_tot = float(np.sum((y - (np.sum(y) / n)) ** 2))

    if ss_tot < _TINY:
        r2 = 1.0 if ss_res < _TINY else 0.0
    else:
        r2 = 1.0 - ss_res / ss_tot

    mape: float | None = None
    if with_mape:
        mask = np.abs(y) > 1e-9
        mape = float(np.mean(np.abs(err[mask] / y[mask])) * 100.0) if mask.any() else 0.0

    return FitMetrics(r2=r2, rmse=math.sqrt(ss_res / n), sse=ss_res, mape=mape)


def _rank_value(value: float) -> float:
    return math.inf if math.isnan(value) else value


def rank_results(
    results: Mapping[str, FitResult | None], by: str = "rmse"
) -> list[str]:
    """
    Modelle nach Guete sortieren; None-Ergebnisse werden ausgelassen.

    Args:
        results: Modell -> Ergebnis
        by: "rmse" (Adoption) oder "sse" (Persistenz) als Primaerkriterium,
            R² absteigend als Tiebreaker

    Returns:
        Modellnamen, bestes zuerst. NaN wird wie +inf (bzw. -inf beim R²) gewertet.
    """
    if by not in ("rmse", "sse"):
        raise ValueError(f"Unbekanntes Ranking-Kriterium: {by}")

    def key(item: tuple[str, FitResult]) -> tuple[float, float]:
        metrics = item[1].metrics
        primary = metrics.rmse if by == "rmse" else metrics.sse
        r2 = -math.inf if math.isnan(metrics.r2) else metrics.r2
        return (_rank_value(primary), -r2)

    present = [(model, r) for model, r in results.items() if r is not None]
    return [model for model, _ in sorted(present, key=key)]


def best_fit_result(
    results: Mapping[str, FitResult | None], by: str = "rmse"
) -> FitResult | None:
    """Bestes Ergebnis nach ``rank_results`` oder None ohne Ergebnisse."""
    ranking = rank_results(results, by)
    return results[ranking[0]] if ranking else None
