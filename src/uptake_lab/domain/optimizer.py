"""Begrenzter Nelder-Mead-Simplex (ableitungsfrei).

Jeder Parameter x in [min, max] wird in einen unbeschraenkten Raum u
transformiert: x = min + (max - min) * sigmoid(u). Der Simplex bewegt sich
frei in u; jeder ausgewertete Punkt liegt damit automatisch in den Grenzen.

Koeffizienten: Reflexion 1, Expansion 2, Kontraktion 0.5, Schrumpfung 0.5.
Abbruch, wenn die Standardabweichung der Vertex-Werte unter ``tolerance``
faellt oder ``max_iterations`` erreicht ist. Nicht-Konvergenz ist kein Fehler.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

ALPHA = 1.0
GAMMA = 2.0
RHO = 0.5
SIGMA = 0.5

_EPS = 1e-9

Objective = Callable[[NDArray[np.float64]], float]


@dataclass(frozen=True)
class Bound:
    """Zulaessiges Intervall eines Parameters (min < max)."""

    min: float
    max: float


@dataclass(frozen=True)
class NelderMeadOptions:
    """Steuerparameter eines Optimierungslaufs."""

    max_iterations: int = 400
    tolerance: float = 1e-7
    initial_step: float = 0.2


@dataclass(frozen=True)
class OptimizationResult:
    """Bester Vertex nach Abbruch (x in Parametergrenzen)."""

    x: list[float]
    fx: float
    iterations: int


def _sigmoid(u: NDArray[np.float64]) -> NDArray[np.float64]:
    # numerisch stabil fuer grosse |u|
    out = np.empty_like(u)
    pos = u >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-u[pos]))
    ez = np.exp(u[~pos])
    out[~pos] = ez / (1.0 + ez)
    return out


def _validate(bounds: Sequence[Bound], start: Sequence[float]) -> None:
    if len(bounds) != len(start):
        raise ValueError(
            f"Anzahl Grenzen ({len(bounds)}) passt nicht zum Startvektor ({len(start)})"
        )
    for i, b in enumerate(bounds):
        if not (math.isfinite(b.min) and math.isfinite(b.max)):
            raise ValueError(f"Grenze {i} ist nicht endlich: [{b.min}, {b.max}]")
        if b.min >= b.max:
            raise ValueError(f"Grenze {i} ist leer: min {b.min} >= max {b.max}")


class _BoundedSpace:
    """Kodierung zwischen Parameterraum x und unbeschraenktem Raum u."""

    def __init__(self, bounds: Sequence[Bound]) -> None:
        self.lower = np.array([b.min for b in bounds], dtype=np.float64)
        self.span = np.array([b.max - b.min for b in bounds], dtype=np.float64)

    def encode(self, x: Sequence[float]) -> NDArray[np.float64]:
        ratio = np.clip((np.asarray(x, dtype=np.float64) - self.lower) / self.span, _EPS, 1 - _EPS)
        result: NDArray[np.float64] = np.log(ratio / (1.0 - ratio))
        return result

    def decode(self, u: NDArray[np.float64]) -> NDArray[np.float64]:
        result: NDArray[np.float64] = self.lower + self.span * _sigmoid(u)
        return result


def bounded_nelder_mead(
    objective: Objective,
    bounds: Sequence[Bound],
    start: Sequence[float],
    options: NelderMeadOptions | None = None,
) -> OptimizationResult:
    """
    Minimiert ``objective`` innerhalb der Grenzen.

    Args:
        objective: Zielfunktion f(x) -> float; NaN wird als +inf gewertet
        bounds: Grenzen je Dimension
        start: Startvektor (wird in die Grenzen geklemmt)
        options: Iterationen, Toleranz, Startschritt im u-Raum

    Returns:
        OptimizationResult mit bestem x, f(x) und Anzahl Iterationen.

    Raises:
        ValueError: bei leeren, nicht-endlichen oder falsch dimensionierten Grenzen.
    """
    opts = options or NelderMeadOptions()
    _validate(bounds, start)
    space = _BoundedSpace(bounds)
    n = len(start)

    def evaluate(u: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64], float]:
        x = space.decode(u)
        fx = float(objective(x))
        return u, x, (math.inf if math.isnan(fx) else fx)

    start_u = space.encode(start)
    simplex = [evaluate(start_u)]
    for i in range(n):
        vertex = start_u.copy()
        vertex[i] += opts.initial_step
        simplex.append(evaluate(vertex))

    for iteration in range(opts.max_iterations):
        # stabile Sortierung: Gleichstand behaelt die bisherige Reihenfolge
        simplex.sort(key=lambda v: v[2])
        best, second_worst, worst = simplex[0], simplex[n - 1], simplex[n]

        values = np.array([v[2] for v in simplex], dtype=np.float64)
        with np.errstate(invalid="ignore"):
            spread = float(np.std(values))
        if spread < opts.tolerance:
            return OptimizationResult(x=best[1].tolist(), fx=best[2], iterations=iteration)

        centroid = np.mean([v[0] for v in simplex[:n]], axis=0)
        reflected = evaluate(centroid + ALPHA * (centroid - worst[0]))

        if reflected[2] < best[2]:
            expanded = evaluate(centroid + GAMMA * (reflected[0] - centroid))
            simplex[n] = expanded if expanded[2] < reflected[2] else reflected
            continue

        if reflected[2] < second_worst[2]:
            simplex[n] = reflected
            continue

        if reflected[2] < worst[2]:
            contracted = evaluate(centroid + RHO * (reflected[0] - centroid))
        else:
            contracted = evaluate(centroid + RHO * (worst[0] - centroid))
        if contracted[2] < min(worst[2], reflected[2]):
            simplex[n] = contracted
            continue

        best_u = best[0]
        simplex = [best] + [evaluate(best_u + SIGMA * (v[0] - best_u)) for v in simplex[1:]]

    simplex.sort(key=lambda v: v[2])
    return OptimizationResult(
        x=simplex[0][1].tolist(), fx=simplex[0][2], iterations=opts.max_iterations
    )


def deterministic_restarts(
    start: Sequence[float], bounds: Sequence[Bound], spread: float = 0.08
) -> list[list[float]]:
    """
    Startvektoren fuer Multi-Start: Start sowie +/- ``spread`` der Spannweite.

    Die verschobenen Vektoren werden in die Grenzen geklemmt.
    """
    base = [float(v) for v in start]
    plus = [min(b.max, max(b.min, v + spread * (b.max - b.min))) for v, b in zip(base, bounds)]
    minus = [min(b.max, max(b.min, v - spread * (b.max - b.min))) for v, b in zip(base, bounds)]
    return [base, plus, minus]


def multi_start_minimize(
    objective: Objective,
    bounds: Sequence[Bound],
    start: Sequence[float],
    options: NelderMeadOptions | None = None,
    spread: float = 0.08,
) -> OptimizationResult:
    """Nelder-Mead aus drei deterministischen Startpunkten; strikt bestes Ergebnis gewinnt."""
    _validate(bounds, start)
    first, *others = deterministic_restarts(start, bounds, spread)
    best = bounded_nelder_mead(objective, bounds, first, options)
    for candidate in others:
        result = bounded_nelder_mead(objective, bounds, candidate, options)
        if result.fx < best.fx:
            best = result
    logger.debug("Multi-Start: fx=%.6g nach %d Iterationen", best.fx, best.iterations)
    return best
