"""Persistenzkurven (Survival) und Hazard-Raten.

Fuenf Modellfamilien fuer den Anteil der Patienten unter Therapie (%):
- Weibull: S(t) = C * exp(-(t/lambda)^k)
- Exponentiell: S(t) = C * exp(-lambda*t)
- Log-Normal: S(t) = C * (1 - Phi((ln t - ln median) / sigma))
- Stueckweise linear: Interpolation zwischen Stuetzstellen
- Mixture-Cure: S(t) = (pi + (1-pi) * exp(-(t/lambda)^k)) * 100

Fuer t <= 0 liefern alle Modelle ihren Startwert. Hazard h(t) = -S'(t)/S(t)
analytisch wo moeglich, sonst per zentraler Differenz.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.special import ndtr

from uptake_lab.domain.models import (
    ExponentialParams,
    LogNormalParams,
    MixtureCureParams,
    PiecewiseKnot,
    PiecewiseParams,
    WeibullParams,
)

HAZARD_DT = 0.01

AnySurvivalParams = (
    WeibullParams | ExponentialParams | LogNormalParams | PiecewiseParams | MixtureCureParams
)

MODEL_LABELS: dict[str, str] = {
    "weibull": "Weibull",
    "exponential": "Exponential",
    "log_normal": "Log-Normal",
    "piecewise": "Piecewise Linear",
    "mixture_cure": "Mixture Cure",
}

MODEL_DESCRIPTIONS: dict[str, str] = {
    "weibull": "Flexible hazard shape: k<1 early drop-off, k=1 constant, k>1 late wear-out.",
    "exponential": "Constant hazard; every month carries the same discontinuation risk.",
    "log_normal": "Hazard rises then falls; suits therapies with a delayed discontinuation peak.",
    "piecewise": "Direct interpolation between observed or assumed knots.",
    "mixture_cure": "A cured fraction stays on therapy; the rest follows a Weibull decline.",
}


def normal_cdf(z: NDArray[np.float64] | float) -> NDArray[np.float64]:
    """Standardnormalverteilung Phi(z) (scipy, doppelte Genauigkeit)."""
    result: NDArray[np.float64] = ndtr(z)
    return result


def weibull_survival(
    t: NDArray[np.float64], lam: float, k: float, ceiling: float
) -> NDArray[np.float64]:
    """
    Weibull-Survival: S(t) = ceiling * exp(-(t/lambda)^k).

    Args:
        t: Monate seit Therapiebeginn
        lam: Skala (charakteristische Dauer in Monaten)
        k: Form (k<1 fruehe Abbrueche, k>1 spaete Abbrueche)
        ceiling: Startniveau in %
    """
    tt = np.maximum(t, 0.0)
    with np.errstate(over="ignore"):
        values = ceiling * np.exp(-np.power(tt / lam, k))
    result: NDArray[np.float64] = np.where(t <= 0, ceiling, values)
    return result


def exponential_survival(
    t: NDArray[np.float64], lam: float, ceiling: float
) -> NDArray[np.float64]:
    """Exponentielles Survival: S(t) = ceiling * exp(-lambda * t)."""
    values = ceiling * np.exp(-lam * np.maximum(t, 0.0))
    result: NDArray[np.float64] = np.where(t <= 0, ceiling, values)
    return result


def log_normal_survival(
    t: NDArray[np.float64], median_months: float, sigma: float, ceiling: float
) -> NDArray[np.float64]:
    """Log-Normal-Survival: S(t) = ceiling * (1 - Phi((ln t - ln median) / sigma))."""
    positive = t > 0
    safe_t = np.where(positive, t, 1.0)
    z = (np.log(safe_t) - math.log(median_months)) / sigma
    values = ceiling * (1.0 - normal_cdf(z))
    result: NDArray[np.float64] = np.where(positive, values, ceiling)
    return result


def piecewise_survival(
    t: NDArray[np.float64], knots: list[PiecewiseKnot]
) -> NDArray[np.float64]:
    """
    Stueckweise lineare Interpolation zwischen den Stuetzstellen.

    Ausserhalb des Knotenbereichs wird auf den ersten/letzten Knoten
    begrenzt. Ohne Knoten ist die Kurve konstant 100.
    """
    if not knots:
        return np.full_like(t, 100.0, dtype=np.float64)
    ordered = sorted(knots, key=lambda kn: kn.month)
    months = np.array([kn.month for kn in ordered], dtype=np.float64)
    values = np.array([kn.survival for kn in ordered], dtype=np.float64)
    result: NDArray[np.float64] = np.interp(t, months, values)
    return result


def mixture_cure_survival(
    t: NDArray[np.float64], pi: float, lam: float, k: float
) -> NDArray[np.float64]:
    """Mixture-Cure: S(t) = (pi + (1 - pi) * exp(-(t/lambda)^k)) * 100."""
    tt = np.maximum(t, 0.0)
    with np.errstate(over="ignore"):
        uncured = np.exp(-np.power(tt / lam, k))
    values = (pi + (1.0 - pi) * uncured) * 100.0
    result: NDArray[np.float64] = np.where(t <= 0, 100.0, values)
    return result


def survival_curve(
    params: AnySurvivalParams, t: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Survival (%) fuer beliebige Zeitpunkte (vektorisiert)."""
    t = np.asarray(t, dtype=np.float64)
    if isinstance(params, WeibullParams):
        return weibull_survival(t, params.lam, params.k, params.ceiling)
    if isinstance(params, ExponentialParams):
        return exponential_survival(t, params.lam, params.ceiling)
    if isinstance(params, LogNormalParams):
        return log_normal_survival(t, params.median_months, params.sigma, params.ceiling)
    if isinstance(params, PiecewiseParams):
        return piecewise_survival(t, params.knots)
    if isinstance(params, MixtureCureParams):
        return mixture_cure_survival(t, params.pi, params.lam, params.k)
    raise TypeError(f"Unbekanntes Persistenzmodell: {type(params).__name__}")


def survival_at(params: AnySurvivalParams, t: float) -> float:
    """Survival (%) zu einem einzelnen Zeitpunkt."""
    return float(survival_curve(params, np.array([t], dtype=np.float64))[0])


def weibull_hazard(t: float, lam: float, k: float) -> float:
    """
    Analytischer Weibull-Hazard: h(t) = (k/lambda) * (t/lambda)^(k-1).

    Grenzwert bei t <= 0: +inf fuer k < 1, 1/lambda fuer k = 1, sonst 0.
    Bei Ueberlauf (grosses k, t >> lambda) ist das Ergebnis +inf.
    """
    if t <= 0:
        if k < 1:
            return math.inf
        return 1.0 / lam if k == 1 else 0.0
    with np.errstate(over="ignore", divide="ignore"):
        return float((k / lam) * np.power(t / lam, k - 1.0))


def _finite_difference_hazard(params: AnySurvivalParams, t: float) -> float:
    s1 = survival_at(params, max(0.0, t - HAZARD_DT / 2))
    s2 = survival_at(params, t + HAZARD_DT / 2)
    if s1 <= 0:
        return 0.0
    return max(0.0, -(s2 - s1) / HAZARD_DT / s1)


def hazard_at(params: AnySurvivalParams, t: float) -> float:
    """Hazard-Rate (Abbrueche pro Monat) zum Zeitpunkt t."""
    if isinstance(params, WeibullParams):
        return weibull_hazard(t, params.lam, params.k)
    if isinstance(params, ExponentialParams):
        return params.lam
    if isinstance(params, MixtureCureParams):
        with np.errstate(over="ignore"):
            uncured = float(np.exp(-np.power(max(t, 0.0) / params.lam, params.k)))
        total = params.pi + (1.0 - params.pi) * uncured
        if total <= 0:
            return 0.0
        h_u = weibull_hazard(t, params.lam, params.k)
        if h_u == 0.0 or uncured == 0.0:
            return 0.0
        return ((1.0 - params.pi) * uncured * h_u) / total
    if isinstance(params, (LogNormalParams, PiecewiseParams)):
        return _finite_difference_hazard(params, t)
    raise TypeError(f"Unbekanntes Persistenzmodell: {type(params).__name__}")
