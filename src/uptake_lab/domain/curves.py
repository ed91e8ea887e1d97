"""Adoptionskurven: geschlossene Formen und Bass-Diffusion.

Implementiert fuenf Kurvenfamilien fuer kumulative Adoption (% der Population):
- Logistisch: f(t) = L / (1 + exp(-k*(te - t0))), symmetrisch, Wendepunkt bei 50% L
- Gompertz: f(t) = L * exp(-exp(-k*(te - t0))), asymmetrisch, Wendepunkt bei ~36.8% L
- Richards: f(t) = L / (1 + nu*exp(-k*(te - t0)))^(1/nu); nu=1 logistisch, nu->0 Gompertz
- Bass: Euler-Schritt dF = (p + q*F/L) * (L - F) * dt pro Periode
- Linear: f(t) = min(L, r*te)

te = max(0, t - launch_lag) ist die Zeit seit Beginn der Adoption. Vor dem
Lag (t - lag <= 0) ist jede Kurve 0. Alle Evaluatoren sind total: Ueberlaeufe
(NaN/inf) werden auf endliche Werte abgebildet und auf [0, L] begrenzt.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from uptake_lab.domain.models import (
    AdoptionModel,
    BassParams,
    GompertzParams,
    LinearParams,
    LogisticParams,
    RichardsParams,
    TimeUnit,
)

# Unterhalb dieser Grenze wird Richards als Gompertz ausgewertet (Grenzfall nu->0)
RICHARDS_GOMPERTZ_NU = 1e-3

AnyAdoptionParams = (
    LogisticParams | GompertzParams | RichardsParams | BassParams | LinearParams
)

MODEL_LABELS: dict[str, str] = {
    "logistic": "Logistic",
    "gompertz": "Gompertz",
    "richards": "Richards",
    "bass": "Bass Diffusion",
    "linear": "Linear Ramp",
}

MODEL_DESCRIPTIONS: dict[str, str] = {
    "logistic": (
        "A symmetric S-curve with adoption accelerating then decelerating around a midpoint."
    ),
    "gompertz": "An asymmetric S-curve with slower early movement and earlier inflection.",
    "richards": (
        "A generalized logistic master curve that flexes between symmetric "
        "and asymmetric adoption."
    ),
    "bass": "Diffusion model split into innovation (p) and imitation (q) effects.",
    "linear": "A conservative straight-line ramp to ceiling after optional lag.",
}


def period_label(period: int, unit: TimeUnit) -> str:
    """Achsenbeschriftung einer Periode, z.B. ``Month 3`` oder ``Week 12``."""
    prefix = "Month" if unit == "months" else "Week"
    return f"{prefix} {period}"


def logistic_function(
    te: NDArray[np.float64], L: float, k: float, t0: float  # noqa: N803
) -> NDArray[np.float64]:
    """
    Logistische Funktion: f(te) = L / (1 + exp(-k * (te - t0))).

    Args:
        te: Zeit seit Adoptionsbeginn (Perioden)
        L: Obergrenze (Ceiling, %)
        k: Wachstumsrate (Steilheit)
        t0: Wendepunkt (Periode mit staerkstem Wachstum)
    """
    with np.errstate(over="ignore"):
        result: NDArray[np.float64] = L / (1.0 + np.exp(-k * (te - t0)))
    return result


def gompertz_function(
    te: NDArray[np.float64], L: float, k: float, t0: float  # noqa: N803
) -> NDArray[np.float64]:
    """Gompertz-Funktion: f(te) = L * exp(-exp(-k * (te - t0)))."""
    with np.errstate(over="ignore"):
        result: NDArray[np.float64] = L * np.exp(-np.exp(-k * (te - t0)))
    return result


def richards_function(
    te: NDArray[np.float64], L: float, k: float, t0: float, nu: float  # noqa: N803
) -> NDArray[np.float64]:
    """
    Richards-Funktion (generalisierte Logistik).

    Fuer nu < 1e-3 wird der Gompertz-Grenzfall verwendet, da (1/nu)
    numerisch instabil wird.
    """
    if nu < RICHARDS_GOMPERTZ_NU:
        return gompertz_function(te, L, k, t0)
    with np.errstate(over="ignore", invalid="ignore"):
        result: NDArray[np.float64] = L / np.power(
            1.0 + nu * np.exp(-k * (te - t0)), 1.0 / nu
        )
    return result


def linear_function(
    te: NDArray[np.float64], L: float, r: float  # noqa: N803
) -> NDArray[np.float64]:
    """Lineare Rampe: f(te) = min(L, r * te)."""
    result: NDArray[np.float64] = np.minimum(L, r * te)
    return result


def bass_cumulative(
    periods: int, L: float, p: float, q: float, launch_lag: float  # noqa: N803
) -> NDArray[np.float64]:
    """
    Bass-Diffusion als Euler-Integration auf der verschobenen Adoptionsuhr.

    Pro Periode n: dt = max(0, n - lag) - max(0, n - 1 - lag). Nur bei dt > 0
    wird ein Schritt ausgefuehrt; der kumulative Wert bleibt in [0, L].

    Returns:
        Array der Laenge ``periods + 1`` mit F(0) = 0 an Index 0.
    """
    out = np.zeros(periods + 1, dtype=np.float64)
    cap = max(1e-9, L)
    prev = 0.0
    for n in range(1, periods + 1):
        dt = max(0.0, n - launch_lag) - max(0.0, n - 1 - launch_lag)
        if dt > 0:
            step = (p + q * prev / cap) * (L - prev) * dt
            prev = min(L, max(0.0, prev + step))
        out[n] = prev
    return out


def _bounded(values: NDArray[np.float64], L: float) -> NDArray[np.float64]:  # noqa: N803
    """NaN/inf auf endliche Werte abbilden und auf [0, L] begrenzen."""
    finite = np.nan_to_num(values, nan=0.0, posinf=L, neginf=0.0)
    result: NDArray[np.float64] = np.clip(finite, 0.0, L)
    return result


def _closed_form(
    params: LogisticParams | GompertzParams | RichardsParams | LinearParams,
    te: NDArray[np.float64],
    L: float,  # noqa: N803
) -> NDArray[np.float64]:
    if isinstance(params, LogisticParams):
        return logistic_function(te, L, params.k, params.t0)
    if isinstance(params, GompertzParams):
        return gompertz_function(te, L, params.k, params.t0)
    if isinstance(params, RichardsParams):
        return richards_function(te, L, params.k, params.t0, params.nu)
    if isinstance(params, LinearParams):
        return linear_function(te, L, params.r)
    raise TypeError(f"Unbekanntes Adoptionsmodell: {type(params).__name__}")


def adoption_curve(
    params: AnyAdoptionParams,
    horizon: int,
    ceiling_pct: float,
    launch_lag: float,
) -> NDArray[np.float64]:
    """
    Kumulative Adoption fuer die Perioden 1..horizon (vektorisiert).

    Args:
        params: Parameter genau einer Kurvenfamilie
        horizon: Anzahl Perioden (mindestens 1)
        ceiling_pct: Obergrenze L in Prozent, wird auf [0, 100] begrenzt
        launch_lag: Verzoegerung bis Adoptionsbeginn (darf gebrochen sein)

    Returns:
        Array der Laenge ``horizon``; Index i entspricht Periode i + 1.
    """
    n = max(1, int(horizon))
    L = min(100.0, max(0.0, float(ceiling_pct)))  # noqa: N806
    if isinstance(params, BassParams):
        return _bounded(bass_cumulative(n, L, params.p, params.q, launch_lag)[1:], L)

    raw_te = np.arange(1, n + 1, dtype=np.float64) - launch_lag
    te = np.maximum(raw_te, 0.0)
    values = _closed_form(params, te, L)
    return _bounded(np.where(raw_te <= 0, 0.0, values), L)


def evaluate_adoption(
    params: AnyAdoptionParams,
    t: float,
    ceiling_pct: float,
    launch_lag: float,
) -> float:
    """
    Kumulative Adoption (%) zu einem einzelnen Zeitpunkt t >= 0.

    Bass ist nur auf ganzen Perioden definiert; dazwischen wird linear
    interpoliert.
    """
    L = min(100.0, max(0.0, float(ceiling_pct)))  # noqa: N806
    if isinstance(params, BassParams):
        upper = max(1, math.ceil(t))
        path = _bounded(bass_cumulative(upper, L, params.p, params.q, launch_lag), L)
        return float(np.interp(t, np.arange(upper + 1, dtype=np.float64), path))

    raw_te = t - launch_lag
    if raw_te <= 0:
        return 0.0
    value = _closed_form(params, np.array([raw_te], dtype=np.float64), L)
    return float(_bounded(value, L)[0])


def richards_inflection_pct_of_ceiling(nu: float) -> float:
    """Lage des Wendepunkts in % der Obergrenze: (n/(1+n))^(1/n) * 100."""
    n = max(1e-6, nu)
    return math.pow(n / (1.0 + n), 1.0 / n) * 100.0


def richards_inflection_label(nu: float) -> str:
    return f"Inflection at {richards_inflection_pct_of_ceiling(nu):.2f}% of ceiling"


def inflection_text(model: AdoptionModel, nu: float | None = None) -> str:
    """Kurzbeschreibung des Wendepunkts fuer die aktive Kurvenfamilie."""
    if model == "richards":
        return richards_inflection_label(1.0 if nu is None else nu)
    if model == "logistic":
        return "Inflection is fixed at exactly 50% of ceiling."
    if model == "gompertz":
        return "Inflection occurs near 36.8% of ceiling, not 50%."
    if model == "bass":
        return "Peak incremental adoption is driven by p/q balance and social reinforcement."
    return "No inflection point; uptake increases at constant rate until capped."
