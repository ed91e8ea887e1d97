"""Therapie-Presets fuer Persistenzkurven und Benchmark-Overlays.

Typische Verlaeufe onkologischer Therapien als Startpunkt fuer die
Modellierung. Dieselben Presets dienen als Vergleichskurven (Benchmarks).
"""

from __future__ import annotations

from uptake_lab.domain.models import (
    BenchmarkSeries,
    ExponentialParams,
    LogNormalParams,
    MixtureCureParams,
    PersistencyState,
    PiecewiseKnot,
    PiecewiseParams,
    Preset,
    WeibullParams,
)
from uptake_lab.domain.scenarios import SCENARIO_COLORS
from uptake_lab.domain.series import compute_survival_series

PRESETS: tuple[Preset, ...] = (
    Preset(
        id="ioMonotherapy",
        label="IO Monotherapy (e.g., Pembrolizumab)",
        description=(
            "Moderate early dropout with a long tail of durable responders. "
            "Shape k < 1 gives decreasing hazard."
        ),
        model="weibull",
        params=WeibullParams(lam=8, k=0.7, ceiling=100),
    ),
    Preset(
        id="chemotherapy",
        label="Chemotherapy (6-cycle regimen)",
        description=(
            "Steep initial drop: most patients complete 4-6 cycles then discontinue. "
            "Nearly exponential decay."
        ),
        model="exponential",
        params=ExponentialParams(lam=0.15, ceiling=100),
    ),
    Preset(
        id="oralTKI",
        label="Oral TKI (e.g., Osimertinib)",
        description=(
            "Log-normal curve: high early persistence, median ~14 months, gradual late dropout."
        ),
        model="log_normal",
        params=LogNormalParams(median_months=14, sigma=0.8, ceiling=100),
    ),
    Preset(
        id="carT",
        label="CAR-T (one-time infusion)",
        description=(
            "Mixture cure model: ~35% of patients achieve durable complete response "
            "(cured fraction)."
        ),
        model="mixture_cure",
        params=MixtureCureParams(pi=0.35, lam=6, k=1.2),
    ),
    Preset(
        id="adjuvant",
        label="Adjuvant Therapy (12-month course)",
        description=(
            "Piecewise linear: 95% at 3 months, 80% at 6, 60% at 9, "
            "40% completing full 12 months."
        ),
        model="piecewise",
        params=PiecewiseParams(
            knots=[
                PiecewiseKnot(month=m, survival=s)
                for m, s in ((0, 100), (3, 95), (6, 80), (9, 60), (12, 40), (18, 15), (24, 5))
            ]
        ),
    ),
    Preset(
        id="maintenance",
        label="Maintenance Therapy (long-term)",
        description=(
            "Weibull with high k (increasing hazard): patients tolerate well initially, "
            "dropout accelerates over time."
        ),
        model="weibull",
        params=WeibullParams(lam=18, k=1.5, ceiling=100),
    ),
)

_BY_ID: dict[str, Preset] = {p.id: p for p in PRESETS}


def get_preset(preset_id: str) -> Preset | None:
    return _BY_ID.get(preset_id)


def load_preset(state: PersistencyState, preset_id: str) -> PersistencyState:
    """
    Preset in den Zustand laden: Parameter seines Modells ersetzen und aktivieren.

    Raises:
        KeyError: bei unbekannter Preset-ID.
    """
    preset = _BY_ID.get(preset_id)
    if preset is None:
        raise KeyError(f"Unbekanntes Preset: {preset_id}")
    params = state.params.model_copy(
        update={preset.model: preset.params.model_copy(deep=True)}
    )
    return state.model_copy(
        update={"active_model": preset.model, "params": params, "active_preset_id": preset.id}
    )


def benchmark_series(preset_ids: list[str], horizon: int) -> list[BenchmarkSeries]:
    """Persistenzreihen der gewaehlten Presets als Vergleichskurven; unbekannte IDs entfallen."""
    result = []
    for index, preset_id in enumerate(pid for pid in preset_ids if pid in _BY_ID):
        preset = _BY_ID[preset_id]
        result.append(
            BenchmarkSeries(
                id=preset.id,
                label=preset.label,
                color=SCENARIO_COLORS[index % len(SCENARIO_COLORS)],
                series=compute_survival_series(preset.params, horizon),
            )
        )
    return result
