"""Tests fuer KM-Fitting von Persistenzmodellen (domain/survival_fitting.py)."""

import pytest

from uptake_lab.domain.models import (
    FitMetrics,
    FitResult,
    KMDataPoint,
    PersistencyState,
    WeibullParams,
)
from uptake_lab.domain.survival import survival_at
from uptake_lab.domain.survival_fitting import (
    DEFAULT_SURVIVAL_STARTS,
    FITTABLE_SURVIVAL_MODELS,
    apply_survival_fit,
    fit_survival_model,
    fit_survival_models,
    normalize_km_points,
    start_vector,
)


def _weibull_km():
    truth = WeibullParams(lam=14, k=1.3, ceiling=95)
    return [KMDataPoint(month=m, survival=survival_at(truth, m)) for m in (0, 3, 6, 9, 12, 18, 24)]


class TestHelpers:
    def test_later_duplicate_wins(self):
        points = [
            KMDataPoint(month=6, survival=70),
            KMDataPoint(month=0, survival=100),
            KMDataPoint(month=6, survival=65),
        ]
        result = normalize_km_points(points)
        assert [p.month for p in result] == [0, 6]
        assert result[1].survival == 65

    def test_start_from_matching_params(self):
        assert start_vector("weibull", WeibullParams(lam=10, k=2, ceiling=90)) == [10, 2, 90]

    def test_start_default_for_other_model(self):
        assert start_vector("exponential", WeibullParams()) == DEFAULT_SURVIVAL_STARTS["exponential"]
        assert start_vector("log_normal") == DEFAULT_SURVIVAL_STARTS["log_normal"]


class TestFitSurvivalModel:
    """Einzelfit gegen synthetische KM-Daten."""

    def test_recovers_weibull(self):
        result = fit_survival_model("weibull", _weibull_km())
        assert result is not None
        assert result.metrics.r2 > 0.99
        assert result.metrics.mape is None
        assert set(result.fitted_params) == {"lambda", "k", "ceiling"}
        assert result.fitted_params["lambda"] == pytest.approx(14, rel=0.1)

    def test_mixture_cure_param_keys(self):
        result = fit_survival_model("mixture_cure", _weibull_km())
        assert result is not None
        assert set(result.fitted_params) == {"pi", "lambda", "k"}
        assert 0.01 <= result.fitted_params["pi"] <= 0.8

    def test_piecewise_not_fitted(self):
        assert fit_survival_model("piecewise", _weibull_km()) is None

    def test_degenerate(self):
        flat = [KMDataPoint(month=m, survival=80) for m in (0, 6, 12)]
        assert fit_survival_model("weibull", flat) is None
        assert fit_survival_model("weibull", [KMDataPoint(month=0, survival=100)]) is None


class TestFitSurvivalModels:
    def test_all_fittable(self):
        results = fit_survival_models(_weibull_km())
        assert set(results) == set(FITTABLE_SURVIVAL_MODELS)

    def test_uses_state_params_as_start(self):
        state = PersistencyState()
        results = fit_survival_models(_weibull_km(), state=state, models=["exponential"])
        assert list(results) == ["exponential"]


class TestApplySurvivalFit:
    """Uebernahme eines KM-Fits."""

    def test_replaces_only_fitted_model(self):
        state = PersistencyState(active_model="exponential", active_preset_id="chemotherapy")
        result = FitResult(
            model="weibull",
            fitted_params={"lambda": 12.5, "k": 1.4, "ceiling": 97.0},
            metrics=FitMetrics(r2=0.99, rmse=0.3, sse=0.6),
            loss=0.6,
        )
        new = apply_survival_fit(state, result)
        assert new.active_model == "weibull"
        assert new.params.weibull.lam == 12.5
        assert new.params.weibull.ceiling == 97.0
        assert new.params.exponential == state.params.exponential
        assert new.active_preset_id is None

    def test_piecewise_rejected(self):
        result = FitResult(
            model="piecewise",
            fitted_params={},
            metrics=FitMetrics(r2=0.0, rmse=0.0, sse=0.0),
            loss=0.0,
        )
        with pytest.raises(TypeError):
            apply_survival_fit(PersistencyState(), result)
