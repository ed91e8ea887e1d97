"""Tests fuer Persistenzkurven und Hazard (domain/survival.py)."""

import math

import numpy as np
import pytest

from uptake_lab.domain.models import (
    ExponentialParams,
    LogNormalParams,
    MixtureCureParams,
    PiecewiseKnot,
    PiecewiseParams,
    WeibullParams,
)
from uptake_lab.domain.survival import (
    hazard_at,
    normal_cdf,
    survival_at,
    survival_curve,
    weibull_hazard,
)


class TestSurvivalAtBoundaries:
    """Startwerte bei t <= 0 und geschlossene Formen."""

    def test_weibull_at_zero_is_ceiling(self):
        assert survival_at(WeibullParams(lam=8, k=0.7, ceiling=90), 0) == 90.0

    def test_weibull_at_lambda(self):
        value = survival_at(WeibullParams(lam=8, k=1.5, ceiling=100), 8)
        assert value == pytest.approx(100.0 / math.e)

    def test_exponential(self):
        value = survival_at(ExponentialParams(lam=0.1, ceiling=100), 10)
        assert value == pytest.approx(100.0 * math.exp(-1.0))

    def test_exponential_half_life(self):
        lam = 0.1
        value = survival_at(ExponentialParams(lam=lam, ceiling=100), math.log(2) / lam)
        assert value == pytest.approx(50.0)

    def test_log_normal_median(self):
        params = LogNormalParams(median_months=12, sigma=0.8, ceiling=80)
        assert survival_at(params, 12) == pytest.approx(40.0)
        assert survival_at(params, 0) == 80.0

    def test_mixture_cure_plateau(self):
        params = MixtureCureParams(pi=0.3, lam=6, k=1.2)
        assert survival_at(params, 0) == 100.0
        assert survival_at(params, 500) == pytest.approx(30.0)

    def test_alias_lambda(self):
        params = WeibullParams.model_validate({"lambda": 5, "k": 1, "ceiling": 100})
        assert params.lam == 5
        assert params.model_dump(by_alias=True)["lambda"] == 5


class TestPiecewise:
    """Stueckweise lineare Interpolation."""

    def test_interpolates_and_clamps(self):
        params = PiecewiseParams(
            knots=[PiecewiseKnot(month=2, survival=90), PiecewiseKnot(month=6, survival=50)]
        )
        assert survival_at(params, 0) == 90.0
        assert survival_at(params, 4) == pytest.approx(70.0)
        assert survival_at(params, 24) == 50.0

    def test_empty_knots(self):
        assert survival_at(PiecewiseParams(knots=[]), 7) == 100.0

    def test_unsorted_knots(self):
        params = PiecewiseParams(
            knots=[PiecewiseKnot(month=10, survival=20), PiecewiseKnot(month=0, survival=100)]
        )
        assert survival_at(params, 5) == pytest.approx(60.0)


class TestNormalCdf:
    def test_reference_values(self):
        assert float(normal_cdf(0.0)) == pytest.approx(0.5)
        assert float(normal_cdf(1.96)) == pytest.approx(0.9750021, abs=1e-7)
        assert float(normal_cdf(-9.0)) == pytest.approx(0.0, abs=1e-15)


class TestHazard:
    """Analytische und numerische Hazard-Raten."""

    def test_weibull_limits_at_zero(self):
        assert weibull_hazard(0, 8, 0.7) == math.inf
        assert weibull_hazard(0, 8, 1.0) == pytest.approx(1 / 8)
        assert weibull_hazard(0, 8, 1.5) == 0.0

    def test_weibull_constant_for_k_one(self):
        params = WeibullParams(lam=4, k=1, ceiling=100)
        assert hazard_at(params, 3) == pytest.approx(0.25)

    def test_exponential_constant(self):
        assert hazard_at(ExponentialParams(lam=0.15), 12) == 0.15

    def test_log_normal_finite_difference(self):
        params = LogNormalParams(median_months=12, sigma=0.8, ceiling=100)
        t, dt = 6.0, 1e-4
        s = survival_at(params, t)
        numeric = -(survival_at(params, t + dt) - survival_at(params, t - dt)) / (2 * dt) / s
        assert hazard_at(params, t) == pytest.approx(numeric, rel=1e-3)

    def test_piecewise_flat_tail_has_zero_hazard(self):
        params = PiecewiseParams(knots=[PiecewiseKnot(month=0, survival=100)])
        assert hazard_at(params, 5) == 0.0

    def test_piecewise_zero_survival(self):
        params = PiecewiseParams(
            knots=[PiecewiseKnot(month=0, survival=100), PiecewiseKnot(month=2, survival=0)]
        )
        assert hazard_at(params, 10) == 0.0

    def test_mixture_cure_hazard_below_uncured(self):
        params = MixtureCureParams(pi=0.4, lam=6, k=1.0)
        assert hazard_at(params, 6) < 1 / 6
        assert hazard_at(params, 6) > 0

    def test_vectorised_matches_scalar(self):
        params = WeibullParams(lam=10, k=0.9, ceiling=95)
        months = np.arange(0, 13, dtype=float)
        expected = [survival_at(params, m) for m in months]
        np.testing.assert_allclose(survival_curve(params, months), expected)


class TestHazardOverflow:
    """Grosses k ueber langen Horizont: kein Ueberlauf-Fehler."""

    def test_weibull_large_shape_is_infinite(self):
        assert hazard_at(WeibullParams(lam=1, k=150, ceiling=100), 120) == math.inf

    def test_mixture_cure_large_shape(self):
        value = hazard_at(MixtureCureParams(pi=0.3, lam=1, k=150), 120)
        assert value == 0.0

    def test_weibull_small_shape_near_zero(self):
        assert weibull_hazard(1e-300, 1, 0.01) > 0
