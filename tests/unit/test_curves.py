"""Tests fuer Adoptionskurven (domain/curves.py)."""

import math

import numpy as np
import pytest

from uptake_lab.domain.curves import (
    adoption_curve,
    bass_cumulative,
    evaluate_adoption,
    gompertz_function,
    inflection_text,
    logistic_function,
    period_label,
    richards_function,
    richards_inflection_label,
    richards_inflection_pct_of_ceiling,
)
from uptake_lab.domain.models import (
    BassParams,
    GompertzParams,
    LinearParams,
    LogisticParams,
    RichardsParams,
)


class TestClosedForms:
    """Tests fuer die geschlossenen Formen an Randpunkten."""

    def test_logistic_half_ceiling_at_t0(self):
        value = evaluate_adoption(LogisticParams(k=0.3, t0=10), 10, ceiling_pct=80, launch_lag=0)
        assert value == pytest.approx(40.0)

    def test_gompertz_inflection_level(self):
        value = evaluate_adoption(GompertzParams(k=0.3, t0=10), 10, ceiling_pct=100, launch_lag=0)
        assert value == pytest.approx(100.0 / math.e)

    def test_linear_caps_at_ceiling(self):
        params = LinearParams(r=5)
        assert evaluate_adoption(params, 4, 60, 0) == pytest.approx(20.0)
        assert evaluate_adoption(params, 100, 60, 0) == pytest.approx(60.0)

    def test_zero_before_and_at_lag(self):
        for params in (
            LogisticParams(),
            GompertzParams(),
            RichardsParams(),
            LinearParams(),
        ):
            assert evaluate_adoption(params, 3, 100, launch_lag=3) == 0.0
            assert evaluate_adoption(params, 1, 100, launch_lag=3) == 0.0

    def test_lag_shifts_curve(self):
        params = LogisticParams(k=0.4, t0=12)
        shifted = evaluate_adoption(params, 17, 100, launch_lag=5)
        assert shifted == pytest.approx(evaluate_adoption(params, 12, 100, launch_lag=0))

    def test_logistic_symmetry(self):
        te = np.array([5.0, 15.0])
        left, right = logistic_function(te, 100.0, 0.5, 10.0)
        assert left + right == pytest.approx(100.0)


class TestRichards:
    """Richards-Grenzfaelle: nu=1 logistisch, nu->0 Gompertz."""

    def test_nu_one_equals_logistic(self):
        te = np.linspace(0, 40, 41)
        np.testing.assert_allclose(
            richards_function(te, 90.0, 0.3, 18.0, 1.0),
            logistic_function(te, 90.0, 0.3, 18.0),
        )

    def test_tiny_nu_falls_back_to_gompertz(self):
        te = np.linspace(0, 40, 41)
        np.testing.assert_allclose(
            richards_function(te, 90.0, 0.3, 18.0, 1e-4),
            gompertz_function(te, 90.0, 0.3, 18.0),
        )

    def test_small_nu_approaches_gompertz(self):
        te = np.linspace(1, 40, 40)
        np.testing.assert_allclose(
            richards_function(te, 100.0, 0.3, 18.0, 0.002),
            gompertz_function(te, 100.0, 0.3, 18.0),
            atol=0.1,
        )

    def test_inflection_pct(self):
        assert richards_inflection_pct_of_ceiling(1.0) == pytest.approx(50.0)
        expected = math.sqrt(2.0 / 3.0) * 100.0
        assert richards_inflection_pct_of_ceiling(2.0) == pytest.approx(expected)
        # nu wird nach unten auf 1e-6 begrenzt
        assert richards_inflection_pct_of_ceiling(0.0) == richards_inflection_pct_of_ceiling(1e-6)

    def test_inflection_label(self):
        assert richards_inflection_label(1.0) == "Inflection at 50.00% of ceiling"
        assert inflection_text("richards", 1.0) == "Inflection at 50.00% of ceiling"
        assert "50%" in inflection_text("logistic")


class TestBass:
    """Tests fuer die Bass-Diffusion (Euler-Schritt)."""

    def test_first_step(self):
        path = bass_cumulative(3, 100.0, 0.03, 0.38, 0)
        assert path[0] == 0.0
        assert path[1] == pytest.approx(3.0)
        assert path[2] == pytest.approx(3.0 + (0.03 + 0.38 * 0.03) * 97.0)

    def test_monotone_and_bounded(self):
        curve = adoption_curve(BassParams(p=0.05, q=0.8), 120, 70, 4)
        assert np.all(np.diff(curve) >= -1e-12)
        assert curve.max() <= 70.0
        assert curve[:4].tolist() == [0.0, 0.0, 0.0, 0.0]

    def test_scalar_interpolates_between_periods(self):
        params = BassParams()
        p1 = evaluate_adoption(params, 1, 100, 0)
        p2 = evaluate_adoption(params, 2, 100, 0)
        assert evaluate_adoption(params, 1.5, 100, 0) == pytest.approx((p1 + p2) / 2)
        assert evaluate_adoption(params, 0, 100, 0) == 0.0


class TestAdoptionCurve:
    """Tests fuer die vektorisierte Reihe."""

    def test_length_and_bounds(self):
        curve = adoption_curve(LogisticParams(k=0.3, t0=18), 60, 85, 2)
        assert curve.shape == (60,)
        assert curve.min() >= 0.0
        assert curve.max() <= 85.0

    def test_ceiling_clamped_to_100(self):
        curve = adoption_curve(LinearParams(r=50), 10, 150, 0)
        assert curve.max() == pytest.approx(100.0)

    def test_overflow_stays_finite(self):
        curve = adoption_curve(RichardsParams(k=1e4, t0=15, nu=0.01), 20, 100, 0)
        assert np.all(np.isfinite(curve))
        assert curve.max() <= 100.0

    def test_period_labels(self):
        assert period_label(3, "months") == "Month 3"
        assert period_label(12, "weeks") == "Week 12"
