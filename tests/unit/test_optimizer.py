"""Tests fuer den begrenzten Nelder-Mead (domain/optimizer.py)."""

import math

import numpy as np
import pytest

from uptake_lab.domain.optimizer import (
    Bound,
    NelderMeadOptions,
    bounded_nelder_mead,
    deterministic_restarts,
    multi_start_minimize,
)


def _bowl(x):
    return float((x[0] - 3.0) ** 2 + (x[1] + 1.0) ** 2)


class TestBoundedNelderMead:
    """Konvergenz, Grenzen und Abbruch."""

    def test_quadratic_bowl(self):
        result = bounded_nelder_mead(
            _bowl, [Bound(-10, 10), Bound(-10, 10)], [0.0, 0.0],
            NelderMeadOptions(max_iterations=2000, tolerance=1e-12),
        )
        assert result.x[0] == pytest.approx(3.0, abs=1e-3)
        assert result.x[1] == pytest.approx(-1.0, abs=1e-3)
        assert result.fx < 1e-5

    def test_minimum_outside_box_hits_bound(self):
        result = bounded_nelder_mead(
            lambda x: float((x[0] - 50.0) ** 2), [Bound(0, 10)], [5.0],
            NelderMeadOptions(max_iterations=500),
        )
        assert 0.0 <= result.x[0] <= 10.0
        assert result.x[0] == pytest.approx(10.0, abs=1e-2)

    def test_every_evaluation_within_bounds(self):
        seen = []

        def objective(x):
            seen.append(x.copy())
            return _bowl(x)

        bounds = [Bound(-2, 1), Bound(0, 5)]
        bounded_nelder_mead(objective, bounds, [0.5, 2.0])
        arr = np.array(seen)
        assert arr[:, 0].min() >= -2 and arr[:, 0].max() <= 1
        assert arr[:, 1].min() >= 0 and arr[:, 1].max() <= 5

    def test_start_at_bound_is_encoded(self):
        result = bounded_nelder_mead(_bowl, [Bound(3, 4), Bound(-1, 0)], [3.0, -1.0])
        assert math.isfinite(result.fx)

    def test_iteration_cap(self):
        result = bounded_nelder_mead(
            _bowl, [Bound(-10, 10), Bound(-10, 10)], [9.0, 9.0],
            NelderMeadOptions(max_iterations=3, tolerance=0.0),
        )
        assert result.iterations == 3

    def test_constant_objective_stops_immediately(self):
        result = bounded_nelder_mead(lambda x: 1.0, [Bound(0, 1)], [0.5])
        assert result.iterations == 0
        assert result.fx == 1.0

    def test_nan_loses(self):
        def objective(x):
            return float("nan") if x[0] > 0.5 else float((x[0] - 0.3) ** 2)

        result = bounded_nelder_mead(objective, [Bound(0, 1)], [0.45])
        assert result.x[0] == pytest.approx(0.3, abs=1e-2)
        assert not math.isnan(result.fx)

    def test_deterministic(self):
        bounds = [Bound(-10, 10), Bound(-10, 10)]
        a = bounded_nelder_mead(_bowl, bounds, [1.0, 1.0])
        b = bounded_nelder_mead(_bowl, bounds, [1.0, 1.0])
        assert a == b


class TestMalformedBounds:
    """Ungueltige Grenzen sind Programmierfehler."""

    @pytest.mark.parametrize(
        "bounds,start",
        [
            ([Bound(1, 1)], [1.0]),
            ([Bound(2, 1)], [1.5]),
            ([Bound(0, math.inf)], [1.0]),
            ([Bound(math.nan, 1)], [0.5]),
            ([Bound(0, 1)], [0.5, 0.5]),
        ],
    )
    def test_raises(self, bounds, start):
        with pytest.raises(ValueError):
            bounded_nelder_mead(_bowl, bounds, start)


class TestMultiStart:
    """Deterministische Neustarts."""

    def test_restart_vectors(self):
        starts = deterministic_restarts([5.0, 0.95], [Bound(0, 10), Bound(0, 1)])
        assert starts[0] == [5.0, 0.95]
        assert starts[1] == pytest.approx([5.8, 1.0])
        assert starts[2] == pytest.approx([4.2, 0.87])

    def test_best_of_three(self):
        result = multi_start_minimize(
            _bowl, [Bound(-10, 10), Bound(-10, 10)], [-8.0, 8.0],
            NelderMeadOptions(max_iterations=1000, tolerance=1e-12),
        )
        assert result.x[0] == pytest.approx(3.0, abs=1e-3)
        assert result.x[1] == pytest.approx(-1.0, abs=1e-3)

    def test_validates_bounds(self):
        with pytest.raises(ValueError):
            multi_start_minimize(_bowl, [Bound(0, 1)], [0.1, 0.2])

    def test_first_start_wins_ties(self):
        # konstante Zielfunktion: alle Starts gleich gut, erster Start bleibt
        result = multi_start_minimize(lambda x: 2.0, [Bound(0, 10)], [4.0])
        assert result.x[0] == pytest.approx(4.0)
        assert result.fx == 2.0
