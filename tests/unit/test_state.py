"""Tests fuer die Zustands-Wiederherstellung (domain/state.py)."""

from uptake_lab.domain.models import AdoptionState, PersistencyState
from uptake_lab.domain.state import (
    INVALID_STATE_WARNING,
    deep_merge,
    hydrate_adoption_state,
    hydrate_persistency_state,
)


def _scenario(i):
    return {
        "id": f"s{i}",
        "name": f"Scenario {i}",
        "color": "#00d4b4",
        "model": "logistic",
        "params_snapshot": {"model": "logistic", "k": 0.3, "t0": 18},
    }


class TestDeepMerge:
    def test_nested(self):
        merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 3}, {"a": {"y": 5}})
        assert merged == {"a": {"x": 1, "y": 5}, "b": 3}

    def test_lists_replace(self):
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestHydrateAdoptionState:
    """Teildaten werden mit Standardwerten ergaenzt."""

    def test_none_gives_default(self):
        assert hydrate_adoption_state(None) == AdoptionState()

    def test_partial_params(self):
        state = hydrate_adoption_state({"params": {"logistic": {"k": 0.5}}})
        assert state.params.logistic.k == 0.5
        assert state.params.logistic.t0 == 18.0
        assert state.core.horizon == 60

    def test_invalid_falls_back_to_default(self):
        state = hydrate_adoption_state({"core": {"ceiling_pct": 250}})
        assert state == AdoptionState()

    def test_unknown_model_falls_back(self):
        assert hydrate_adoption_state({"active_model": "cubic"}) == AdoptionState()

    def test_scenarios_capped(self):
        state = hydrate_adoption_state({"scenarios": [_scenario(i) for i in range(5)]})
        assert [s.id for s in state.scenarios] == ["s0", "s1", "s2"]

    def test_non_mapping(self):
        assert hydrate_adoption_state(["x"]) == AdoptionState()

    def test_invalid_reports_warning(self):
        warnings = []
        state = hydrate_adoption_state({"core": {"horizon": 0}}, warnings=warnings)
        assert state == AdoptionState()
        assert len(warnings) == 1
        assert warnings[0].startswith(INVALID_STATE_WARNING)

    def test_valid_adds_no_warning(self):
        warnings = []
        hydrate_adoption_state({"core": {"horizon": 24}}, warnings=warnings)
        assert warnings == []


class TestHydratePersistencyState:
    def test_lambda_alias(self):
        state = hydrate_persistency_state({"params": {"weibull": {"lambda": 20}}})
        assert state.params.weibull.lam == 20
        assert state.params.weibull.k == 0.7

    def test_knots_replace(self):
        saved = {"params": {"piecewise": {"knots": [{"month": 0, "survival": 100}]}}}
        state = hydrate_persistency_state(saved)
        assert len(state.params.piecewise.knots) == 1

    def test_default(self):
        assert hydrate_persistency_state({}) == PersistencyState()
