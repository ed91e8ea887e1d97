"""Tests fuer Therapie-Presets (domain/presets.py)."""

import pytest

from uptake_lab.domain.models import PersistencyState
from uptake_lab.domain.presets import PRESETS, benchmark_series, get_preset, load_preset


class TestPresets:
    def test_unique_ids(self):
        ids = [p.id for p in PRESETS]
        assert len(ids) == len(set(ids)) == 6

    def test_model_matches_params(self):
        for preset in PRESETS:
            assert preset.params.model == preset.model

    def test_get_unknown(self):
        assert get_preset("unknown") is None


class TestLoadPreset:
    """Preset ersetzt nur die Parameter seines Modells."""

    def test_load(self):
        state = PersistencyState()
        new = load_preset(state, "chemotherapy")
        assert new.active_model == "exponential"
        assert new.active_preset_id == "chemotherapy"
        assert new.params.exponential == get_preset("chemotherapy").params
        assert new.params.weibull == state.params.weibull

    def test_unknown_raises(self):
        with pytest.raises(KeyError):
            load_preset(PersistencyState(), "unknown")


class TestBenchmarkSeries:
    def test_unknown_ids_skipped(self):
        result = benchmark_series(["carT", "nope", "adjuvant"], 24)
        assert [b.id for b in result] == ["carT", "adjuvant"]
        assert all(len(b.series) == 25 for b in result)
        assert result[0].color != result[1].color

    def test_empty(self):
        assert benchmark_series([], 12) == []
