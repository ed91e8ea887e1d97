"""Tests fuer Adoptions-Meilensteine (domain/milestones.py)."""

from uptake_lab.domain.milestones import derive_milestones, inferred_milestone_period


class TestInferredMilestonePeriod:
    def test_first_crossing_is_one_based(self):
        assert inferred_milestone_period([1, 5, 10, 20], 100, 10) == 3

    def test_never_reached(self):
        assert inferred_milestone_period([1, 2, 3], 100, 90) is None

    def test_relative_to_ceiling(self):
        assert inferred_milestone_period([10, 30, 45], 50, 90) == 3


class TestDeriveMilestones:
    """Meilensteine aus kumulativer und inkrementeller Reihe."""

    def test_worked_example(self):
        cumulative = [5, 12, 30, 55, 80, 92, 99]
        incremental = [5, 7, 18, 25, 25, 12, 7]
        m = derive_milestones(cumulative, incremental, 100)
        assert m.reach10 == 2
        assert m.reach50 == 4
        assert m.reach90 == 6
        assert m.peak_at == 7
        # Gleichstand: fruehere Periode gewinnt
        assert m.peak_growth_at == 4
        assert m.peak_growth_pct == 25

    def test_reference_example(self):
        cumulative = [2, 8, 12, 25, 52, 75, 91, 96]
        incremental = [2, 6, 4, 13, 27, 23, 16, 5]
        m = derive_milestones(cumulative, incremental, 100)
        assert m.reach10 == 3
        assert m.reach50 == 5
        assert m.reach90 == 7
        assert m.peak_growth_at == 5
        assert m.peak_growth_pct == 27
        assert m.peak_at is None

    def test_empty_growth_defaults(self):
        m = derive_milestones([0, 0, 0], [0, 0, 0], 100)
        assert m.peak_growth_at == 1
        assert m.peak_growth_pct == 0.0
        assert m.reach10 is None
        assert m.peak_at is None
        assert m.ceiling_pct == 100
