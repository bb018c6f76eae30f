"""
Tests for the exact-sum finder.
"""

from __future__ import annotations

from _satselect_test_helpers import make_utxo

from satselect.exact_sum import find_exact_sum
from satselect.models import EffectiveUtxo


def effective(*values: int) -> list[EffectiveUtxo]:
    return [
        EffectiveUtxo(utxo=make_utxo(abs(v) + 100, i), effective_value=v)
        for i, v in enumerate(values)
    ]


class TestFindExactSum:
    def test_single_utxo_hits_target(self):
        candidates = effective(1000, 2000, 3000)
        subset = find_exact_sum(candidates, 2000)
        assert subset == [candidates[1]]

    def test_combination_hits_target(self):
        candidates = effective(1000, 2500, 4000)
        subset = find_exact_sum(candidates, 5000)
        assert subset is not None
        assert sum(c.effective_value for c in subset) == 5000
        assert subset == [candidates[0], candidates[2]]

    def test_unreachable_target(self):
        assert find_exact_sum(effective(1000, 2000, 4000), 2500) is None

    def test_empty_input(self):
        assert find_exact_sum([], 1000) is None

    def test_zero_target_is_not_reported(self):
        """The empty selection is never returned."""
        assert find_exact_sum(effective(1000), 0) is None

    def test_each_utxo_used_at_most_once(self):
        """1000 cannot be doubled to reach 2000."""
        assert find_exact_sum(effective(1000, 5000), 2000) is None

    def test_first_found_subset_is_kept(self):
        """1000+2000 reaches 3000 before the single 3000 UTXO is considered."""
        candidates = effective(1000, 2000, 3000)
        subset = find_exact_sum(candidates, 3000)
        assert subset == [candidates[0], candidates[1]]

    def test_subset_keeps_input_order(self):
        candidates = effective(700, 300, 200, 800)
        subset = find_exact_sum(candidates, 1700)
        assert subset is not None
        indices = [candidates.index(c) for c in subset]
        assert indices == sorted(indices)
        assert sum(c.effective_value for c in subset) == 1700

    def test_negative_values_disable_pruning(self):
        """Overshooting is fine when a later value brings the sum back down."""
        candidates = effective(5000, -2000)
        subset = find_exact_sum(candidates, 3000)
        assert subset == candidates

    def test_state_limit_bounds_search(self):
        """With a tiny table, sums needing intermediate states are missed."""
        candidates = effective(1, 2, 4, 8)
        assert find_exact_sum(candidates, 15) is not None
        assert find_exact_sum(candidates, 15, max_states=2) is None

    def test_soundness_on_many_targets(self):
        candidates = effective(150, 320, 475, 610, 999, 1234)
        for target in range(100, 3800, 37):
            subset = find_exact_sum(candidates, target)
            if subset is not None:
                assert sum(c.effective_value for c in subset) == target
