"""
Exact-sum search over effective UTXO values.

Dynamic programming over achievable sums: the first subset that reaches a
given sum is kept, so the result is *a* subset hitting the target, not the
smallest one.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from satselect.models import EffectiveUtxo


def find_exact_sum(
    utxos: Sequence[EffectiveUtxo],
    target: int,
    max_states: int | None = None,
) -> list[EffectiveUtxo] | None:
    """
    Find a subset whose effective values add up to exactly ``target``.

    UTXOs are considered in the given order. Each UTXO extends only the sums
    that were achievable before it was considered, so no UTXO is used twice.

    Args:
        utxos: Candidates with precomputed effective values
        target: Sum to hit
        max_states: Stop recording new sums once this many are tracked
            (the search still checks extensions of known sums against target)

    Returns:
        The subset in input order, or None if the target is not reachable
    """
    # sum -> (previous sum, index of the UTXO that extended it)
    achieved: dict[int, tuple[int, int] | None] = {0: None}
    # Sums above target can never come back down when every value is positive
    prune_above_target = all(u.effective_value > 0 for u in utxos)

    for index, utxo in enumerate(utxos):
        for achieved_sum in list(achieved):
            new_sum = achieved_sum + utxo.effective_value
            if new_sum in achieved:
                continue
            if prune_above_target and new_sum > target:
                continue
            if new_sum == target:
                achieved[new_sum] = (achieved_sum, index)
                subset = _reconstruct(achieved, new_sum, utxos)
                logger.trace(f"Exact sum {target} reached with {len(subset)} inputs")
                return subset
            if max_states is not None and len(achieved) >= max_states:
                continue
            achieved[new_sum] = (achieved_sum, index)

    logger.trace(f"Exact sum {target} not reachable ({len(achieved)} sums explored)")
    return None


def _reconstruct(
    achieved: dict[int, tuple[int, int] | None],
    final_sum: int,
    utxos: Sequence[EffectiveUtxo],
) -> list[EffectiveUtxo]:
    indices: list[int] = []
    link = achieved[final_sum]
    while link is not None:
        previous_sum, index = link
        indices.append(index)
        link = achieved[previous_sum]
    return [utxos[i] for i in reversed(indices)]
