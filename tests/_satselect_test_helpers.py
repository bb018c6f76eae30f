"""
Shared test helpers for satselect tests.

Constants and factory functions used across test files.
Separated from conftest.py to avoid import collisions.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import combinations

from satselect.models import ScriptType, Utxo

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DUST = 546
P2PKH_INPUT = 148
CHANGE_OUTPUT = 34


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


def make_utxo(
    value: int,
    index: int = 0,
    script_type: ScriptType | None = None,
) -> Utxo:
    """Create a UTXO with a txid derived from ``index``."""
    return Utxo(
        txid=f"{index:064x}",
        vout=index % 4,
        value=value,
        address=f"bcrt1qtest{index}",
        script_type=script_type,
    )


def make_utxos(
    values: Sequence[int],
    script_type: ScriptType | None = None,
) -> list[Utxo]:
    """Create one UTXO per value, all with the same script type."""
    return [make_utxo(v, i, script_type) for i, v in enumerate(values)]


def min_waste_brute_force(effective_values: Sequence[int], target: int) -> int | None:
    """Smallest ``sum - target`` over all subsets covering ``target``."""
    best: int | None = None
    for size in range(1, len(effective_values) + 1):
        for combo in combinations(effective_values, size):
            total = sum(combo)
            if total >= target and (best is None or total - target < best):
                best = total - target
    return best
