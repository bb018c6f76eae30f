"""
satselect - UTXO coin selection

Standard (minimal waste) and privacy (STONEWALL) selection over a wallet's
spendable outputs.
"""

__version__ = "0.1.0"

from satselect.branch_and_bound import select_branch_and_bound
from satselect.config import SelectionOptions, StonewallOptions
from satselect.efficient import select_efficient
from satselect.exact_sum import find_exact_sum
from satselect.models import (
    BranchAndBoundOutcome,
    ChangeOutput,
    EffectiveUtxo,
    ScriptType,
    SearchStatus,
    SelectionError,
    SelectionResult,
    StonewallResult,
    Utxo,
)
from satselect.stonewall import calculate_entropy, distribute_change, select_privacy

__all__ = [
    "BranchAndBoundOutcome",
    "ChangeOutput",
    "EffectiveUtxo",
    "ScriptType",
    "SearchStatus",
    "SelectionError",
    "SelectionOptions",
    "SelectionResult",
    "StonewallOptions",
    "StonewallResult",
    "Utxo",
    "calculate_entropy",
    "distribute_change",
    "find_exact_sum",
    "select_branch_and_bound",
    "select_efficient",
    "select_privacy",
]
