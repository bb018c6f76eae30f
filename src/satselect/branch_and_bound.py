"""
Branch-and-bound UTXO selection.

Looks for the subset of UTXOs whose effective values cover the target with
the least waste (``sum(effective values) - target``). An exact-sum pass runs
first; if it misses, a depth-first include/exclude search walks the UTXOs in
ascending value order, include-branch first, until it has explored the whole
tree or used up its node budget.

The search uses an explicit work stack instead of recursion so wallets with
many UTXOs cannot exhaust the interpreter's call stack.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from loguru import logger

from satselect.amounts import calculate_fee
from satselect.config import SelectionOptions
from satselect.exact_sum import find_exact_sum
from satselect.models import BranchAndBoundOutcome, EffectiveUtxo, SearchStatus, Utxo

# How many nodes are visited between two polls of the cancellation hook
STOP_CHECK_INTERVAL = 1024


def select_branch_and_bound(
    utxos: Sequence[Utxo],
    target: int,
    fee_rate: float,
    options: SelectionOptions | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> BranchAndBoundOutcome:
    """
    Select the minimal-waste subset of UTXOs covering ``target``.

    Args:
        utxos: Spendable UTXOs
        target: Amount the effective values must cover, in satoshis
        fee_rate: Fee rate in sat/vB
        options: Sizing options (input size, dust threshold, budgets)
        should_stop: Optional cancellation hook, polled during the search

    Returns:
        FOUND with the best selection when the search completed,
        EXHAUSTED (with the best selection so far, if any) when the node
        budget or the cancellation hook ended it early, INFEASIBLE when no
        subset can cover the target.
    """
    if options is None:
        options = SelectionOptions()

    if target <= 0:
        return BranchAndBoundOutcome(status=SearchStatus.INFEASIBLE)

    input_cost = calculate_fee(options.input_size, fee_rate)
    candidates = sorted(
        (EffectiveUtxo(utxo=u, effective_value=u.value - input_cost) for u in utxos),
        key=lambda c: c.value,
    )
    # Not worth spending
    candidates = [c for c in candidates if c.effective_value > 0]

    available = sum(c.effective_value for c in candidates)
    if available < target:
        logger.debug(
            f"Branch-and-bound infeasible: {available} effective sats available, "
            f"{target} needed"
        )
        return BranchAndBoundOutcome(status=SearchStatus.INFEASIBLE)

    exact = find_exact_sum(candidates, target, max_states=options.max_exact_sum_states)
    if exact is not None:
        logger.debug(f"Exact-sum match with {len(exact)} inputs")
        return _build_outcome(
            SearchStatus.FOUND,
            exact,
            target,
            input_cost,
            options.dust_threshold,
            tries=0,
            exact_match=True,
        )

    best, tries, completed = _depth_first_search(
        candidates, target, options.max_tries, should_stop
    )

    if best is None:
        if completed:
            return BranchAndBoundOutcome(status=SearchStatus.INFEASIBLE, tries=tries)
        logger.warning(f"Branch-and-bound gave up after {tries} nodes without a selection")
        return BranchAndBoundOutcome(status=SearchStatus.EXHAUSTED, tries=tries)

    if not completed:
        logger.warning(
            f"Branch-and-bound stopped after {tries} nodes, using best selection so far"
        )
    status = SearchStatus.FOUND if completed else SearchStatus.EXHAUSTED
    return _build_outcome(status, best, target, input_cost, options.dust_threshold, tries=tries)


def _depth_first_search(
    candidates: list[EffectiveUtxo],
    target: int,
    max_tries: int,
    should_stop: Callable[[], bool] | None,
) -> tuple[list[EffectiveUtxo] | None, int, bool]:
    """
    Include/exclude search over ``candidates`` (ascending by value).

    Returns:
        (best selection or None, nodes visited, whether the tree was fully explored)
    """
    count = len(candidates)
    values = [c.effective_value for c in candidates]

    # remaining[i] = sum of values[i:]
    remaining = [0] * (count + 1)
    for i in range(count - 1, -1, -1):
        remaining[i] = remaining[i + 1] + values[i]

    best: tuple[int, ...] | None = None
    best_waste: int | None = None
    tries = 0

    # (next index, effective value so far, chosen indices)
    stack: list[tuple[int, int, tuple[int, ...]]] = [(0, 0, ())]

    while stack:
        index, value, chosen = stack[-1]

        # Pruned nodes are dropped without counting against the budget
        if value >= target:
            if best_waste is not None and value - target >= best_waste:
                stack.pop()
                continue
        elif (
            index >= count
            or value + remaining[index] < target
            # Any covering extension adds at least values[index]
            or (best_waste is not None and value + values[index] - target >= best_waste)
        ):
            stack.pop()
            continue

        if tries >= max_tries:
            return _pick(candidates, best), tries, False
        if should_stop is not None and tries % STOP_CHECK_INTERVAL == 0 and should_stop():
            logger.debug(f"Branch-and-bound cancelled after {tries} nodes")
            return _pick(candidates, best), tries, False

        stack.pop()
        tries += 1

        if value >= target:
            best = chosen
            best_waste = value - target
            if best_waste == 0:
                # Nothing can beat a zero-waste selection
                break
            continue

        stack.append((index + 1, value, chosen))
        stack.append((index + 1, value + values[index], (*chosen, index)))

    return _pick(candidates, best), tries, True


def _pick(
    candidates: list[EffectiveUtxo], chosen: tuple[int, ...] | None
) -> list[EffectiveUtxo] | None:
    if chosen is None:
        return None
    return [candidates[i] for i in chosen]


def _build_outcome(
    status: SearchStatus,
    selection: list[EffectiveUtxo],
    target: int,
    input_cost: int,
    dust_threshold: int,
    tries: int,
    exact_match: bool = False,
) -> BranchAndBoundOutcome:
    fee = len(selection) * input_cost
    change = sum(c.value for c in selection) - target - fee
    if 0 < change < dust_threshold:
        fee += change
        change = 0
    return BranchAndBoundOutcome(
        status=status,
        inputs=[c.utxo for c in selection],
        fee=fee,
        change=change,
        tries=tries,
        exact_match=exact_match,
    )
