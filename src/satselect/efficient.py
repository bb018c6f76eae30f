"""
Standard (minimal waste) UTXO selection.

Strategy, in order:
1. A single UTXO that pays the target with less than dust left over
2. Branch-and-bound over effective values
3. Largest-first accumulation as the fallback
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from loguru import logger

from satselect.amounts import calculate_fee
from satselect.branch_and_bound import select_branch_and_bound
from satselect.config import SelectionOptions
from satselect.constants import INSUFFICIENT_FUNDS_MESSAGE
from satselect.models import SelectionError, SelectionResult, Utxo


def select_efficient(
    utxos: Sequence[Utxo],
    target_amount: int,
    fee_rate: float,
    options: SelectionOptions | None = None,
) -> SelectionResult:
    """
    Select UTXOs for a standard payment.

    Args:
        utxos: Spendable UTXOs (not modified)
        target_amount: Amount to pay in satoshis
        fee_rate: Fee rate in sat/vB
        options: Dust threshold, input and change output sizes

    Returns:
        SelectionResult; on failure ``error`` is set and ``inputs`` is empty
    """
    if options is None:
        options = SelectionOptions()

    if target_amount <= 0:
        return SelectionResult.failed(
            SelectionError.INVALID_REQUEST, f"Target amount must be positive, got {target_amount}"
        )
    if not math.isfinite(fee_rate) or fee_rate < 0:
        return SelectionResult.failed(
            SelectionError.INVALID_REQUEST,
            f"Fee rate must be finite and non-negative, got {fee_rate}",
        )

    cost_to_spend = calculate_fee(options.input_size, fee_rate)
    spendable = [u for u in utxos if u.value > cost_to_spend]
    if not spendable:
        # Nothing is worth spending on its own; still try with everything
        spendable = list(utxos)

    spendable.sort(key=lambda u: u.value)

    single = _single_input_match(spendable, target_amount, fee_rate, options)
    if single is not None:
        return single

    outcome = select_branch_and_bound(spendable, target_amount, fee_rate, options)
    if outcome.has_selection:
        logger.debug(
            f"Branch-and-bound selected {len(outcome.inputs)} inputs "
            f"({outcome.status.value}, {outcome.tries} nodes)"
        )
        return SelectionResult(
            inputs=outcome.inputs,
            fee=outcome.fee,
            change=outcome.change,
            algorithm="branch_and_bound",
        )

    return _accumulate(spendable, target_amount, fee_rate, options)


def _single_input_match(
    utxos: list[Utxo],
    target_amount: int,
    fee_rate: float,
    options: SelectionOptions,
) -> SelectionResult | None:
    fee = calculate_fee(options.input_size + options.change_output_size, fee_rate)
    for utxo in utxos:
        net_value = utxo.value - fee
        # Strict: a difference equal to the dust threshold does not qualify.
        # Net value below target would leave negative change.
        if 0 <= net_value - target_amount < options.dust_threshold:
            logger.debug(f"Single input {utxo.outpoint} matches target {target_amount}")
            return SelectionResult(
                inputs=[utxo],
                fee=fee,
                change=utxo.value - target_amount - fee,
                algorithm="exact_match",
            )
    return None


def _accumulate(
    utxos: list[Utxo],
    target_amount: int,
    fee_rate: float,
    options: SelectionOptions,
) -> SelectionResult:
    selected: list[Utxo] = []
    selected_amount = 0
    fee = 0

    for utxo in reversed(utxos):
        selected.append(utxo)
        selected_amount += utxo.value
        fee = calculate_fee(
            len(selected) * options.input_size + options.change_output_size, fee_rate
        )
        if selected_amount >= target_amount + fee:
            break
    else:
        logger.debug(
            f"Insufficient funds: need {target_amount} + fee, have {selected_amount}"
        )
        return SelectionResult.failed(
            SelectionError.INSUFFICIENT_FUNDS, INSUFFICIENT_FUNDS_MESSAGE
        )

    change = selected_amount - target_amount - fee
    if change < options.dust_threshold:
        fee += change
        change = 0

    logger.debug(f"Accumulative selection of {len(selected)} inputs, fee {fee}")
    return SelectionResult(
        inputs=selected,
        fee=fee,
        change=change,
        algorithm="accumulative",
    )
