"""
Privacy-oriented UTXO selection (STONEWALL).

Builds transactions with several inputs and several outputs, one paying the
recipient and the rest returning change in uneven amounts, so an observer
cannot easily tell which output is the payment or whether more than one
party took part.

The search is randomized: each trial samples an input and output count,
draws inputs, sizes the fee and splits the change. The best-scoring feasible
trial wins. All randomness comes from the ``rng`` argument, so a seeded
``random.Random`` gives reproducible results and concurrent callers do not
share state.
"""

from __future__ import annotations

import math
import random
from collections import Counter
from collections.abc import Callable, Sequence

from loguru import logger

from satselect.amounts import calculate_fee
from satselect.config import StonewallOptions
from satselect.constants import INSUFFICIENT_FUNDS_MESSAGE, STONEWALL_NOT_FOUND_MESSAGE
from satselect.models import (
    ChangeOutput,
    ScriptType,
    SelectionError,
    StonewallResult,
    Utxo,
)

# Per-output variance applied when splitting change inside a trial
CHANGE_VARIANCE = 0.2

# Scoring weights
SCORE_PER_INPUT = 10
SCORE_PER_OUTPUT = 15
SCORE_PER_INPUT_TYPE = 20
SCORE_PER_CHANGE_TYPE = 20
SCORE_CHANGE_UNIFORMITY = 50
SCORE_NO_VALUE_MATCH_BONUS = 30

# Entropy is scaled by this factor and capped at 100
ENTROPY_SCALE = 25
ENTROPY_MAX = 100.0


def select_privacy(
    utxos: Sequence[Utxo],
    target_amount: int,
    fee_rate: float,
    options: StonewallOptions | None = None,
    rng: random.Random | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> StonewallResult:
    """
    Select UTXOs and build a STONEWALL output structure.

    Args:
        utxos: Spendable UTXOs (not modified)
        target_amount: Amount to pay the recipient in satoshis
        fee_rate: Fee rate in sat/vB
        options: Input/output bounds, sizes and attempt budget
        rng: Random source; a fresh unseeded one is used if omitted
        should_stop: Optional cancellation hook, checked before every trial

    Returns:
        The highest-scoring structure found, or a result with ``error`` set
    """
    if options is None:
        options = StonewallOptions()
    if rng is None:
        rng = random.Random()

    if target_amount <= 0:
        return StonewallResult.failed(
            SelectionError.INVALID_REQUEST, f"Target amount must be positive, got {target_amount}"
        )
    if not math.isfinite(fee_rate) or fee_rate < 0:
        return StonewallResult.failed(
            SelectionError.INVALID_REQUEST,
            f"Fee rate must be finite and non-negative, got {fee_rate}",
        )
    if target_amount < options.dust_threshold:
        return StonewallResult.failed(
            SelectionError.INVALID_REQUEST,
            f"Target amount {target_amount} is below the dust threshold "
            f"{options.dust_threshold}",
        )

    total_available = sum(u.value for u in utxos)
    if total_available < target_amount:
        return StonewallResult.failed(SelectionError.INSUFFICIENT_FUNDS, INSUFFICIENT_FUNDS_MESSAGE)

    buckets = group_by_script_type(utxos)
    # Inputs are only drawn from the first script type seen in the wallet
    script_type, bucket = next(iter(buckets.items()))
    if len(bucket) < options.min_inputs:
        logger.debug(
            f"Only {len(bucket)} {script_type.value} UTXOs, "
            f"{options.min_inputs} inputs required"
        )
        return StonewallResult.failed(SelectionError.INFEASIBLE, STONEWALL_NOT_FOUND_MESSAGE)
    if not _can_cover(bucket, script_type, target_amount, fee_rate, options):
        logger.debug(
            f"No draw from {len(bucket)} {script_type.value} UTXOs can pay "
            f"{target_amount} plus fees and change"
        )
        return StonewallResult.failed(SelectionError.INFEASIBLE, STONEWALL_NOT_FOUND_MESSAGE)

    best: StonewallResult | None = None
    feasible = 0
    attempts = 0

    for _ in range(options.max_attempts):
        if should_stop is not None and should_stop():
            logger.debug(f"STONEWALL search cancelled after {attempts} attempts")
            break
        attempts += 1

        trial = _run_trial(bucket, script_type, target_amount, fee_rate, options, rng)
        if trial is None:
            continue
        feasible += 1
        if best is None or trial.privacy_score > best.privacy_score:
            best = trial

    logger.debug(f"STONEWALL search: {feasible} feasible trials out of {attempts}")

    if best is None:
        return StonewallResult.failed(SelectionError.EXHAUSTED, STONEWALL_NOT_FOUND_MESSAGE)
    return best


def group_by_script_type(utxos: Sequence[Utxo]) -> dict[ScriptType, list[Utxo]]:
    """Group UTXOs by script type in order of first appearance (untyped count as P2PKH)."""
    buckets: dict[ScriptType, list[Utxo]] = {}
    for utxo in utxos:
        script_type = utxo.script_type or ScriptType.P2PKH
        buckets.setdefault(script_type, []).append(utxo)
    return buckets


def _can_cover(
    bucket: list[Utxo],
    script_type: ScriptType,
    target_amount: int,
    fee_rate: float,
    options: StonewallOptions,
) -> bool:
    """
    Whether any trial could succeed at all.

    Best case for every input count a trial can draw: the largest UTXOs of
    the bucket, the fewest change outputs, each at the smallest output size.
    """
    values = sorted((u.value for u in bucket), reverse=True)
    input_size = options.input_size(script_type)
    recipient_size = options.output_size(options.recipient_type)
    num_change = options.min_outputs - 1
    change_size = min(options.output_size(t) for t in ScriptType) * num_change

    total = sum(values[: options.min_inputs - 1])
    for count in range(options.min_inputs, min(options.max_inputs, len(values)) + 1):
        total += values[count - 1]
        inputs_size = count * input_size
        base_fee = calculate_fee(inputs_size + recipient_size + options.tx_overhead, fee_rate)
        fee = calculate_fee(
            inputs_size + recipient_size + change_size + options.tx_overhead, fee_rate
        )
        if (
            total - target_amount - base_fee > 0
            and total - target_amount - fee >= options.dust_threshold * num_change
        ):
            return True
    return False


def _run_trial(
    bucket: list[Utxo],
    script_type: ScriptType,
    target_amount: int,
    fee_rate: float,
    options: StonewallOptions,
    rng: random.Random,
) -> StonewallResult | None:
    num_outputs = rng.randint(options.min_outputs, options.max_outputs)
    num_inputs = rng.randint(options.min_inputs, options.max_inputs)

    pool = list(bucket)
    inputs: list[Utxo] = []
    while len(inputs) < num_inputs and pool:
        inputs.append(pool.pop(rng.randrange(len(pool))))

    total_input = sum(u.value for u in inputs)
    inputs_size = len(inputs) * options.input_size(script_type)
    recipient_size = options.output_size(options.recipient_type)

    base_fee = calculate_fee(inputs_size + recipient_size + options.tx_overhead, fee_rate)
    if total_input - target_amount - base_fee <= 0:
        return None

    num_change = num_outputs - 1
    change_types = [rng.choice(list(ScriptType)) for _ in range(num_change)]
    change_sizes = [options.output_size(t) for t in change_types]

    tx_size = inputs_size + recipient_size + sum(change_sizes) + options.tx_overhead
    fee = calculate_fee(tx_size, fee_rate)
    total_change = total_input - target_amount - fee
    if total_change < options.dust_threshold * num_change:
        return None

    if num_change == 0:
        # No change output to carry the leftover
        fee += total_change
        change_values: list[int] = []
    else:
        change_values = _split_with_variance(total_change, num_change, rng)
        if any(v < options.dust_threshold for v in change_values):
            return None

    outputs = [
        ChangeOutput(
            type=options.recipient_type,
            value=target_amount,
            size=recipient_size,
            is_recipient=True,
        )
    ]
    outputs.extend(
        ChangeOutput(type=t, value=v, size=s)
        for t, v, s in zip(change_types, change_values, change_sizes, strict=True)
    )

    return StonewallResult(
        inputs=inputs,
        outputs=outputs,
        fee=fee,
        privacy_score=privacy_score(inputs, outputs, target_amount),
        tx_size=tx_size,
    )


def _split_with_variance(total: int, count: int, rng: random.Random) -> list[int]:
    """Split ``total`` into ``count`` parts, each within ±20% of the average
    except the last one which takes the exact remainder."""
    average = total / count
    parts = [
        int(average * rng.uniform(1 - CHANGE_VARIANCE, 1 + CHANGE_VARIANCE))
        for _ in range(count - 1)
    ]
    parts.append(total - sum(parts))
    return parts


def privacy_score(
    inputs: Sequence[Utxo],
    outputs: Sequence[ChangeOutput],
    target_amount: int,
) -> float:
    """
    Heuristic score of a STONEWALL structure; higher is more ambiguous.

    Rewards more inputs and outputs, script type diversity, change outputs of
    similar size, and the absence of an input that matches the payment or an
    output value.
    """
    change_outputs = [o for o in outputs if not o.is_recipient]

    score: float = SCORE_PER_INPUT * len(inputs) + SCORE_PER_OUTPUT * len(outputs)
    score += SCORE_PER_INPUT_TYPE * len({u.script_type or ScriptType.P2PKH for u in inputs})
    score += SCORE_PER_CHANGE_TYPE * len({o.type for o in change_outputs})

    change_values = [o.value for o in change_outputs]
    if change_values and max(change_values) > 0:
        score += SCORE_CHANGE_UNIFORMITY * (min(change_values) / max(change_values))

    output_values = {o.value for o in outputs}
    if not any(u.value == target_amount or u.value in output_values for u in inputs):
        score += SCORE_NO_VALUE_MATCH_BONUS

    return score


def calculate_entropy(solution: StonewallResult) -> float:
    """
    Shannon entropy of the input and output values, scaled to 0-100.

    Computed over the frequency distribution of all values in the
    transaction, ``-sum(p * log2(p))``, multiplied by 25 and capped at 100.
    Independent of the search's internal score.
    """
    values = [u.value for u in solution.inputs] + [o.value for o in solution.outputs]
    if not values:
        return 0.0

    counts = Counter(values)
    total = len(values)
    entropy = -sum((n / total) * math.log2(n / total) for n in counts.values())
    return min(ENTROPY_MAX, max(0.0, entropy * ENTROPY_SCALE))


def distribute_change(
    total_change: int,
    num_outputs: int,
    dust_threshold: int,
    rng: random.Random | None = None,
) -> list[int]:
    """
    Split a change amount into uneven outputs.

    The first ``num_outputs - 1`` amounts cycle through smaller than average,
    larger than average and near average, each with up to ±50 sats of noise;
    the last amount is the remainder. If any piece would end up below the
    dust threshold the change is returned as a single output.

    Args:
        total_change: Amount to split in satoshis
        num_outputs: Desired number of outputs
        dust_threshold: Minimum value of every output
        rng: Random source; a fresh unseeded one is used if omitted

    Returns:
        Amounts summing exactly to ``total_change``
    """
    if rng is None:
        rng = random.Random()

    if num_outputs <= 1 or total_change < dust_threshold * num_outputs:
        return [total_change]

    average = total_change / num_outputs
    amounts: list[int] = []
    for i in range(num_outputs - 1):
        position = i % 3
        if position == 0:
            factor = rng.uniform(0.7, 0.9)
        elif position == 1:
            factor = rng.uniform(1.1, 1.3)
        else:
            factor = rng.uniform(0.95, 1.05)
        amounts.append(int(average * factor) + rng.randint(-50, 50))

    amounts.append(total_change - sum(amounts))

    if any(a < dust_threshold for a in amounts):
        return [total_change]
    return amounts
