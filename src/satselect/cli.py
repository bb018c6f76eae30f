"""
satselect CLI.

Runs the coin selectors against a JSON file of UTXOs, for testing selection
parameters without a wallet.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from satselect.amounts import format_amount
from satselect.cli_common import load_utxos, setup_cli
from satselect.config import SelectionOptions, StonewallOptions
from satselect.efficient import select_efficient
from satselect.models import SelectionResult, StonewallResult, Utxo
from satselect.settings import ensure_config_file
from satselect.stonewall import calculate_entropy, distribute_change, select_privacy

app = typer.Typer(
    name="satselect",
    help="UTXO coin selection (efficient and STONEWALL)",
    add_completion=False,
)


def main() -> None:
    """Entry point for the ``satselect`` console script."""
    app()


def _merge_options(base: BaseModel, **overrides: Any) -> Any:
    """Apply non-None CLI overrides on top of the options from settings."""
    values = base.model_dump()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return type(base).model_validate(values)


def _load_utxos_or_exit(utxo_file: Path) -> list[Utxo]:
    try:
        utxos = load_utxos(utxo_file)
    except OSError as e:
        logger.error(f"Cannot read UTXO file: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        logger.error(f"Invalid UTXO file {utxo_file}: {e}")
        raise typer.Exit(1)
    logger.debug(f"Loaded {len(utxos)} UTXOs from {utxo_file}")
    return utxos


@app.command()
def select(
    utxo_file: Annotated[Path, typer.Argument(help="JSON file with an array of UTXOs")],
    target: Annotated[int, typer.Option("--target", "-t", help="Amount to pay in sats")],
    fee_rate: Annotated[float, typer.Option("--fee-rate", "-r", help="Fee rate in sat/vB")],
    dust_threshold: Annotated[
        int | None, typer.Option("--dust-threshold", help="Dust threshold in sats")
    ] = None,
    input_size: Annotated[
        int | None, typer.Option("--input-size", help="Input size in vbytes")
    ] = None,
    change_output_size: Annotated[
        int | None, typer.Option("--change-output-size", help="Change output size in vbytes")
    ] = None,
    max_tries: Annotated[
        int | None, typer.Option("--max-tries", help="Branch-and-bound node budget")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Log level"),
    ] = None,
) -> None:
    """Select UTXOs for a standard payment with minimal waste."""
    settings = setup_cli(log_level)
    utxos = _load_utxos_or_exit(utxo_file)

    try:
        options: SelectionOptions = _merge_options(
            settings.efficient,
            dust_threshold=dust_threshold,
            input_size=input_size,
            change_output_size=change_output_size,
            max_tries=max_tries,
        )
    except ValidationError as e:
        logger.error(f"Invalid selection options: {e}")
        raise typer.Exit(1)

    result = select_efficient(utxos, target, fee_rate, options)

    if json_output:
        print(TypeAdapter(SelectionResult).dump_json(result, indent=2).decode())
    if not result.ok:
        logger.error(f"Selection failed: {result.error}")
        raise typer.Exit(1)
    if json_output:
        return

    print(f"\nSelected {len(result.inputs)} inputs ({result.algorithm}):")
    print("=" * 80)
    for utxo in result.inputs:
        print(f"  {utxo.outpoint:<70} {utxo.value:>12,}")
    print("-" * 80)
    print(f"Total input:  {format_amount(result.total_input)}")
    print(f"Target:       {format_amount(target)}")
    print(f"Fee:          {format_amount(result.fee)}")
    print(f"Change:       {format_amount(result.change)}")
    print("=" * 80 + "\n")


@app.command()
def stonewall(
    utxo_file: Annotated[Path, typer.Argument(help="JSON file with an array of UTXOs")],
    target: Annotated[int, typer.Option("--target", "-t", help="Amount to pay in sats")],
    fee_rate: Annotated[float, typer.Option("--fee-rate", "-r", help="Fee rate in sat/vB")],
    min_outputs: Annotated[int | None, typer.Option("--min-outputs")] = None,
    max_outputs: Annotated[int | None, typer.Option("--max-outputs")] = None,
    min_inputs: Annotated[int | None, typer.Option("--min-inputs")] = None,
    max_inputs: Annotated[int | None, typer.Option("--max-inputs")] = None,
    max_attempts: Annotated[
        int | None, typer.Option("--max-attempts", help="Number of random trials")
    ] = None,
    seed: Annotated[
        int | None, typer.Option("--seed", help="Seed the random source for reproducible output")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Log level"),
    ] = None,
) -> None:
    """Build a STONEWALL-style multi-input, multi-output spend."""
    settings = setup_cli(log_level)
    utxos = _load_utxos_or_exit(utxo_file)

    try:
        options: StonewallOptions = _merge_options(
            settings.stonewall,
            min_outputs=min_outputs,
            max_outputs=max_outputs,
            min_inputs=min_inputs,
            max_inputs=max_inputs,
            max_attempts=max_attempts,
        )
    except ValidationError as e:
        logger.error(f"Invalid STONEWALL options: {e}")
        raise typer.Exit(1)

    effective_seed = seed if seed is not None else settings.seed
    rng = random.Random(effective_seed)

    result = select_privacy(utxos, target, fee_rate, options, rng=rng)

    if json_output:
        print(TypeAdapter(StonewallResult).dump_json(result, indent=2).decode())
    if not result.ok:
        logger.error(f"STONEWALL selection failed: {result.error}")
        raise typer.Exit(1)
    if json_output:
        return

    print(f"\nSTONEWALL: {len(result.inputs)} inputs, {len(result.outputs)} outputs")
    print("=" * 80)
    print("Inputs:")
    for utxo in result.inputs:
        print(f"  {utxo.outpoint:<70} {utxo.value:>12,}")
    print("Outputs:")
    for output in result.outputs:
        role = "recipient" if output.is_recipient else "change"
        print(f"  {role:<10} {output.type.value:<12} {output.value:>12,}")
    print("-" * 80)
    print(f"Fee:            {format_amount(result.fee)}")
    print(f"Size:           {result.tx_size} vB")
    print(f"Privacy score:  {result.privacy_score:.1f}")
    print(f"Entropy:        {calculate_entropy(result):.1f}")
    print("=" * 80 + "\n")


@app.command()
def distribute(
    total: Annotated[int, typer.Argument(help="Change amount to split, in sats")],
    outputs: Annotated[int, typer.Option("--outputs", "-n", help="Number of outputs")] = 3,
    dust_threshold: Annotated[
        int | None, typer.Option("--dust-threshold", help="Dust threshold in sats")
    ] = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed the random source")] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="Log level"),
    ] = None,
) -> None:
    """Split a change amount into uneven outputs."""
    settings = setup_cli(log_level)
    dust = dust_threshold if dust_threshold is not None else settings.stonewall.dust_threshold
    effective_seed = seed if seed is not None else settings.seed

    amounts = distribute_change(total, outputs, dust, rng=random.Random(effective_seed))
    if len(amounts) < outputs:
        logger.warning(f"Cannot split {total} into {outputs} outputs above {dust}")
    for amount in amounts:
        print(amount)


@app.command("config-init")
def config_init(
    data_dir: Annotated[
        Path | None,
        typer.Option(
            "--data-dir",
            help="Data directory (default: ~/.satselect or $SATSELECT_DATA_DIR)",
        ),
    ] = None,
) -> None:
    """Write a config file template with every setting commented out."""
    config_path = ensure_config_file(data_dir)
    print(f"Config file: {config_path}")


if __name__ == "__main__":
    main()
