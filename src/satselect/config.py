"""
Option models for the coin selectors.

Both models carry defaults for every field, so callers only pass what they
want to override (``SelectionOptions(dust_threshold=1000)``). The same models
are nested into the settings so they can come from env vars or the config file.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from satselect.constants import (
    MAX_EXACT_SUM_STATES,
    MAX_TRIES,
    P2PKH_INPUT_SIZE,
    P2PKH_OUTPUT_SIZE,
    P2SH_P2WPKH_INPUT_SIZE,
    P2WPKH_INPUT_SIZE,
    P2WPKH_OUTPUT_SIZE,
    STANDARD_DUST_LIMIT,
    STONEWALL_MAX_ATTEMPTS,
    TX_OVERHEAD_SIZE,
)
from satselect.models import ScriptType


class SelectionOptions(BaseModel):
    """Options for the standard (efficient) selector."""

    dust_threshold: int = Field(
        default=STANDARD_DUST_LIMIT,
        ge=0,
        description="Change below this amount is added to the fee",
    )
    input_size: int = Field(
        default=P2PKH_INPUT_SIZE,
        ge=1,
        description="Size of one input in vbytes",
    )
    change_output_size: int = Field(
        default=P2PKH_OUTPUT_SIZE,
        ge=0,
        description="Size of the change output in vbytes",
    )
    max_tries: int = Field(
        default=MAX_TRIES,
        ge=1,
        description="Node budget for the branch-and-bound search",
    )
    max_exact_sum_states: int = Field(
        default=MAX_EXACT_SUM_STATES,
        ge=1,
        description="Maximum number of distinct sums tracked by the exact-sum search",
    )

    model_config = {"frozen": True}


class StonewallOptions(BaseModel):
    """Options for the privacy (STONEWALL) selector."""

    dust_threshold: int = Field(
        default=STANDARD_DUST_LIMIT,
        ge=0,
        description="Minimum value of every output",
    )
    min_outputs: int = Field(default=2, ge=1, description="Minimum outputs incl. recipient")
    max_outputs: int = Field(default=4, ge=1, description="Maximum outputs incl. recipient")
    min_inputs: int = Field(default=2, ge=1, description="Minimum number of inputs")
    max_inputs: int = Field(default=10, ge=1, description="Maximum number of inputs")
    size_p2pkh: int = Field(default=P2PKH_INPUT_SIZE, ge=1, description="P2PKH input size")
    size_p2wpkh: int = Field(default=P2WPKH_INPUT_SIZE, ge=1, description="P2WPKH input size")
    size_p2sh_p2wpkh: int = Field(
        default=P2SH_P2WPKH_INPUT_SIZE,
        ge=1,
        description="P2SH-P2WPKH input size",
    )
    output_size_p2pkh: int = Field(
        default=P2PKH_OUTPUT_SIZE,
        ge=1,
        description="Size of a P2PKH (and P2SH) output",
    )
    output_size_p2wpkh: int = Field(
        default=P2WPKH_OUTPUT_SIZE,
        ge=1,
        description="Size of a P2WPKH output",
    )
    tx_overhead: int = Field(
        default=TX_OVERHEAD_SIZE,
        ge=0,
        description="Fixed transaction overhead in vbytes",
    )
    max_attempts: int = Field(
        default=STONEWALL_MAX_ATTEMPTS,
        ge=1,
        description="Number of random trials before giving up",
    )
    recipient_type: ScriptType = Field(
        default=ScriptType.P2WPKH,
        description="Script type of the recipient output",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_ranges(self) -> StonewallOptions:
        if self.min_outputs > self.max_outputs:
            raise ValueError(
                f"min_outputs ({self.min_outputs}) > max_outputs ({self.max_outputs})"
            )
        if self.min_inputs > self.max_inputs:
            raise ValueError(f"min_inputs ({self.min_inputs}) > max_inputs ({self.max_inputs})")
        return self

    def input_size(self, script_type: ScriptType) -> int:
        if script_type == ScriptType.P2WPKH:
            return self.size_p2wpkh
        if script_type == ScriptType.P2SH_P2WPKH:
            return self.size_p2sh_p2wpkh
        return self.size_p2pkh

    def output_size(self, script_type: ScriptType) -> int:
        if script_type == ScriptType.P2WPKH:
            return self.output_size_p2wpkh
        return self.output_size_p2pkh
