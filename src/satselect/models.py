"""
Coin selection data models.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import Field
from pydantic.dataclasses import dataclass


class ScriptType(str, Enum):
    """Output script types the selectors know how to size."""

    P2PKH = "p2pkh"
    P2WPKH = "p2wpkh"
    P2SH_P2WPKH = "p2sh-p2wpkh"


class SelectionError(str, Enum):
    """Kinds of failure reported in a selection result."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    INFEASIBLE = "infeasible"  # no structure can satisfy the request
    EXHAUSTED = "exhausted"  # search budget used up, a larger budget may succeed
    INVALID_REQUEST = "invalid_request"


class SearchStatus(str, Enum):
    """Outcome of a bounded search."""

    FOUND = "found"
    INFEASIBLE = "infeasible"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Utxo:
    """A spendable output as handed over by the wallet."""

    txid: str
    vout: Annotated[int, Field(ge=0)]
    value: Annotated[int, Field(gt=0)]  # satoshis
    address: str | None = None
    script_type: ScriptType | None = None

    @property
    def outpoint(self) -> str:
        return f"{self.txid}:{self.vout}"


@dataclass(frozen=True)
class EffectiveUtxo:
    """A UTXO annotated with its value net of the cost of spending it."""

    utxo: Utxo
    effective_value: int

    @property
    def value(self) -> int:
        return self.utxo.value


@dataclass
class SelectionResult:
    """Result of a standard (efficient) selection"""

    inputs: list[Utxo] = Field(default_factory=list)
    fee: int = 0
    change: int = 0
    error: str | None = None
    error_kind: SelectionError | None = None
    algorithm: str | None = None  # exact_match, branch_and_bound or accumulative

    @property
    def total_input(self) -> int:
        return sum(u.value for u in self.inputs)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, kind: SelectionError, message: str) -> SelectionResult:
        return cls(inputs=[], fee=0, change=0, error=message, error_kind=kind)


@dataclass
class ChangeOutput:
    """An output of a STONEWALL transaction (recipient or change)."""

    type: ScriptType
    value: int
    size: int
    is_recipient: bool = False


@dataclass
class StonewallResult:
    """Result of a privacy (STONEWALL) selection.

    The first output is the payment to the recipient, the remaining outputs
    are change back to the wallet.
    """

    inputs: list[Utxo] = Field(default_factory=list)
    outputs: list[ChangeOutput] = Field(default_factory=list)
    fee: int = 0
    privacy_score: float = 0.0
    tx_size: int = 0
    error: str | None = None
    error_kind: SelectionError | None = None

    @property
    def total_input(self) -> int:
        return sum(u.value for u in self.inputs)

    @property
    def total_output(self) -> int:
        return sum(o.value for o in self.outputs)

    @property
    def change_outputs(self) -> list[ChangeOutput]:
        return [o for o in self.outputs if not o.is_recipient]

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, kind: SelectionError, message: str) -> StonewallResult:
        return cls(error=message, error_kind=kind)


@dataclass
class BranchAndBoundOutcome:
    """Tagged result of the branch-and-bound search.

    ``EXHAUSTED`` may still carry the best selection found before the budget
    ran out; ``INFEASIBLE`` never does.
    """

    status: SearchStatus
    inputs: list[Utxo] = Field(default_factory=list)
    fee: int = 0
    change: int = 0
    tries: int = 0
    exact_match: bool = False

    @property
    def has_selection(self) -> bool:
        return bool(self.inputs)
