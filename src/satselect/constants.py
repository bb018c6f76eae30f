"""
Bitcoin size and policy constants used by the coin selectors.

Sizes are virtual bytes, fee rates are sat/vB.
"""

from __future__ import annotations

SATS_PER_BTC = 100_000_000

# Standard P2PKH dust limit in Bitcoin Core
STANDARD_DUST_LIMIT = 546  # satoshis

# Input sizes per script type
P2PKH_INPUT_SIZE = 148
P2WPKH_INPUT_SIZE = 68
P2SH_P2WPKH_INPUT_SIZE = 91

# Output sizes per script type
P2PKH_OUTPUT_SIZE = 34
P2WPKH_OUTPUT_SIZE = 31

# Version, locktime and input/output counts
TX_OVERHEAD_SIZE = 10

# Node budget for the branch-and-bound search
MAX_TRIES = 1_000_000

# Upper bound on distinct sums tracked by the exact-sum finder
MAX_EXACT_SUM_STATES = 100_000

# Trial budget for the STONEWALL randomized search
STONEWALL_MAX_ATTEMPTS = 1000

# Error messages returned in selection results
INSUFFICIENT_FUNDS_MESSAGE = "Insufficient funds"
STONEWALL_NOT_FOUND_MESSAGE = "Could not find a suitable STONEWALL structure"
