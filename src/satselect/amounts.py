"""
Amount and fee utilities.
"""

from __future__ import annotations

import math

from satselect.constants import SATS_PER_BTC


def calculate_fee(size: int, fee_rate: float) -> int:
    """
    Fee in satoshis for a given virtual size.

    Fractional results are rounded up so the fee rate is never undershot.

    Args:
        size: Size in vbytes
        fee_rate: Fee rate in sat/vB

    Returns:
        Fee in satoshis
    """
    return math.ceil(size * fee_rate)


def sats_to_btc(sats: int) -> float:
    """Convert satoshis to BTC. Only use for display/output."""
    return sats / SATS_PER_BTC


def format_amount(sats: int, include_unit: bool = True) -> str:
    """
    Format satoshi amount as string.
    Default: '1,000,000 sats (0.01000000 BTC)'
    """
    if include_unit:
        return f"{sats:,} sats ({sats_to_btc(sats):.8f} BTC)"
    return f"{sats:,}"
