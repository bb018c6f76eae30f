"""
CLI helpers: logging setup, settings resolution and UTXO file loading.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter

from satselect.models import Utxo
from satselect.settings import SatSelectSettings, get_settings, reset_settings

_utxo_list_adapter = TypeAdapter(list[Utxo])


def setup_logging(level: str = "INFO") -> None:
    """
    Configure loguru logging with consistent format.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=level.upper(),
        colorize=True,
    )


def setup_cli(log_level: str | None = None) -> SatSelectSettings:
    """
    Common CLI setup: reset settings cache, configure logging, return settings.

    Log level priority: CLI argument > settings (env/config) > default "INFO"
    """
    reset_settings()
    settings = get_settings()

    effective_log_level = log_level if log_level is not None else settings.logging.level
    setup_logging(effective_log_level)

    return settings


def load_utxos(path: Path) -> list[Utxo]:
    """
    Load UTXOs from a JSON file.

    The file holds an array of objects with ``txid``, ``vout``, ``value`` and
    optionally ``address`` and ``script_type``.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content is not a valid UTXO list
    """
    return _utxo_list_adapter.validate_json(path.read_bytes())
