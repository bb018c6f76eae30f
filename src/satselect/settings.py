"""
Settings management for satselect.

Uses pydantic-settings and supports:
1. TOML configuration file (~/.satselect/config.toml)
2. Environment variables
3. CLI arguments (via typer, passed as overrides)

Priority (highest to lowest):
1. CLI arguments
2. Environment variables
3. Config file
4. Default values

Environment Variable Naming:
    - Use uppercase with double underscore for nested settings
    - Examples: EFFICIENT__DUST_THRESHOLD, STONEWALL__MAX_ATTEMPTS, LOGGING__LEVEL
    - Maps to TOML sections: STONEWALL__MAX_ATTEMPTS -> [stonewall] max_attempts
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from satselect.config import SelectionOptions, StonewallOptions
from satselect.paths import get_config_path, get_default_data_dir


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level: TRACE, DEBUG, INFO, WARNING, ERROR",
    )


class SatSelectSettings(BaseSettings):
    """
    Main settings class.

    Loads configuration from multiple sources with the following priority:
    1. Constructor arguments (CLI overrides)
    2. Environment variables
    3. TOML config file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    seed: int | None = Field(
        default=None,
        description="Seed for the random source of the privacy selector (unset = random)",
    )

    efficient: SelectionOptions = Field(default_factory=SelectionOptions)
    stonewall: StonewallOptions = Field(default_factory=StonewallOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Constructor arguments, then environment, then the TOML file."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """
    Settings source that reads from a TOML config file.

    The file is expected at $SATSELECT_CONFIG_FILE, or config.toml inside
    $SATSELECT_DATA_DIR (default ~/.satselect).
    """

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._config: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        config_path = get_config_path()

        if not config_path.exists():
            logger.debug(f"Config file not found at {config_path}, using defaults")
            return

        try:
            with open(config_path, "rb") as f:
                self._config = tomllib.load(f)
            logger.debug(f"Loaded config from {config_path}")
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Invalid TOML syntax in config file {config_path}")
            logger.error(f"Error: {e}")
            logger.error("Tip: Make sure section headers like [stonewall] are uncommented")
            sys.exit(1)
        except OSError as e:
            logger.error(f"Failed to read config from {config_path}: {e}")
            sys.exit(1)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        value = self._config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._config


def generate_config_template() -> str:
    """
    Generate a config file template with all settings commented out.

    Users see every setting with its default and description and only
    uncomment what they want to change.
    """
    lines: list[str] = [
        "# satselect configuration",
        "#",
        "# All settings are commented out - uncomment to override.",
        "#",
        "# Priority (highest to lowest):",
        "#   1. CLI arguments",
        "#   2. Environment variables (e.g. STONEWALL__MAX_ATTEMPTS=2000)",
        "#   3. This config file",
        "#   4. Built-in defaults",
        "",
        "# Seed for the privacy selector's random source",
        "# seed = ",
        "",
    ]

    def add_section(title: str, model_cls: type[BaseModel], prefix: str) -> None:
        lines.append(f"# {'=' * 60}")
        lines.append(f"# {title}")
        lines.append(f"# {'=' * 60}")
        lines.append(f"[{prefix}]")
        lines.append("")

        for field_name, field_info in model_cls.model_fields.items():
            if field_info.description:
                lines.append(f"# {field_info.description}")

            default = field_info.default
            if isinstance(default, bool):
                value_str = str(default).lower()
            elif hasattr(default, "value"):  # Enum - use string value
                value_str = f'"{default.value}"'
            elif isinstance(default, str):
                value_str = f'"{default}"'
            else:
                value_str = str(default)

            lines.append(f"# {field_name} = {value_str}")
            lines.append("")

    add_section("Efficient Selection", SelectionOptions, "efficient")
    add_section("STONEWALL Selection", StonewallOptions, "stonewall")
    add_section("Logging", LoggingSettings, "logging")

    return "\n".join(lines)


def ensure_config_file(data_dir: Path | None = None) -> Path:
    """
    Ensure the config file exists, creating a template if it doesn't.

    Returns:
        Path to the config file.
    """
    if data_dir is None:
        data_dir = get_default_data_dir()

    config_path = data_dir / "config.toml"

    if not config_path.exists():
        logger.info(f"Creating config file template at {config_path}")
        data_dir.mkdir(parents=True, exist_ok=True)
        config_path.write_text(generate_config_template())

    return config_path


# Global settings instance (lazy-loaded)
_settings: SatSelectSettings | None = None


def get_settings(**overrides: Any) -> SatSelectSettings:
    """
    Get the settings instance.

    On first call, loads settings from all sources. Subsequent calls
    return the cached instance unless reset_settings() is called.
    """
    global _settings
    if _settings is None or overrides:
        _settings = SatSelectSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


__all__ = [
    "SatSelectSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
    "generate_config_template",
    "ensure_config_file",
]
