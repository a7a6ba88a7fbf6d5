"""
Configuration Management for csoverview

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Explicit arguments (CLI options, function parameters)
2. Environment variables (CSOVERVIEW_*)
3. Configuration file
4. Default values
"""

import json
import logging
import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from csoverview.core.constants import (
    C4_TIMER_SECONDS,
    CS2_TICK_RATE,
    KILLFEED_LIFETIME_SECONDS,
    KILLFEED_MAX_ENTRIES,
    SMOKE_EFFECT_SECONDS,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class ParserConfig:
    """Configuration for demo decoding."""

    # Used only when the demo does not report a usable rate (0 or NaN).
    # None means no fallback: construction fails if one is needed.
    # A missing frame rate falls back to tick rate / sample rate.
    fallback_frame_rate: float | None = None
    fallback_tick_rate: float | None = float(CS2_TICK_RATE)

    # demoparser2 backend: one frame every Nth tick
    sample_rate: int = 1


@dataclass
class TimelineConfig:
    """Configuration for the effect timeline and round timer."""

    c4_timer_fallback: float = C4_TIMER_SECONDS
    smoke_seconds: float = SMOKE_EFFECT_SECONDS
    killfeed_seconds: int = KILLFEED_LIFETIME_SECONDS
    killfeed_max_entries: int = KILLFEED_MAX_ENTRIES


@dataclass
class ExportConfig:
    """Configuration for match export."""

    pretty: bool = False
    coordinate_precision: int = 1


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


@dataclass
class OverviewConfig:
    """Main configuration container."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================

CONFIG_FILE_NAMES = ("csoverview.yaml", "csoverview.toml", "csoverview.json")

# CSOVERVIEW_* variable -> (section, key, converter)
ENV_SETTINGS: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "CSOVERVIEW_FRAMERATE": ("parser", "fallback_frame_rate", float),
    "CSOVERVIEW_TICKRATE": ("parser", "fallback_tick_rate", float),
    "CSOVERVIEW_SAMPLE_RATE": ("parser", "sample_rate", int),
    "CSOVERVIEW_C4_TIMER": ("timeline", "c4_timer_fallback", float),
    "CSOVERVIEW_LOG_LEVEL": ("logging", "level", str.upper),
    "CSOVERVIEW_LOG_FILE": ("logging", "file", str),
}


def get_default_config_paths() -> list[Path]:
    """Config files searched when none is given: working directory, then XDG."""
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return [Path.cwd() / name for name in CONFIG_FILE_NAMES] + [
        xdg_config / "csoverview" / "config.yaml",
        xdg_config / "csoverview" / "config.toml",
    ]


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with open(path) as f:
            return yaml.safe_load(f) or {}
    elif suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    elif suffix == ".json":
        with open(path) as f:
            return json.load(f)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def load_env_config() -> dict[str, Any]:
    """Read CSOVERVIEW_* variables; unparsable values are logged and skipped."""
    config: dict[str, Any] = {}

    for env_var, (section, key, convert) in ENV_SETTINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        try:
            config.setdefault(section, {})[key] = convert(value)
        except ValueError:
            logger.warning(f"Ignoring {env_var}={value!r}: not a valid {section}.{key}")

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> OverviewConfig:
    """Convert a dictionary to OverviewConfig, ignoring unknown keys."""
    config = OverviewConfig()

    for section_name in ("parser", "timeline", "export", "logging"):
        section = getattr(config, section_name)
        for key, value in data.get(section_name, {}).items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> OverviewConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged OverviewConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: OverviewConfig | None = None


def get_config() -> OverviewConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: OverviewConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None
