"""
csoverview Core - Foundation modules for demo decoding.

This module contains the fundamental components:
- constants: Game constants and enums
- config: Application configuration management
- utils: General utility functions
- parser: demoparser2 decoder backend (imported on demand)
"""

from csoverview.core.constants import (
    C4_TIMER_SECONDS,
    CS2_TICK_RATE,
    FLASH_EFFECT_LIFETIME,
    HE_EFFECT_LIFETIME,
    KILLFEED_LIFETIME_SECONDS,
    KILLFEED_MAX_ENTRIES,
    SMOKE_EFFECT_SECONDS,
    EquipmentClass,
    EquipmentType,
    Phase,
    Team,
)
from csoverview.core.config import OverviewConfig, get_config, load_config

__all__ = [
    # Enums
    "EquipmentClass",
    "EquipmentType",
    "Phase",
    "Team",
    # Constants
    "C4_TIMER_SECONDS",
    "CS2_TICK_RATE",
    "FLASH_EFFECT_LIFETIME",
    "HE_EFFECT_LIFETIME",
    "KILLFEED_LIFETIME_SECONDS",
    "KILLFEED_MAX_ENTRIES",
    "SMOKE_EFFECT_SECONDS",
    # Config
    "OverviewConfig",
    "get_config",
    "load_config",
]
