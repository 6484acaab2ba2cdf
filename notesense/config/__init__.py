"""Configuration for the suggestion engine."""

from notesense.config.settings import Settings, get_settings
from notesense.config.thresholds import (
    OOS_DOMINANCE_FLOOR,
    OOS_DOMINANCE_GAP,
    GeneratorConfig,
    ThresholdConfig,
    build_config,
    validate_thresholds,
)

__all__ = [
    "OOS_DOMINANCE_FLOOR",
    "OOS_DOMINANCE_GAP",
    "GeneratorConfig",
    "Settings",
    "ThresholdConfig",
    "build_config",
    "get_settings",
    "validate_thresholds",
]
