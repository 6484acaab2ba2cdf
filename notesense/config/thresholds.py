"""Generator configuration: decision thresholds and run options.

Partial overrides (nested mappings are fine) deep-merge onto the defaults.
Out-of-range values fail at the boundary with InvalidConfigError; softer
problems are reported by validate_thresholds() as warnings.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from notesense.config.settings import Settings, get_settings
from notesense.exceptions import InvalidConfigError

logger = structlog.get_logger(__name__)

# Out-of-scope signal must reach this before it can suppress a section
OOS_DOMINANCE_FLOOR = 0.75
OOS_DOMINANCE_GAP = 0.20


class ThresholdConfig(BaseModel):
    """Named decision thresholds."""

    model_config = ConfigDict(extra="forbid")

    T_action: float = Field(0.5, ge=0.0, le=1.0, description="Minimum actionable signal")
    T_out_of_scope: float = Field(
        0.4, ge=0.0, le=1.0, description="Out-of-scope signal that triggers the dominance check"
    )
    T_overall_min: float = Field(0.65, ge=0.0, le=1.0, description="Minimum overall confidence")
    T_section_min: float = Field(
        0.6, ge=0.0, le=1.0, description="Minimum section actionability confidence"
    )
    T_generic: float = Field(0.55, ge=0.0, le=1.0, description="Max generic-word ratio for ideas")
    T_attach: float = Field(0.80, ge=0.0, le=1.0, description="Similarity needed to route to an initiative")
    MIN_EVIDENCE_CHARS: int = Field(
        20, ge=0, description="Non-whitespace chars an idea's evidence must carry"
    )


class GeneratorConfig(BaseModel):
    """Options for one generation run."""

    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    max_suggestions: int = Field(5, ge=0, description="Cap on idea suggestions per note")
    enable_debug: bool = Field(False, description="Attach the debug ledger to the result")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GeneratorConfig":
        """Build a config from environment-backed settings."""
        settings = settings or get_settings()
        return build_config(
            {
                "max_suggestions": settings.max_suggestions,
                "enable_debug": settings.enable_debug,
                "thresholds": dict(settings.thresholds),
            }
        )


ConfigInput = Union[GeneratorConfig, Mapping[str, Any], None]


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(
    overrides: ConfigInput = None,
    base: Optional[GeneratorConfig] = None,
) -> GeneratorConfig:
    """Merge overrides onto a base config (defaults when omitted).

    Args:
        overrides: A full GeneratorConfig, a partial mapping, or None.
        base: Config to merge onto.

    Returns:
        Validated GeneratorConfig.

    Raises:
        InvalidConfigError: If the merged config fails validation.
    """
    if isinstance(overrides, GeneratorConfig):
        return overrides

    base = base or GeneratorConfig()
    if not overrides:
        return base

    if isinstance(overrides, BaseModel):
        overrides = overrides.model_dump(exclude_unset=True)

    merged = _deep_merge(base.model_dump(), overrides)
    try:
        return GeneratorConfig.model_validate(merged)
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid generator config: {e}") from e


# =============================================================================
# Soft validation
# =============================================================================

_UNIT_THRESHOLDS = (
    "T_action",
    "T_out_of_scope",
    "T_overall_min",
    "T_section_min",
    "T_generic",
    "T_attach",
)


def validate_thresholds(config: Union[GeneratorConfig, ThresholdConfig, Mapping[str, Any]]) -> list[str]:
    """Check a threshold set for inconsistent or extreme values.

    Never raises. Accepts raw mappings so that values a model would reject
    are still reported.

    Returns:
        Human-readable warnings; empty when the thresholds look sane.
    """
    if isinstance(config, GeneratorConfig):
        values: dict[str, Any] = config.thresholds.model_dump()
    elif isinstance(config, ThresholdConfig):
        values = config.model_dump()
    else:
        raw = dict(config)
        values = dict(raw.get("thresholds", raw))

    warnings: list[str] = []

    numeric: dict[str, float] = {}
    for name in _UNIT_THRESHOLDS:
        if name not in values:
            continue
        value = values[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            warnings.append(f"{name} must be a number, got {value!r}")
            continue
        if not 0.0 <= value <= 1.0:
            warnings.append(f"{name} ({value}) is outside [0, 1]")
            continue
        numeric[name] = float(value)

    min_chars = values.get("MIN_EVIDENCE_CHARS")
    if min_chars is not None and (not isinstance(min_chars, int) or min_chars < 0):
        warnings.append(f"MIN_EVIDENCE_CHARS must be a non-negative integer, got {min_chars!r}")

    def have(*names: str) -> bool:
        return all(n in numeric for n in names)

    if have("T_overall_min", "T_section_min") and numeric["T_overall_min"] < numeric["T_section_min"]:
        warnings.append(
            f"T_overall_min ({numeric['T_overall_min']}) is below T_section_min "
            f"({numeric['T_section_min']}); the overall check will rarely be the binding one"
        )
    if have("T_section_min", "T_action") and numeric["T_section_min"] < numeric["T_action"]:
        warnings.append(
            f"T_section_min ({numeric['T_section_min']}) is below T_action "
            f"({numeric['T_action']}); sections that barely pass the gate are always accepted"
        )
    if have("T_out_of_scope") and numeric["T_out_of_scope"] > OOS_DOMINANCE_FLOOR:
        warnings.append(
            f"T_out_of_scope ({numeric['T_out_of_scope']}) is above the dominance floor "
            f"({OOS_DOMINANCE_FLOOR}); out-of-scope content will only be suppressed above it"
        )
    if have("T_action"):
        if numeric["T_action"] < 0.3:
            warnings.append(f"T_action ({numeric['T_action']}) is very low; most sections will pass the gate")
        elif numeric["T_action"] > 0.9:
            warnings.append(
                f"T_action ({numeric['T_action']}) is very high; only explicit requests will pass the gate"
            )
    if have("T_attach") and numeric["T_attach"] < 0.5:
        warnings.append(f"T_attach ({numeric['T_attach']}) is low; unrelated initiatives may be suggested")
    if have("T_overall_min") and numeric["T_overall_min"] >= 0.95:
        warnings.append(
            f"T_overall_min ({numeric['T_overall_min']}) is very high; nearly every update will need clarification"
        )

    if warnings:
        logger.debug("threshold_warnings", count=len(warnings))

    return warnings
