"""
Storygate Configuration Management

Typed configuration validated once at construction. Every tunable constant
used by the gateway, the budget ledger, the situation analyzer and the
performance tracker lives here.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import Dimension
from .exceptions import InvalidConfigError

WEIGHT_TOLERANCE = 0.001

# Acceptance minimum can never leave this band
HARD_FLOOR = 4.0
HARD_CEILING = 8.0

DEFAULT_WEIGHTS: Dict[str, float] = {
    Dimension.PROGRESSION.value: 0.30,
    Dimension.AGENCY.value: 0.25,
    Dimension.STYLE.value: 0.25,
    Dimension.TENSION.value: 0.20,
}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class GradeBreakpoints(_FrozenModel):
    """Lower bounds of each grade on the 0-10 scale."""
    perfect: float = 9.5
    excellent: float = 8.5
    good: float = 7.0
    poor: float = 5.5

    @model_validator(mode="after")
    def _descending(self):
        if not (10.0 >= self.perfect > self.excellent > self.good > self.poor >= 0.0):
            raise ValueError("grade breakpoints must be strictly descending within [0, 10]")
        return self


class GatewayConfig(_FrozenModel):
    """Scoring, threshold and weight-adjustment settings."""
    weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    grades: GradeBreakpoints = Field(default_factory=GradeBreakpoints)

    baseline_minimum: float = Field(7.0, ge=HARD_FLOOR, le=HARD_CEILING)
    threshold_floor: float = Field(HARD_FLOOR, ge=HARD_FLOOR, le=HARD_CEILING)
    threshold_ceiling: float = Field(HARD_CEILING, ge=HARD_FLOOR, le=HARD_CEILING)
    relax_below: float = Field(0.4, gt=0.0, lt=1.0)
    raise_above: float = Field(0.7, gt=0.0, lt=1.0)
    target_margin: float = Field(1.5, ge=0.0)
    maximum_margin: float = Field(2.5, ge=0.0)

    tension_trigger: float = 0.7
    tension_shift: float = Field(0.05, ge=0.0, le=0.05)
    dialogue_trigger: float = 0.5
    agency_shift: float = Field(0.05, ge=0.0)
    genre_trigger: float = 0.7
    progression_shift: float = Field(0.05, ge=0.0)

    critical_dimension_score: float = 3.0
    high_severity_gap: float = 2.0

    parallel_scoring: bool = True
    history_limit: int = Field(50, gt=0)
    trend_window: int = Field(3, gt=0)
    trend_tolerance: float = Field(0.1, ge=0.0)

    @field_validator("weights")
    @classmethod
    def _valid_weights(cls, weights: Dict[str, float]) -> Dict[str, float]:
        expected = {d.value for d in Dimension}
        if set(weights) != expected:
            raise ValueError(f"weights must cover exactly {sorted(expected)}")
        if any(w < 0 for w in weights.values()):
            raise ValueError("weights must be non-negative")
        if abs(sum(weights.values()) - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"weights must sum to 1.0, got {sum(weights.values()):.4f}")
        return weights

    @model_validator(mode="after")
    def _valid_thresholds(self):
        if self.threshold_floor > self.threshold_ceiling:
            raise ValueError("threshold_floor must not exceed threshold_ceiling")
        if not self.threshold_floor <= self.baseline_minimum <= self.threshold_ceiling:
            raise ValueError("baseline_minimum must lie within [threshold_floor, threshold_ceiling]")
        if self.relax_below > self.raise_above:
            raise ValueError("relax_below must not exceed raise_above")
        if self.target_margin > self.maximum_margin:
            raise ValueError("target_margin must not exceed maximum_margin")
        return self


class BudgetConfig(_FrozenModel):
    """Session budget, strategy availability bands and tuning caps."""
    session_budget: float = Field(1000.0, gt=0.0)
    unit_rate: float = Field(0.003, gt=0.0)
    alert_levels: List[float] = Field(default_factory=lambda: [0.7, 0.9, 0.95])

    # Availability bands: pressure <= full_catalog_max allows every strategy,
    # < reduced_catalog_max allows efficiency and balanced, < minimal_catalog_max
    # allows efficiency only, anything above is exhausted.
    full_catalog_max: float = 0.7
    reduced_catalog_max: float = 0.85
    minimal_catalog_max: float = 0.95

    creativity_need_threshold: float = Field(0.7, ge=0.0, le=1.0)
    efficiency_pressure: float = 0.85

    tune_pressure_threshold: float = 0.7
    pressure_shrink_rate: float = Field(0.5, ge=0.0, le=1.0)
    dropout_trigger: float = 0.2
    dropout_boost_rate: float = Field(1.0, ge=0.0)
    max_boost: float = Field(0.5, ge=0.0, le=0.5)

    @model_validator(mode="after")
    def _ascending_bands(self):
        if not 0.0 <= self.full_catalog_max <= self.reduced_catalog_max <= self.minimal_catalog_max:
            raise ValueError("availability bands must be ascending")
        if sorted(self.alert_levels) != list(self.alert_levels):
            raise ValueError("alert_levels must be ascending")
        return self


class SituationConfig(_FrozenModel):
    """Reader-metric thresholds and narrative milestone floors."""
    base_need: float = Field(0.3, ge=0.0, le=1.0)
    critical_dropout: float = 0.3
    high_dropout: float = 0.2
    low_engagement: float = 0.3
    soft_engagement: float = 0.4
    stagnation_chapters: int = Field(5, gt=0)

    high_dropout_need: float = 0.9
    low_engagement_need: float = 0.8
    stagnation_need: float = 0.7
    soft_engagement_need: float = 0.6

    opening_chapters: int = Field(3, ge=0)
    opening_floor: float = 0.7
    first_contact_window: List[float] = Field(default_factory=lambda: [0.30, 0.40])
    first_contact_floor: float = 0.75
    climax_window: List[float] = Field(default_factory=lambda: [0.70, 0.80])
    climax_floor: float = 0.85
    finale_start: float = 0.90
    finale_floor: float = 0.8
    importance_weight: float = Field(0.8, ge=0.0, le=1.0)


class TrackerConfig(_FrozenModel):
    """Outcome learning settings."""
    ema_retention: float = Field(0.9, ge=0.0, lt=1.0)
    adaptation_step: float = Field(0.1, gt=0.0)
    trend_window: int = Field(3, gt=0)
    trend_tolerance: float = Field(0.0, ge=0.0)


class StorygateConfig(_FrozenModel):
    """Top-level configuration composed of the component sections."""
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    situation: SituationConfig = Field(default_factory=SituationConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StorygateConfig":
        """Create a validated config, raising InvalidConfigError on bad values."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise InvalidConfigError(
                "Invalid storygate configuration",
                {"errors": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]}
            ) from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def get_default_config() -> StorygateConfig:
    return StorygateConfig()


def load_config(config_path: Union[str, Path, None] = None) -> StorygateConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file. Missing files yield defaults.

    Returns:
        Validated StorygateConfig
    """
    if config_path is None:
        config_path = Path("config/storygate_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return get_default_config()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}", {"path": str(config_path)}) from e

    return StorygateConfig.from_dict(data)


def save_config(config: StorygateConfig, config_path: Union[str, Path]) -> Path:
    """Write configuration as JSON, creating parent directories."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)
    return config_path
