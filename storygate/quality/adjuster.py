"""
Threshold & Weight Adjuster

Derives a per-request acceptance threshold and per-dimension weights from a
CharacteristicProfile. The minimum is a clamped, monotone linear
interpolation around a baseline; weights shift by bounded amounts and are
renormalized to sum to 1.0.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storygate.core.config import HARD_CEILING, HARD_FLOOR, WEIGHT_TOLERANCE, GatewayConfig
from storygate.core.constants import Dimension
from storygate.core.exceptions import InvalidProfileError
from storygate.core.logging_config import get_logger
from storygate.quality.characteristics import CharacteristicProfile

logger = get_logger("quality.adjuster")

MAX_SCORE = 10.0


@dataclass(frozen=True)
class ThresholdProfile:
    """Acceptance thresholds on the 0-10 scale."""
    minimum: float
    target: float
    maximum: float

    def __post_init__(self):
        values = {"minimum": self.minimum, "target": self.target, "maximum": self.maximum}
        if not HARD_FLOOR <= self.minimum <= HARD_CEILING:
            raise InvalidProfileError(
                "threshold", f"minimum must lie within [{HARD_FLOOR}, {HARD_CEILING}]", values
            )
        if not self.minimum <= self.target <= self.maximum <= MAX_SCORE:
            raise InvalidProfileError("threshold", "expected minimum <= target <= maximum <= 10", values)

    def to_dict(self) -> Dict[str, float]:
        return {"minimum": self.minimum, "target": self.target, "maximum": self.maximum}


@dataclass(frozen=True)
class WeightProfile:
    """Per-dimension weights summing to 1.0."""
    weights: Mapping[Dimension, float]

    def __post_init__(self):
        values = {d.value: w for d, w in self.weights.items()}
        if set(self.weights) != set(Dimension):
            raise InvalidProfileError("weight", "every dimension needs a weight", values)
        if any(w < 0 for w in self.weights.values()):
            raise InvalidProfileError("weight", "weights must be non-negative", values)
        if abs(sum(self.weights.values()) - 1.0) > WEIGHT_TOLERANCE:
            raise InvalidProfileError("weight", "weights must sum to 1.0", values)

    @classmethod
    def from_mapping(cls, weights: Mapping) -> "WeightProfile":
        """Build from dimension names or enums without renormalizing."""
        return cls({Dimension(k) if not isinstance(k, Dimension) else k: float(v) for k, v in weights.items()})

    @classmethod
    def normalized(cls, raw: Mapping[Dimension, float]) -> "WeightProfile":
        clipped = {d: max(0.0, w) for d, w in raw.items()}
        total = sum(clipped.values())
        if total <= 0:
            raise InvalidProfileError("weight", "no positive weight left to normalize",
                                      {d.value: w for d, w in raw.items()})
        return cls({d: w / total for d, w in clipped.items()})

    def __getitem__(self, dimension: Dimension) -> float:
        return self.weights[dimension]

    @property
    def total(self) -> float:
        return sum(self.weights.values())

    def to_dict(self) -> Dict[str, float]:
        return {d.value: round(w, 4) for d, w in self.weights.items()}


@dataclass
class AdjustmentRecord:
    """One threshold/weight adjustment, kept for auditing."""
    overall_characteristics: float
    threshold: ThresholdProfile
    weights: WeightProfile
    shifts: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_characteristics": round(self.overall_characteristics, 4),
            "threshold": self.threshold.to_dict(),
            "weights": self.weights.to_dict(),
            "shifts": list(self.shifts),
            "timestamp": self.timestamp.isoformat(),
        }


class ThresholdWeightAdjuster:
    """
    Computes threshold and weight profiles from content characteristics.

    The baseline minimum can be nudged by outcome feedback; it always stays
    within the configured floor and ceiling.
    """

    def __init__(self, config: Optional[GatewayConfig] = None, history_limit: int = 100):
        self.config = config or GatewayConfig()
        self.baseline_minimum = self.config.baseline_minimum
        self.base_weights = WeightProfile.from_mapping(self.config.weights)
        self.history_limit = history_limit
        self.history: List[AdjustmentRecord] = []

    def adjust(self, profile: CharacteristicProfile) -> Tuple[ThresholdProfile, WeightProfile]:
        overall = profile.overall_characteristics
        threshold = self.threshold_for(overall)
        weights, shifts = self._shift_weights(profile)

        self.history.append(AdjustmentRecord(overall, threshold, weights, shifts))
        if len(self.history) > self.history_limit:
            self.history = self.history[-self.history_limit:]

        logger.debug(f"Adjusted minimum={threshold.minimum} weights={weights.to_dict()} shifts={shifts}")
        return threshold, weights

    def minimum_for(self, overall: float) -> float:
        """Acceptance minimum for an overall characteristics value."""
        cfg = self.config
        overall = max(0.0, min(1.0, overall))
        minimum = self.baseline_minimum
        if overall < cfg.relax_below:
            span = self.baseline_minimum - cfg.threshold_floor
            minimum -= (cfg.relax_below - overall) / cfg.relax_below * span
        elif overall > cfg.raise_above:
            span = cfg.threshold_ceiling - self.baseline_minimum
            minimum += (overall - cfg.raise_above) / (1.0 - cfg.raise_above) * span
        return round(max(cfg.threshold_floor, min(cfg.threshold_ceiling, minimum)), 4)

    def threshold_for(self, overall: float) -> ThresholdProfile:
        minimum = self.minimum_for(overall)
        return ThresholdProfile(
            minimum=minimum,
            target=min(MAX_SCORE, minimum + self.config.target_margin),
            maximum=min(MAX_SCORE, minimum + self.config.maximum_margin),
        )

    def _shift_weights(self, profile: CharacteristicProfile) -> Tuple[WeightProfile, List[str]]:
        cfg = self.config
        raw = dict(self.base_weights.weights)
        shifts = []

        if profile.emotional_intensity > cfg.tension_trigger:
            raw[Dimension.TENSION] += cfg.tension_shift
            raw[Dimension.AGENCY] -= cfg.tension_shift
            shifts.append("tension")
        if profile.dialogue_ratio > cfg.dialogue_trigger:
            raw[Dimension.AGENCY] += cfg.agency_shift
            raw[Dimension.STYLE] -= cfg.agency_shift
            shifts.append("agency")
        if profile.genre.overall_score > cfg.genre_trigger:
            raw[Dimension.PROGRESSION] += cfg.progression_shift
            shifts.append("progression")

        return WeightProfile.normalized(raw), shifts

    def nudge_baseline(self, delta: float) -> float:
        """Move the baseline minimum by delta, bounded by floor and ceiling."""
        previous = self.baseline_minimum
        self.baseline_minimum = round(max(
            self.config.threshold_floor,
            min(self.config.threshold_ceiling, self.baseline_minimum + delta),
        ), 4)
        if self.baseline_minimum != previous:
            logger.info(f"Baseline minimum {previous} -> {self.baseline_minimum}")
        return self.baseline_minimum

    def reset(self) -> None:
        self.baseline_minimum = self.config.baseline_minimum
        self.history.clear()
