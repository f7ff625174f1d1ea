"""
Situation Analyzer

Combines reader-engagement metrics and narrative position into a single
SituationSignal: how much creative effort the next chapter needs and how
urgent it is.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from storygate.core.config import SituationConfig
from storygate.core.constants import STORY_IMPORTANCE, PlotStage, Urgency
from storygate.core.logging_config import get_logger

logger = get_logger("budget.situation")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _read_number(data: Dict[str, Any], key: str, default, cast, problems: List[str]):
    """Read one numeric field, falling back to the default on missing or bad values."""
    raw = data.get(key)
    if raw is None:
        if key in data and default is not None:
            problems.append(f"{key} missing, using {default}")
        return default
    try:
        value = cast(raw)
        if value != value:
            raise ValueError("NaN")
        return value
    except (TypeError, ValueError):
        problems.append(f"{key} {raw!r} is not a number, using {default}")
        return default


@dataclass(frozen=True)
class EngagementMetrics:
    """Reader metrics supplied by the caller."""
    dropout_rate: float = 0.0
    engagement_score: float = 0.5
    emotion_stagnation: int = 0
    problems: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngagementMetrics":
        data = data or {}
        problems: List[str] = []
        return cls(
            dropout_rate=_read_number(data, "dropout_rate", 0.0, float, problems),
            engagement_score=_read_number(data, "engagement_score", 0.5, float, problems),
            emotion_stagnation=_read_number(data, "emotion_stagnation", 0, int, problems),
            problems=tuple(problems),
        )


@dataclass(frozen=True)
class NarrativePosition:
    """Where the next chapter sits in the story."""
    chapter: int = 1
    total_chapters: Optional[int] = None
    plot_stage: Optional[PlotStage] = None
    problems: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NarrativePosition":
        data = data or {}
        problems: List[str] = []
        chapter = _read_number(data, "chapter", 1, int, problems)
        total = _read_number(data, "total_chapters", None, int, problems)
        if total is not None and total <= 0:
            problems.append(f"total_chapters {total} ignored")
            total = None

        stage = data.get("plot_stage")
        try:
            plot_stage = PlotStage(stage) if stage else None
        except ValueError:
            problems.append(f"unknown plot_stage {stage!r} ignored")
            plot_stage = None

        return cls(chapter=chapter, total_chapters=total, plot_stage=plot_stage, problems=tuple(problems))

    @property
    def progress(self) -> Optional[float]:
        if not self.total_chapters:
            return None
        return self.chapter / self.total_chapters


@dataclass(frozen=True)
class SituationSignal:
    """Transient read of the current situation."""
    creativity_need: float
    urgency: Urgency
    reader_engagement: float = 0.5
    dropout_risk: float = 0.0
    milestone: Optional[str] = None
    story_importance: Optional[float] = None
    reasons: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creativity_need": round(self.creativity_need, 4),
            "urgency": self.urgency.value,
            "reader_engagement": self.reader_engagement,
            "dropout_risk": self.dropout_risk,
            "milestone": self.milestone,
            "story_importance": self.story_importance,
            "reasons": list(self.reasons),
        }


class SituationAnalyzer:
    """Deterministic mapping from metrics and position to a SituationSignal."""

    def __init__(self, config: Optional[SituationConfig] = None):
        self.config = config or SituationConfig()

    def analyze(self, metrics=None, position=None) -> SituationSignal:
        if not isinstance(metrics, EngagementMetrics):
            metrics = EngagementMetrics.from_dict(metrics)
        if not isinstance(position, NarrativePosition):
            position = NarrativePosition.from_dict(position)

        cfg = self.config
        dropout = _clamp(metrics.dropout_rate)
        engagement = _clamp(metrics.engagement_score)
        need = cfg.base_need
        reasons: List[str] = [*metrics.problems, *position.problems]

        if dropout > cfg.high_dropout:
            need = max(need, cfg.high_dropout_need)
            reasons.append(f"dropout {dropout:.2f} above {cfg.high_dropout}")
        elif engagement < cfg.low_engagement:
            need = max(need, cfg.low_engagement_need)
            reasons.append(f"engagement {engagement:.2f} below {cfg.low_engagement}")
        elif engagement < cfg.soft_engagement:
            need = max(need, cfg.soft_engagement_need)
            reasons.append(f"engagement {engagement:.2f} softening")

        if metrics.emotion_stagnation >= cfg.stagnation_chapters:
            need = max(need, cfg.stagnation_need)
            reasons.append(f"emotion flat for {metrics.emotion_stagnation} chapters")

        milestone, floor = self.detect_milestone(position)
        if milestone:
            need = max(need, floor)
            reasons.append(f"milestone: {milestone}")

        importance = STORY_IMPORTANCE.get(position.plot_stage) if position.plot_stage else None
        if importance is not None:
            need = max(need, importance * cfg.importance_weight)

        urgency = self._urgency(dropout, engagement, milestone)
        signal = SituationSignal(
            creativity_need=round(_clamp(need), 4),
            urgency=urgency,
            reader_engagement=engagement,
            dropout_risk=dropout,
            milestone=milestone,
            story_importance=importance,
            reasons=tuple(reasons),
        )
        logger.debug(f"Situation: need={signal.creativity_need} urgency={urgency.value} {reasons}")
        return signal

    def detect_milestone(self, position: NarrativePosition) -> Tuple[Optional[str], float]:
        """Name and creativity floor of the milestone at this position, if any."""
        cfg = self.config
        if position.chapter <= cfg.opening_chapters and position.plot_stage == PlotStage.INTRODUCTION:
            return "opening", cfg.opening_floor

        progress = position.progress
        if progress is None:
            return None, 0.0
        if progress >= cfg.finale_start:
            return "finale", cfg.finale_floor
        low, high = cfg.climax_window
        if low <= progress <= high:
            return "climax", cfg.climax_floor
        low, high = cfg.first_contact_window
        if low <= progress <= high:
            return "first_contact", cfg.first_contact_floor
        return None, 0.0

    def _urgency(self, dropout: float, engagement: float, milestone: Optional[str]) -> Urgency:
        cfg = self.config
        if dropout > cfg.critical_dropout:
            return Urgency.CRITICAL
        if dropout > cfg.high_dropout or engagement < cfg.low_engagement:
            return Urgency.HIGH
        if milestone:
            return Urgency.MEDIUM
        return Urgency.LOW
