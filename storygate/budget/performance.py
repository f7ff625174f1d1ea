"""
Performance Tracker

Records the outcome of each strategy decision and feeds it back into the
threshold adjuster. Keeps per-strategy attempt/success counters and an
exponential moving average of quality per unit cost.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from storygate.core.config import TrackerConfig
from storygate.core.constants import StrategyName, TrendDirection
from storygate.core.exceptions import InvalidOutcomeError, PersistenceError
from storygate.core.logging_config import get_logger
from storygate.budget.strategies import Strategy
from storygate.quality.adjuster import ThresholdWeightAdjuster
from storygate.quality.history import TrendReport, compute_trend

logger = get_logger("budget.performance")


def normalize_quality(quality: float, scale: float = 1.0) -> float:
    """Map a quality on [0, scale] to [0, 1]; anything outside the scale is rejected."""
    if scale <= 0 or not 0.0 <= quality <= scale:
        raise InvalidOutcomeError(quality, scale)
    return quality / scale


@dataclass(frozen=True)
class PerformanceRecord:
    """Outcome of one generation."""
    strategy_name: StrategyName
    tokens_used: int
    quality_achieved: float  # normalized to [0, 1]
    cost: float
    cost_effectiveness: float
    quality_per_cost: float
    success: bool
    engagement: Optional[float] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy_name": self.strategy_name.value,
            "tokens_used": self.tokens_used,
            "quality_achieved": self.quality_achieved,
            "cost": round(self.cost, 6),
            "cost_effectiveness": self.cost_effectiveness,
            "quality_per_cost": round(self.quality_per_cost, 6),
            "success": self.success,
            "engagement": self.engagement,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class StrategyStats:
    """Rolling counters for one strategy."""
    attempts: int = 0
    successes: int = 0
    total_tokens: int = 0
    total_quality: float = 0.0
    ema_quality_per_cost: Optional[float] = None

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0

    @property
    def average_quality(self) -> float:
        return self.total_quality / self.attempts if self.attempts else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "success_rate": round(self.success_rate, 4),
            "average_quality": round(self.average_quality, 4),
            "total_tokens": self.total_tokens,
            "ema_quality_per_cost": self.ema_quality_per_cost,
        }


class PerformanceTracker:
    """
    Learns from strategy outcomes.

    Usage:
        tracker = PerformanceTracker(adjuster=gateway.adjuster)
        tracker.record(strategy, tokens_used=4000, quality_achieved=0.85)
        tracker.adapt()
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        adjuster: Optional[ThresholdWeightAdjuster] = None,
        unit_rate: float = 0.003,
        path: Optional[Path] = None,
    ):
        self.config = config or TrackerConfig()
        self.adjuster = adjuster
        self.unit_rate = unit_rate
        self.path = Path(path) if path else None
        self._records: List[PerformanceRecord] = []
        self._stats: Dict[StrategyName, StrategyStats] = {}
        self._lock = Lock()

    def record(self, strategy: Strategy, tokens_used: int, quality_achieved: float,
               engagement_outcome: Optional[float] = None, quality_scale: float = 1.0) -> PerformanceRecord:
        """
        Record one outcome and update the strategy's counters.

        Args:
            quality_achieved: Quality on [0, quality_scale]
            quality_scale: 1.0 for fractions, 10.0 for gateway overall scores

        Raises:
            InvalidOutcomeError: quality outside [0, quality_scale]
        """
        normalized = normalize_quality(quality_achieved, quality_scale)
        effective_tokens = tokens_used * strategy.cost_multiplier
        cost = effective_tokens * self.unit_rate

        record = PerformanceRecord(
            strategy_name=strategy.name,
            tokens_used=tokens_used,
            quality_achieved=normalized,
            cost=cost,
            cost_effectiveness=normalized / effective_tokens if effective_tokens else 0.0,
            quality_per_cost=normalized / cost if cost else 0.0,
            success=normalized > strategy.quality_target,
            engagement=engagement_outcome,
        )

        with self._lock:
            self._apply(record)
            if self.path:
                try:
                    self._persist(record)
                except PersistenceError as e:
                    logger.error(f"Could not persist performance record: {e}")

        logger.debug(f"Recorded {strategy.name.value}: quality={normalized} success={record.success}")
        return record

    def _apply(self, record: PerformanceRecord) -> None:
        self._records.append(record)
        stats = self._stats.setdefault(record.strategy_name, StrategyStats())
        stats.attempts += 1
        stats.successes += int(record.success)
        stats.total_tokens += record.tokens_used
        stats.total_quality += record.quality_achieved
        if stats.ema_quality_per_cost is None:
            stats.ema_quality_per_cost = record.quality_per_cost
        else:
            retention = self.config.ema_retention
            stats.ema_quality_per_cost = (
                retention * stats.ema_quality_per_cost + (1.0 - retention) * record.quality_per_cost
            )

    @property
    def records(self) -> List[PerformanceRecord]:
        with self._lock:
            return list(self._records)

    def get_trend(self, window: Optional[int] = None) -> TrendReport:
        values = [r.quality_achieved for r in self.records]
        return compute_trend(values, window or self.config.trend_window, self.config.trend_tolerance)

    def adapt(self) -> Optional[float]:
        """
        Nudge the adjuster's baseline minimum against the quality trend.

        Returns the new baseline, or None when there is no adjuster.
        """
        if self.adjuster is None:
            return None
        trend = self.get_trend()
        step = self.config.adaptation_step
        if trend.direction == TrendDirection.DECLINING:
            return self.adjuster.nudge_baseline(step)
        if trend.direction == TrendDirection.IMPROVING:
            return self.adjuster.nudge_baseline(-step)
        return self.adjuster.baseline_minimum

    def strategy_stats(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name.value: stats.to_dict() for name, stats in self._stats.items()}

    def stats_for(self, name) -> StrategyStats:
        with self._lock:
            stats = self._stats.get(StrategyName(name), StrategyStats())
            return StrategyStats(**vars(stats))

    def most_used_strategy(self) -> Optional[StrategyName]:
        with self._lock:
            if not self._stats:
                return None
            return max(self._stats.items(), key=lambda item: item[1].attempts)[0]

    def most_effective_strategy(self) -> Optional[StrategyName]:
        with self._lock:
            scored = [(n, s.ema_quality_per_cost) for n, s in self._stats.items() if s.ema_quality_per_cost]
        if not scored:
            return None
        return max(scored, key=lambda item: item[1])[0]

    def optimization_report(self) -> str:
        """Markdown summary of strategy performance."""
        stats = self.strategy_stats()
        trend = self.get_trend()
        most_used = self.most_used_strategy()
        most_effective = self.most_effective_strategy()

        lines = [
            "# Strategy Performance Report",
            "",
            f"- Records: {len(self.records)}",
            f"- Quality trend: {trend.direction.value} ({trend.delta:+.3f})",
            f"- Most used: {most_used.value if most_used else 'n/a'}",
            f"- Most effective: {most_effective.value if most_effective else 'n/a'}",
        ]
        if self.adjuster is not None:
            lines.append(f"- Baseline minimum: {self.adjuster.baseline_minimum}")
        lines.extend(["", "| Strategy | Attempts | Success rate | Avg quality |", "|---|---|---|---|"])
        for name, data in stats.items():
            lines.append(
                f"| {name} | {data['attempts']} | {data['success_rate']:.0%} | {data['average_quality']:.2f} |"
            )
        return "\n".join(lines)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
            self._stats.clear()
        logger.info("Performance tracker reset")

    def load(self) -> int:
        """Replay a JSONL log written by earlier sessions into the record list."""
        if not self.path or not self.path.exists():
            return 0
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                rows = [json.loads(line) for line in f if line.strip()]
            loaded = [
                PerformanceRecord(
                    strategy_name=StrategyName(row["strategy_name"]),
                    tokens_used=int(row["tokens_used"]),
                    quality_achieved=float(row["quality_achieved"]),
                    cost=float(row["cost"]),
                    cost_effectiveness=float(row["cost_effectiveness"]),
                    quality_per_cost=float(row["quality_per_cost"]),
                    success=bool(row["success"]),
                    engagement=row.get("engagement"),
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                )
                for row in rows
            ]
        except (OSError, ValueError, KeyError) as e:
            raise PersistenceError(self.path, str(e)) from e

        with self._lock:
            for record in loaded:
                self._apply(record)
        logger.info(f"Loaded {len(loaded)} performance records from {self.path}")
        return len(loaded)

    def _persist(self, record: PerformanceRecord) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(record.to_dict()) + '\n')
        except OSError as e:
            raise PersistenceError(self.path, str(e)) from e
