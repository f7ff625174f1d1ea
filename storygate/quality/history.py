"""
Quality History

Ordered record of evaluation outcomes with trend analysis. Keeps a bounded
in-memory window and, when given a path, an append-only JSONL log.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Deque, Dict, List, Optional, Sequence

from storygate.core.constants import Grade, TrendDirection
from storygate.core.exceptions import PersistenceError
from storygate.core.logging_config import get_logger

logger = get_logger("quality.history")


@dataclass(frozen=True)
class TrendReport:
    """Comparison of the most recent window against the one before it."""
    direction: TrendDirection
    delta: float
    window: int
    recent_mean: Optional[float] = None
    previous_mean: Optional[float] = None

    @classmethod
    def stable(cls, window: int) -> "TrendReport":
        return cls(direction=TrendDirection.STABLE, delta=0.0, window=window)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "delta": self.delta,
            "window": self.window,
            "recent_mean": self.recent_mean,
            "previous_mean": self.previous_mean,
        }


def compute_trend(values: Sequence[float], window: int, tolerance: float = 0.0) -> TrendReport:
    """
    Compare the mean of the last `window` values with the preceding window.

    Fewer than 2 * window values reports a stable trend with zero delta.
    """
    if window <= 0:
        raise ValueError("window must be positive")
    if len(values) < 2 * window:
        return TrendReport.stable(window)

    recent = values[-window:]
    previous = values[-2 * window:-window]
    recent_mean = sum(recent) / window
    previous_mean = sum(previous) / window
    delta = round(recent_mean - previous_mean, 6)

    if delta > tolerance:
        direction = TrendDirection.IMPROVING
    elif delta < -tolerance:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE
    return TrendReport(direction, delta, window, round(recent_mean, 6), round(previous_mean, 6))


@dataclass(frozen=True)
class HistoryEntry:
    """Compact form of one evaluation."""
    overall_score: float
    grade: Grade
    passed: bool
    scores: Dict[str, float] = field(default_factory=dict)
    minimum: Optional[float] = None
    issue_count: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            overall_score=float(data["overall_score"]),
            grade=Grade(data["grade"]),
            passed=bool(data["passed"]),
            scores=dict(data.get("scores") or {}),
            minimum=data.get("minimum"),
            issue_count=int(data.get("issue_count", 0)),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else datetime.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "passed": self.passed,
            "scores": dict(self.scores),
            "minimum": self.minimum,
            "issue_count": self.issue_count,
            "timestamp": self.timestamp.isoformat(),
        }


class QualityHistory:
    """
    Time-ordered evaluation history.

    Usage:
        history = QualityHistory(limit=50, path=Path("logs/quality.jsonl"))
        history.append(report)
        trend = history.get_trend(3)
    """

    def __init__(self, limit: int = 50, path: Optional[Path] = None, tolerance: float = 0.0):
        self.limit = limit
        self.path = Path(path) if path else None
        self.tolerance = tolerance
        self._entries: Deque[HistoryEntry] = deque(maxlen=limit)
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def append(self, report) -> HistoryEntry:
        """Record a QualityReport (anything exposing summary_dict())."""
        entry = HistoryEntry.from_dict(report.summary_dict())
        with self._lock:
            self._entries.append(entry)
            if self.path:
                self._persist(entry)
        return entry

    def scores(self) -> List[float]:
        return [e.overall_score for e in self.entries]

    def get_trend(self, window: int = 3) -> TrendReport:
        return compute_trend(self.scores(), window, self.tolerance)

    def get_summary(self) -> Dict[str, Any]:
        entries = self.entries
        if not entries:
            return {"count": 0, "average": 0.0, "pass_rate": 0.0, "grades": {}, "latest": None}
        grades: Dict[str, int] = {}
        for entry in entries:
            grades[entry.grade.value] = grades.get(entry.grade.value, 0) + 1
        return {
            "count": len(entries),
            "average": round(sum(e.overall_score for e in entries) / len(entries), 2),
            "pass_rate": round(sum(1 for e in entries if e.passed) / len(entries), 4),
            "grades": grades,
            "latest": entries[-1].overall_score,
        }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def load(self) -> int:
        """Replay the JSONL log into memory. Returns the number of entries read."""
        if not self.path or not self.path.exists():
            return 0
        loaded = []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                for line in f:
                    if line.strip():
                        loaded.append(HistoryEntry.from_dict(json.loads(line)))
        except (OSError, ValueError, KeyError) as e:
            raise PersistenceError(self.path, str(e)) from e

        with self._lock:
            self._entries.extend(loaded)
        logger.info(f"Loaded {len(loaded)} quality history entries from {self.path}")
        return len(loaded)

    def _persist(self, entry: HistoryEntry) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry.to_dict()) + '\n')
        except OSError as e:
            raise PersistenceError(self.path, str(e)) from e
