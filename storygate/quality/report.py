"""
Quality Report

Report and issue records produced by the gateway, plus a plain-text
renderer for logs and terminals.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from storygate.core.constants import Dimension, Grade, Severity
from storygate.quality.adjuster import ThresholdProfile, WeightProfile
from storygate.quality.characteristics import CharacteristicProfile
from storygate.quality.scorers import DimensionScore


@dataclass(frozen=True)
class QualityIssue:
    """A problem found during evaluation."""
    severity: Severity
    description: str
    dimension: Optional[Dimension] = None
    score: Optional[float] = None
    suggested_fix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "description": self.description,
            "dimension": self.dimension.value if self.dimension else None,
            "score": self.score,
            "suggested_fix": self.suggested_fix,
        }


@dataclass
class QualityReport:
    """Outcome of one evaluation."""
    overall_score: float
    grade: Grade
    passed: bool
    dimension_scores: Dict[Dimension, DimensionScore] = field(default_factory=dict)
    threshold: Optional[ThresholdProfile] = None
    weights: Optional[WeightProfile] = None
    characteristics: Optional[CharacteristicProfile] = None
    issues: List[QualityIssue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def critical_issues(self) -> List[QualityIssue]:
        return [i for i in self.issues if i.severity == Severity.CRITICAL]

    def score_for(self, dimension: Dimension) -> float:
        entry = self.dimension_scores.get(dimension)
        return entry.score if entry else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "passed": self.passed,
            "dimension_scores": {d.value: s.to_dict() for d, s in self.dimension_scores.items()},
            "threshold": self.threshold.to_dict() if self.threshold else None,
            "weights": self.weights.to_dict() if self.weights else None,
            "characteristics": self.characteristics.to_dict() if self.characteristics else None,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": list(self.suggestions),
            "timestamp": self.timestamp.isoformat(),
        }

    def summary_dict(self) -> Dict[str, Any]:
        """Compact form persisted to the history log."""
        return {
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "passed": self.passed,
            "scores": {d.value: s.score for d, s in self.dimension_scores.items()},
            "minimum": self.threshold.minimum if self.threshold else None,
            "issue_count": len(self.issues),
            "timestamp": self.timestamp.isoformat(),
        }


def generate_quality_report(report: QualityReport) -> str:
    """Render a human-readable evaluation report."""
    lines = [
        "=" * 70,
        "QUALITY GATEWAY REPORT",
        "=" * 70,
        "",
        f"Overall Score: {report.overall_score:.1f}/10  ({report.grade.value})",
        f"Verdict: {'PASSED' if report.passed else 'FAILED'}",
    ]
    if report.threshold:
        lines.append(
            f"Threshold: minimum {report.threshold.minimum:.2f}, target {report.threshold.target:.2f}"
        )
    lines.append("")

    if report.dimension_scores:
        lines.append("Dimensions:")
        for dimension, entry in report.dimension_scores.items():
            weight = report.weights[dimension] if report.weights else 0.0
            status = "FAILED" if entry.failed else f"{entry.score:.1f}"
            lines.append(f"  {dimension.value:<12} {status:>6}  (weight {weight:.2f})")
        lines.append("")

    if report.issues:
        lines.append(f"Issues ({len(report.issues)}):")
        for issue in report.issues:
            lines.append(f"  [{issue.severity.value.upper()}] {issue.description}")
        lines.append("")

    if report.suggestions:
        lines.append("Suggestions:")
        for suggestion in report.suggestions:
            lines.append(f"  - {suggestion}")
        lines.append("")

    lines.append("=" * 70)
    return "\n".join(lines)
