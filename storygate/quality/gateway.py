"""
Quality Gateway

Orchestrates one evaluation: extract features, run the four dimension
scorers, weight their scores, grade the result, compare it with the
adjusted threshold, and record history.

    Scoring -> Weighting -> Thresholding -> Passed | Failed

evaluate() never raises. A scorer that fails contributes a zero score and an
issue; a failure of the whole pipeline yields a CRITICAL report.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

from storygate.core.config import GatewayConfig
from storygate.core.constants import DIMENSION_PRIORITY, Dimension, Grade, Severity
from storygate.core.exceptions import PersistenceError
from storygate.core.logging_config import get_logger
from storygate.core.result import Result
from storygate.quality.adjuster import ThresholdProfile, ThresholdWeightAdjuster, WeightProfile
from storygate.quality.characteristics import CharacteristicAnalyzer
from storygate.quality.features import ContentSample, FeatureExtractor, FeatureSet, StoryContext
from storygate.quality.history import QualityHistory, TrendReport
from storygate.quality.report import QualityIssue, QualityReport
from storygate.quality.scorers import DimensionScore, DimensionScorer, default_scorers, rewrite_passive

logger = get_logger("quality.gateway")

SUGGESTIONS: Dict[Dimension, str] = {
    Dimension.PROGRESSION: "Introduce a turning point: a decision, discovery or escalating conflict",
    Dimension.AGENCY: "Let characters decide and act instead of waiting or hedging",
    Dimension.STYLE: "Add sensory detail, figurative language and varied sentence length",
    Dimension.TENSION: "Advance the relationship and leave charged moments unresolved",
}

INDICATOR_SUGGESTIONS: Dict[str, str] = {
    "plot_progression": "Add plot-moving events so the chapter ends somewhere new",
    "conflict_escalation": "Raise the stakes of the central conflict",
    "low_repetition": "Avoid repeating the beats of recent chapters",
    "new_elements": "Introduce at least two new elements (people, places, secrets)",
    "character_agency": "Replace passive reactions with choices the characters make",
}


class QualityGateway:
    """
    Scores content and decides accept or regenerate.

    Usage:
        gateway = QualityGateway()
        report = gateway.evaluate(text, {"chapter": 4, "characters": ["Mira"]})
        if not report.passed:
            ...  # regenerate with the selector's fallback chain
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        adjuster: Optional[ThresholdWeightAdjuster] = None,
        history: Optional[QualityHistory] = None,
        scorers: Optional[List[DimensionScorer]] = None,
        history_path: Optional[Path] = None,
    ):
        self.config = config or GatewayConfig()
        self.extractor = FeatureExtractor()
        self.analyzer = CharacteristicAnalyzer(self.extractor)
        self.adjuster = adjuster or ThresholdWeightAdjuster(self.config)
        self.history = history or QualityHistory(
            limit=self.config.history_limit,
            path=history_path,
            tolerance=self.config.trend_tolerance,
        )
        self.scorers = scorers if scorers is not None else default_scorers()

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def evaluate(self, text: Optional[str], context=None) -> QualityReport:
        """Evaluate a piece of text. Always returns a complete report."""
        try:
            report = self._evaluate(ContentSample.create(text, context))
        except Exception as e:
            logger.error(f"Evaluation failed: {e}")
            report = self._failure_report(e)

        try:
            self.history.append(report)
        except PersistenceError as e:
            logger.error(f"Could not persist quality history: {e}")

        logger.info(
            f"Evaluation: {report.overall_score:.1f} {report.grade.value} "
            f"({'passed' if report.passed else 'failed'})"
        )
        return report

    def _evaluate(self, sample: ContentSample) -> QualityReport:
        features = self.extractor.extract(sample)
        profile = self.analyzer.analyze(sample, features)
        threshold, weights = self.adjuster.adjust(profile)

        scores = self.score_dimensions(features, sample.context)
        overall = self.combine(scores, weights)
        grade = self.grade_for(overall)
        passed = overall >= threshold.minimum

        issues = self._collect_issues(sample, scores, threshold, weights, passed)
        suggestions = self._suggestions(sample, scores, threshold)

        return QualityReport(
            overall_score=overall,
            grade=grade,
            passed=passed,
            dimension_scores=scores,
            threshold=threshold,
            weights=weights,
            characteristics=profile,
            issues=issues,
            suggestions=suggestions,
        )

    def score_dimensions(self, features: FeatureSet, context: StoryContext) -> Dict[Dimension, DimensionScore]:
        """Run every scorer; all must finish before weighting."""
        if self.config.parallel_scoring and len(self.scorers) > 1:
            with ThreadPoolExecutor(max_workers=len(self.scorers)) as executor:
                futures = [(s, executor.submit(s.safe_score, features, context)) for s in self.scorers]
                results = [(s, self._unwrap(s, f.result())) for s, f in futures]
        else:
            results = [(s, self._unwrap(s, s.safe_score(features, context))) for s in self.scorers]

        scores = {s.dimension: result for s, result in results}
        for dimension in Dimension:
            if dimension not in scores:
                scores[dimension] = DimensionScore.zero(dimension, f"No scorer for {dimension.value}", failed=True)
        return scores

    @staticmethod
    def _unwrap(scorer: DimensionScorer, result: Result[DimensionScore]) -> DimensionScore:
        if result.ok:
            return result.value
        return DimensionScore.zero(scorer.dimension, result.message, failed=True)

    @staticmethod
    def combine(scores: Dict[Dimension, DimensionScore], weights: WeightProfile) -> float:
        overall = sum(scores[d].score * weights[d] for d in Dimension)
        return round(max(0.0, min(10.0, overall)), 2)

    def grade_for(self, score: float) -> Grade:
        breakpoints = self.config.grades
        if score >= breakpoints.perfect:
            return Grade.PERFECT
        if score >= breakpoints.excellent:
            return Grade.EXCELLENT
        if score >= breakpoints.good:
            return Grade.GOOD
        if score >= breakpoints.poor:
            return Grade.POOR
        return Grade.CRITICAL

    # =========================================================================
    # ISSUES AND SUGGESTIONS
    # =========================================================================

    def _collect_issues(self, sample, scores, threshold: ThresholdProfile,
                        weights: WeightProfile, passed: bool) -> List[QualityIssue]:
        issues = []
        if sample.is_empty:
            issues.append(QualityIssue(Severity.CRITICAL, "Empty content"))

        ranked = []
        for dimension, entry in scores.items():
            if entry.failed:
                issues.append(QualityIssue(
                    Severity.HIGH, entry.issues[0] if entry.issues else "Scorer failed",
                    dimension, entry.score,
                ))
                continue
            if not passed and entry.score < threshold.minimum:
                deficit = weights[dimension] * (threshold.minimum - entry.score)
                ranked.append((self._severity(entry.score, threshold.minimum), deficit, dimension, entry))
            if not sample.is_empty:
                for description in entry.issues:
                    issues.append(QualityIssue(Severity.LOW, description, dimension, entry.score))

        ranked.sort(key=lambda item: (item[0].rank, -item[1], DIMENSION_PRIORITY[item[2]]))
        shortfalls = [
            QualityIssue(
                severity, f"{dimension.value} scored {entry.score:.1f}, below minimum {threshold.minimum:.1f}",
                dimension, entry.score, SUGGESTIONS[dimension],
            )
            for severity, _, dimension, entry in ranked
        ]
        issues = shortfalls + issues
        issues.sort(key=lambda issue: issue.severity.rank)
        return issues

    def _severity(self, score: float, minimum: float) -> Severity:
        if score < self.config.critical_dimension_score:
            return Severity.CRITICAL
        if score < minimum - self.config.high_severity_gap:
            return Severity.HIGH
        return Severity.MEDIUM

    @staticmethod
    def _suggestions(sample: ContentSample, scores, threshold: ThresholdProfile) -> List[str]:
        """Ordered by ascending dimension score."""
        suggestions = []
        for dimension, entry in sorted(scores.items(), key=lambda item: (item[1].score, DIMENSION_PRIORITY[item[0]])):
            if entry.score >= threshold.target:
                continue
            priority = "HIGH" if entry.score < threshold.minimum else "MEDIUM"
            suggestions.append(f"[{priority}] {dimension.value}: {SUGGESTIONS[dimension]}")
            for indicator, ok in entry.indicators.items():
                if not ok and indicator in INDICATOR_SUGGESTIONS:
                    suggestions.append(f"[{priority}] {dimension.value}: {INDICATOR_SUGGESTIONS[indicator]}")

        agency = scores.get(Dimension.AGENCY)
        if agency and not agency.indicators.get("character_agency", True):
            _, changes = rewrite_passive(sample.text)
            for change in changes[:3]:
                suggestions.append(f"Rewrite '{change['original']}' as '{change['replacement']}'")
        return suggestions

    def _failure_report(self, error: Exception) -> QualityReport:
        return QualityReport(
            overall_score=0.0,
            grade=Grade.CRITICAL,
            passed=False,
            dimension_scores={d: DimensionScore.zero(d, "Evaluation aborted", failed=True) for d in Dimension},
            issues=[QualityIssue(Severity.CRITICAL, f"Evaluation failed: {error}")],
        )

    # =========================================================================
    # HISTORY
    # =========================================================================

    def get_trend(self, window_size: Optional[int] = None) -> TrendReport:
        return self.history.get_trend(window_size or self.config.trend_window)

    def get_summary(self) -> Dict[str, Any]:
        summary = self.history.get_summary()
        summary["trend"] = self.get_trend().to_dict()
        summary["baseline_minimum"] = self.adjuster.baseline_minimum
        return summary

    def export_metrics(self) -> Dict[str, Any]:
        """Serializable snapshot of history, trend and adjustments."""
        return {
            "summary": self.get_summary(),
            "history": [entry.to_dict() for entry in self.history.entries],
            "adjustments": [record.to_dict() for record in self.adjuster.history],
        }

    def reset(self) -> None:
        self.history.clear()
        logger.info("Quality history reset")
