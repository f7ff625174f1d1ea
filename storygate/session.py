"""
Storygate Session

Explicit owner of every stateful component for one writing session. Callers
construct a session and pass it around; nothing in the package keeps
module-level state.

Usage:
    session = StorygateSession(load_config("config/storygate_config.json"))

    decision = session.decide_strategy({"dropout_rate": 0.1}, {"chapter": 12, "total_chapters": 40})
    text = generate(prompt, decision.strategy)          # caller-supplied
    report = session.evaluate(text, {"chapter": 12})
    session.record_outcome(decision.strategy, tokens_used, report.overall_score, quality_scale=10.0)
"""

from pathlib import Path
from typing import Any, Dict, Optional

from storygate.core.config import StorygateConfig
from storygate.core.exceptions import BudgetError
from storygate.core.logging_config import get_logger
from storygate.core.result import Result
from storygate.budget.ledger import BudgetLedger
from storygate.budget.performance import PerformanceRecord, PerformanceTracker, normalize_quality
from storygate.budget.selector import StrategyDecision, StrategySelector
from storygate.budget.situation import SituationAnalyzer
from storygate.budget.strategies import Strategy, StrategyCatalog
from storygate.quality.adjuster import ThresholdWeightAdjuster
from storygate.quality.gateway import QualityGateway
from storygate.quality.report import QualityReport

logger = get_logger("session")


class StorygateSession:
    """Evaluation API for one session."""

    def __init__(
        self,
        config: Optional[StorygateConfig] = None,
        history_path: Optional[Path] = None,
        performance_path: Optional[Path] = None,
        catalog: Optional[StrategyCatalog] = None,
    ):
        self.config = config or StorygateConfig()
        self.catalog = catalog or StrategyCatalog()

        self.adjuster = ThresholdWeightAdjuster(self.config.gateway)
        self.gateway = QualityGateway(self.config.gateway, adjuster=self.adjuster, history_path=history_path)
        self.ledger = BudgetLedger(self.config.budget, self.catalog)
        self.situation_analyzer = SituationAnalyzer(self.config.situation)
        self.selector = StrategySelector(self.config.budget, self.catalog)
        self.tracker = PerformanceTracker(
            self.config.tracker,
            adjuster=self.adjuster,
            unit_rate=self.config.budget.unit_rate,
            path=performance_path,
        )

    def evaluate(self, text: Optional[str], context=None) -> QualityReport:
        return self.gateway.evaluate(text, context)

    def decide_strategy(self, engagement=None, position=None) -> StrategyDecision:
        """
        Choose a strategy for the next generation.

        Args:
            engagement: EngagementMetrics or dict of reader metrics
            position: NarrativePosition or dict describing the chapter position

        Raises:
            BudgetExhaustedError: no strategy is affordable
        """
        signal = self.situation_analyzer.analyze(engagement, position)
        return self.selector.select(signal, self.ledger.state())

    def try_decide_strategy(self, engagement=None, position=None) -> Result[StrategyDecision]:
        try:
            return Result.success(self.decide_strategy(engagement, position))
        except BudgetError as e:
            return Result.failure(e)

    def record_outcome(self, strategy: Strategy, tokens_used: int, quality_achieved: float,
                       engagement_outcome: Optional[float] = None,
                       quality_scale: float = 1.0) -> PerformanceRecord:
        """
        Charge the spend, log performance and let the tracker adapt thresholds.

        The quality is validated before anything is charged, so a rejected
        outcome leaves the session unchanged.

        Raises:
            InvalidOutcomeError: quality outside [0, quality_scale]
        """
        quality = normalize_quality(quality_achieved, quality_scale)
        self.ledger.record_spend(strategy, tokens_used)
        record = self.tracker.record(strategy, tokens_used, quality, engagement_outcome)
        self.tracker.adapt()
        return record

    def summary(self) -> Dict[str, Any]:
        return {
            "quality": self.gateway.get_summary(),
            "budget": self.ledger.stats(),
            "strategies": self.tracker.strategy_stats(),
        }

    def reset(self) -> None:
        self.gateway.reset()
        self.adjuster.reset()
        self.ledger.reset()
        self.tracker.reset()
        logger.info("Session reset")
