"""
Strategy Selector

Chooses a generation strategy from the situation and the budget state,
tunes it, and prepares cheaper fallbacks for regeneration.

Rules, first match wins; a rule whose strategy is unavailable falls through:
    1. critical urgency            -> Emergency
    2. creativity need >= 0.7      -> Creativity
    3. pressure >= 0.85 or only
       Efficiency is available     -> Efficiency
    4. otherwise                   -> Balanced
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from storygate.core.config import BudgetConfig
from storygate.core.constants import StrategyName, Urgency
from storygate.core.exceptions import BudgetExhaustedError
from storygate.core.logging_config import get_logger
from storygate.budget.ledger import BudgetState, available_strategies
from storygate.budget.situation import SituationSignal
from storygate.budget.strategies import Strategy, StrategyCatalog, TokenRange

logger = get_logger("budget.selector")


@dataclass(frozen=True)
class TuningContext:
    pressure: float = 0.0
    dropout_risk: float = 0.0


@dataclass(frozen=True)
class FallbackOption:
    """A cheaper strategy and the condition that triggers it."""
    strategy: Strategy
    trigger: str

    def to_dict(self) -> Dict[str, Any]:
        return {"alternative": self.strategy.name.value, "trigger": self.trigger}


@dataclass(frozen=True)
class ExecutionPlan:
    estimated_tokens: int
    estimated_cost: float
    target_quality: str
    max_attempts: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimated_tokens": self.estimated_tokens,
            "estimated_cost": round(self.estimated_cost, 6),
            "target_quality": self.target_quality,
            "max_attempts": self.max_attempts,
        }


@dataclass(frozen=True)
class StrategyDecision:
    """Selected strategy with its fallbacks and the reasoning behind it."""
    strategy: Strategy
    fallback_chain: List[Strategy]
    reason: str
    reasoning: str
    execution_plan: ExecutionPlan
    base_strategy: Optional[Strategy] = None
    fallback_options: List[FallbackOption] = field(default_factory=list)

    def __iter__(self):
        return iter((self.strategy, self.fallback_chain))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.to_dict(),
            "fallback_chain": [s.name.value for s in self.fallback_chain],
            "fallback_options": [o.to_dict() for o in self.fallback_options],
            "reason": self.reason,
            "reasoning": self.reasoning,
            "execution_plan": self.execution_plan.to_dict(),
        }


class StrategySelector:
    """Rule-ordered, deterministic strategy selection."""

    def __init__(self, config: Optional[BudgetConfig] = None, catalog: Optional[StrategyCatalog] = None):
        self.config = config or BudgetConfig()
        self.catalog = catalog or StrategyCatalog()

    def select(self, situation: SituationSignal, budget: BudgetState) -> StrategyDecision:
        pressure = budget.pressure()
        available = available_strategies(pressure, self.config, self.catalog)
        if not available:
            logger.warning(f"No strategy available at pressure {pressure:.2f}")
            raise BudgetExhaustedError(pressure, budget.total_spent, budget.session_budget)

        name, reason, notes = self._apply_rules(situation, pressure, available)
        base = self.catalog.get(name)
        tuned = self.tune_strategy(base, TuningContext(pressure, situation.dropout_risk))
        chain = self.fallback_chain(base, available)
        trigger = "cost_overrun" if pressure > self.config.full_catalog_max else "quality_rejected"

        decision = StrategyDecision(
            strategy=tuned,
            fallback_chain=chain,
            reason=reason,
            reasoning="; ".join(notes),
            execution_plan=self._plan(tuned, chain),
            base_strategy=base,
            fallback_options=[FallbackOption(s, trigger) for s in chain],
        )
        logger.info(f"Selected {tuned.label} ({reason}) at pressure {pressure:.2f}")
        return decision

    def _apply_rules(self, situation: SituationSignal, pressure: float,
                     available: List[StrategyName]) -> Tuple[StrategyName, str, List[str]]:
        cfg = self.config
        notes = [f"budget pressure {pressure:.2f}"]

        if situation.urgency == Urgency.CRITICAL:
            if StrategyName.EMERGENCY in available:
                notes.append("critical urgency")
                return StrategyName.EMERGENCY, "emergency_intervention", notes
            notes.append("emergency unavailable")

        if situation.creativity_need >= cfg.creativity_need_threshold:
            if StrategyName.CREATIVITY in available:
                notes.append(f"creativity need {situation.creativity_need:.2f}")
                return StrategyName.CREATIVITY, "high_creativity_need", notes
            notes.append("creativity unavailable")

        only_efficiency = available == [StrategyName.EFFICIENCY]
        if pressure >= cfg.efficiency_pressure or only_efficiency:
            if StrategyName.EFFICIENCY in available:
                notes.append("cost optimization")
                return StrategyName.EFFICIENCY, "cost_optimization", notes

        if StrategyName.BALANCED in available:
            return StrategyName.BALANCED, "balanced_approach", notes

        notes.append("cheapest available")
        return available[0], "cheapest_available", notes

    def tune_strategy(self, base: Strategy, context: TuningContext) -> Strategy:
        """Bounded pressure shrink and dropout boost; returns a new Strategy."""
        cfg = self.config
        token_range = base.token_range
        target, maximum = token_range.target, token_range.max
        creativity = base.creativity_level

        if context.pressure > cfg.tune_pressure_threshold:
            factor = max(0.0, 1.0 - context.pressure * cfg.pressure_shrink_rate)
            target = max(token_range.min, int(round(target * factor)))
            if maximum is not None:
                maximum = max(target, int(round(maximum * factor)))

        if context.dropout_risk > cfg.dropout_trigger:
            boost = min(cfg.max_boost, context.dropout_risk * cfg.dropout_boost_rate)
            creativity = min(base.creativity_level * (1.0 + cfg.max_boost), creativity * (1.0 + boost))
            target = min(int(round(token_range.target * (1.0 + cfg.max_boost))), int(round(target * (1.0 + boost))))
            if maximum is not None:
                maximum = max(maximum, target)

        if (target, maximum, creativity) == (token_range.target, token_range.max, base.creativity_level):
            return base
        return base.with_changes(
            token_range=TokenRange(min=token_range.min, target=target, max=maximum),
            creativity_level=round(creativity, 4),
        )

    def fallback_chain(self, strategy: Strategy, available: List[StrategyName]) -> List[Strategy]:
        return self.catalog.cheaper_than(strategy, available)

    def _plan(self, strategy: Strategy, chain: List[Strategy]) -> ExecutionPlan:
        if strategy.quality_target >= 0.8:
            label = "premium"
        elif strategy.quality_target >= 0.7:
            label = "standard"
        else:
            label = "economy"
        return ExecutionPlan(
            estimated_tokens=strategy.token_range.target,
            estimated_cost=strategy.estimated_cost(self.config.unit_rate),
            target_quality=label,
            max_attempts=1 + len(chain),
        )
