"""
Budget Ledger

Tracks spend against a fixed session budget. recordSpend is the only
mutation and is serialized with a lock; pressure is recomputed on every read.
"""

from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional

from storygate.core.config import BudgetConfig
from storygate.core.constants import STRATEGY_ORDER, BudgetStatus, StrategyName
from storygate.core.exceptions import BudgetError
from storygate.core.logging_config import get_logger
from storygate.budget.strategies import Strategy, StrategyCatalog

logger = get_logger("budget.ledger")


def available_strategies(pressure: float, config: BudgetConfig,
                         catalog: Optional[StrategyCatalog] = None) -> List[StrategyName]:
    """Ordered strategies allowed at a pressure level; empty means exhausted."""
    if pressure <= config.full_catalog_max:
        allowed = STRATEGY_ORDER
    elif pressure < config.reduced_catalog_max:
        allowed = [StrategyName.EFFICIENCY, StrategyName.BALANCED]
    elif pressure < config.minimal_catalog_max:
        allowed = [StrategyName.EFFICIENCY]
    else:
        allowed = []
    if catalog is not None:
        allowed = [name for name in allowed if name in catalog]
    return list(allowed)


@dataclass(frozen=True)
class BudgetState:
    """Point-in-time copy of the ledger totals."""
    session_budget: float
    total_spent: float = 0.0
    total_tokens_used: int = 0

    def pressure(self) -> float:
        return self.total_spent / self.session_budget

    @property
    def remaining(self) -> float:
        return self.session_budget - self.total_spent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_budget": self.session_budget,
            "total_spent": round(self.total_spent, 6),
            "total_tokens_used": self.total_tokens_used,
            "pressure": round(self.pressure(), 4),
        }


@dataclass(frozen=True)
class SpendReceipt:
    """Result of one recorded spend."""
    strategy: StrategyName
    tokens_used: int
    cost: float
    savings_vs_baseline: float
    efficiency_rate: float
    pressure: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "tokens_used": self.tokens_used,
            "cost": round(self.cost, 6),
            "savings_vs_baseline": round(self.savings_vs_baseline, 6),
            "efficiency_rate": round(self.efficiency_rate, 4),
            "pressure": round(self.pressure, 4),
        }


class BudgetLedger:
    """
    Session budget accounting.

    Usage:
        ledger = BudgetLedger(BudgetConfig(session_budget=100))
        receipt = ledger.record_spend(strategy, 1500)
        ledger.pressure()
    """

    def __init__(self, config: Optional[BudgetConfig] = None, catalog: Optional[StrategyCatalog] = None):
        self.config = config or BudgetConfig()
        self.catalog = catalog or StrategyCatalog()
        self._lock = Lock()
        self._total_spent = 0.0
        self._total_tokens = 0
        self._total_savings = 0.0
        self._chapters = 0
        self._usage: Dict[StrategyName, int] = {}
        self._alerted: List[float] = []

    # =========================================================================
    # MUTATION
    # =========================================================================

    def record_spend(self, strategy: Strategy, tokens_used: int) -> SpendReceipt:
        """Add the cost of one generation to the session totals."""
        if tokens_used < 0:
            raise BudgetError("tokens_used must be non-negative", {"tokens_used": tokens_used})

        unit_cost = tokens_used * self.config.unit_rate
        cost = unit_cost * strategy.cost_multiplier
        baseline_multiplier = self.catalog.baseline().cost_multiplier
        savings = unit_cost * baseline_multiplier - cost
        efficiency_rate = 1.0 - strategy.cost_multiplier / baseline_multiplier

        with self._lock:
            self._total_spent += cost
            self._total_tokens += tokens_used
            self._total_savings += max(0.0, savings)
            self._chapters += 1
            self._usage[strategy.name] = self._usage.get(strategy.name, 0) + 1
            pressure = self._total_spent / self.config.session_budget
            crossed = [level for level in self.config.alert_levels
                       if pressure >= level and level not in self._alerted]
            self._alerted.extend(crossed)

        for level in crossed:
            logger.warning(f"Budget alert: pressure {pressure:.2f} crossed {level:.0%}")
        logger.debug(f"Spent {cost:.4f} on {tokens_used} tokens ({strategy.name.value})")

        return SpendReceipt(strategy.name, tokens_used, cost, savings, efficiency_rate, pressure)

    def reset(self) -> None:
        with self._lock:
            self._total_spent = 0.0
            self._total_tokens = 0
            self._total_savings = 0.0
            self._chapters = 0
            self._usage.clear()
            self._alerted.clear()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def state(self) -> BudgetState:
        with self._lock:
            return BudgetState(self.config.session_budget, self._total_spent, self._total_tokens)

    def pressure(self) -> float:
        return self.state().pressure()

    def available_strategies(self, pressure: Optional[float] = None) -> List[StrategyName]:
        if pressure is None:
            pressure = self.pressure()
        return available_strategies(pressure, self.config, self.catalog)

    def budget_status(self, pressure: float) -> BudgetStatus:
        levels = self.config.alert_levels
        if len(levels) >= 3 and pressure >= levels[2]:
            return BudgetStatus.EMERGENCY
        if len(levels) >= 2 and pressure >= levels[1]:
            return BudgetStatus.CRITICAL
        if levels and pressure >= levels[0]:
            return BudgetStatus.WARNING
        return BudgetStatus.HEALTHY

    def status(self) -> Dict[str, Any]:
        state = self.state()
        pressure = state.pressure()
        available = self.available_strategies(pressure)
        return {
            "status": self.budget_status(pressure).value,
            "pressure": round(pressure, 4),
            "total_spent": round(state.total_spent, 6),
            "remaining_budget": round(state.remaining, 6),
            "total_tokens_used": state.total_tokens_used,
            "available_strategies": [name.value for name in available],
            "recommend_efficiency": pressure > self.config.full_catalog_max,
        }

    def usage_counts(self) -> Dict[str, int]:
        with self._lock:
            return {name.value: count for name, count in self._usage.items()}

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            chapters, savings = self._chapters, self._total_savings
        return {
            **self.status(),
            "chapters_generated": chapters,
            "total_savings": round(savings, 6),
            "strategy_usage": self.usage_counts(),
        }
