"""
Strategy Catalog

Named bundles of generation-effort parameters. Strategies are immutable;
tuning produces a new value.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from storygate.core.constants import STRATEGY_ORDER, StrategyName
from storygate.core.exceptions import UnknownStrategyError


@dataclass(frozen=True)
class TokenRange:
    """Token bounds for one generation request. max None means unbounded."""
    min: int
    target: int
    max: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max, "target": self.target}


@dataclass(frozen=True)
class Strategy:
    """A generation strategy."""
    name: StrategyName
    label: str
    token_range: TokenRange
    cost_multiplier: float
    creativity_level: float
    quality_target: float
    description: str = ""

    def with_changes(self, **changes) -> "Strategy":
        return replace(self, **changes)

    def estimated_cost(self, unit_rate: float, tokens: Optional[int] = None) -> float:
        tokens = self.token_range.target if tokens is None else tokens
        return tokens * unit_rate * self.cost_multiplier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "label": self.label,
            "token_range": self.token_range.to_dict(),
            "cost_multiplier": self.cost_multiplier,
            "creativity_level": round(self.creativity_level, 4),
            "quality_target": self.quality_target,
        }


DEFAULT_STRATEGIES: Dict[StrategyName, Strategy] = {
    StrategyName.EFFICIENCY: Strategy(
        name=StrategyName.EFFICIENCY,
        label="Efficiency",
        token_range=TokenRange(min=1200, target=1500, max=2000),
        cost_multiplier=0.25,
        creativity_level=0.3,
        quality_target=0.6,
        description="Lean generation for routine chapters",
    ),
    StrategyName.BALANCED: Strategy(
        name=StrategyName.BALANCED,
        label="Balanced",
        token_range=TokenRange(min=2000, target=2750, max=3500),
        cost_multiplier=0.5,
        creativity_level=0.6,
        quality_target=0.7,
        description="Default quality/cost trade-off",
    ),
    StrategyName.CREATIVITY: Strategy(
        name=StrategyName.CREATIVITY,
        label="Creativity",
        token_range=TokenRange(min=5000, target=8000),
        cost_multiplier=1.0,
        creativity_level=1.0,
        quality_target=0.8,
        description="Full effort for milestone chapters",
    ),
    StrategyName.EMERGENCY: Strategy(
        name=StrategyName.EMERGENCY,
        label="Emergency",
        token_range=TokenRange(min=7000, target=10000),
        cost_multiplier=1.5,
        creativity_level=1.2,
        quality_target=0.85,
        description="Maximum effort when readers are leaving",
    ),
}


class StrategyCatalog:
    """Ordered, cheapest-first set of strategies."""

    def __init__(self, strategies: Optional[Iterable[Strategy]] = None):
        items = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES.values())
        order = {name: i for i, name in enumerate(STRATEGY_ORDER)}
        self._strategies: Dict[StrategyName, Strategy] = {
            s.name: s for s in sorted(items, key=lambda s: order[s.name])
        }

    def __iter__(self):
        return iter(self._strategies.values())

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, name) -> bool:
        try:
            return StrategyName(name) in self._strategies
        except ValueError:
            return False

    def get(self, name) -> Strategy:
        try:
            return self._strategies[StrategyName(name)]
        except (ValueError, KeyError):
            raise UnknownStrategyError(str(getattr(name, "value", name))) from None

    def names(self) -> List[StrategyName]:
        return list(self._strategies)

    def baseline(self) -> Strategy:
        """Reference strategy for savings."""
        return self.get(StrategyName.CREATIVITY)

    def cheaper_than(self, strategy: Strategy, allowed: Optional[Iterable[StrategyName]] = None) -> List[Strategy]:
        """Strategies cheaper than the given one, next-cheaper first."""
        allowed = set(allowed) if allowed is not None else set(self._strategies)
        return sorted(
            (s for s in self if s.cost_multiplier < strategy.cost_multiplier and s.name in allowed),
            key=lambda s: s.cost_multiplier,
            reverse=True,
        )
