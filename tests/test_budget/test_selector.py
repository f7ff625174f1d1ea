"""
Tests for Strategy Selector

Tests:
- Rule order and fall-through
- Budget exhaustion
- Strategy tuning bounds
- Fallback chains and execution plans
"""

import pytest

from storygate.budget.ledger import BudgetState
from storygate.budget.selector import StrategySelector, TuningContext
from storygate.budget.situation import SituationSignal
from storygate.core.constants import StrategyName, Urgency
from storygate.core.exceptions import BudgetExhausted, BudgetExhaustedError


@pytest.fixture
def selector():
    return StrategySelector()


def signal(need=0.3, urgency=Urgency.LOW, dropout=0.0):
    return SituationSignal(creativity_need=need, urgency=urgency, dropout_risk=dropout)


def state(spent, budget=1000.0):
    return BudgetState(session_budget=budget, total_spent=spent)


class TestSelectionRules:
    """Test rule order."""

    def test_critical_urgency_selects_emergency(self, selector):
        """Test critical urgency at low pressure."""
        decision = selector.select(signal(0.9, Urgency.CRITICAL), state(300))

        assert decision.strategy.name == StrategyName.EMERGENCY
        assert decision.reason == "emergency_intervention"

    def test_high_need_selects_creativity(self, selector):
        """Test creativity need at the threshold."""
        decision = selector.select(signal(0.7, Urgency.MEDIUM), state(100))

        assert decision.strategy.name == StrategyName.CREATIVITY
        assert decision.reason == "high_creativity_need"

    def test_default_is_balanced(self, selector):
        """Test an ordinary situation."""
        decision = selector.select(signal(0.3), state(100))

        assert decision.strategy.name == StrategyName.BALANCED
        assert decision.reason == "balanced_approach"

    def test_high_pressure_selects_efficiency(self, selector):
        """Test cost optimization at pressure 0.9."""
        decision = selector.select(signal(0.3), state(900))

        assert decision.strategy.name == StrategyName.EFFICIENCY
        assert decision.reason == "cost_optimization"

    def test_unavailable_rules_fall_through(self, selector):
        """Test emergency and creativity are skipped above 0.7 pressure."""
        decision = selector.select(signal(0.9, Urgency.CRITICAL), state(750))

        assert decision.strategy.name == StrategyName.BALANCED
        assert "emergency unavailable" in decision.reasoning

    def test_exhausted_budget(self, selector):
        """Test no strategy above 0.95 pressure."""
        with pytest.raises(BudgetExhausted) as exc_info:
            selector.select(signal(0.9, Urgency.CRITICAL), state(970))

        assert isinstance(exc_info.value, BudgetExhaustedError)
        assert exc_info.value.pressure == pytest.approx(0.97)

    def test_deterministic(self, selector):
        """Test identical inputs give identical decisions."""
        first = selector.select(signal(0.5, Urgency.HIGH, 0.25), state(400))
        second = selector.select(signal(0.5, Urgency.HIGH, 0.25), state(400))

        assert first.to_dict() == second.to_dict()


class TestTuning:
    """Test bounded tuning."""

    def test_no_change_returns_base(self, selector, catalog):
        """Test calm conditions keep the catalog strategy."""
        base = catalog.get("balanced")

        assert selector.tune_strategy(base, TuningContext(0.3, 0.0)) is base

    def test_pressure_shrinks_to_minimum(self, selector, catalog):
        """Test high pressure never goes below the minimum token count."""
        tuned = selector.tune_strategy(catalog.get("balanced"), TuningContext(0.9, 0.0))

        assert tuned.token_range.target == 2000
        assert tuned.token_range.max == 2000

    def test_dropout_boost_is_capped(self, selector, efficiency):
        """Test the boost never exceeds half the base values."""
        tuned = selector.tune_strategy(efficiency, TuningContext(0.0, 1.0))

        assert tuned.creativity_level == pytest.approx(0.45)
        assert tuned.token_range.target == 2250
        assert tuned.token_range.max >= tuned.token_range.target

    def test_small_dropout_boost(self, selector, creativity):
        """Test a proportional boost."""
        tuned = selector.tune_strategy(creativity, TuningContext(0.0, 0.25))

        assert tuned.creativity_level == pytest.approx(1.25)
        assert tuned.token_range.target == 10000

    def test_base_is_unchanged(self, selector, efficiency):
        """Test tuning returns a new strategy."""
        selector.tune_strategy(efficiency, TuningContext(0.9, 1.0))

        assert efficiency.token_range.target == 1500
        assert efficiency.creativity_level == 0.3

    def test_decision_keeps_base(self, selector):
        """Test the decision records the untuned strategy."""
        decision = selector.select(signal(0.3, Urgency.HIGH, 0.25), state(100))

        assert decision.base_strategy.name == decision.strategy.name
        assert decision.strategy.creativity_level > decision.base_strategy.creativity_level


class TestFallbacks:
    """Test fallback chains and plans."""

    def test_creativity_chain(self, selector):
        """Test next-cheaper first."""
        decision = selector.select(signal(0.8), state(100))

        assert [s.name for s in decision.fallback_chain] == [StrategyName.BALANCED, StrategyName.EFFICIENCY]
        assert all(o.trigger == "quality_rejected" for o in decision.fallback_options)

    def test_chain_respects_availability(self, selector):
        """Test fallbacks at elevated pressure."""
        decision = selector.select(signal(0.3), state(800))

        assert decision.strategy.name == StrategyName.BALANCED
        assert [s.name for s in decision.fallback_chain] == [StrategyName.EFFICIENCY]
        assert decision.fallback_options[0].trigger == "cost_overrun"

    def test_efficiency_has_no_fallback(self, selector):
        """Test the cheapest strategy."""
        decision = selector.select(signal(0.3), state(900))

        assert decision.fallback_chain == []
        assert decision.execution_plan.max_attempts == 1

    def test_unpacking(self, selector):
        """Test a decision unpacks into strategy and chain."""
        strategy, chain = selector.select(signal(0.3), state(100))

        assert strategy.name == StrategyName.BALANCED
        assert [s.name for s in chain] == [StrategyName.EFFICIENCY]

    def test_execution_plan(self, selector):
        """Test the plan for a creativity decision."""
        plan = selector.select(signal(0.8), state(100)).execution_plan

        assert plan.target_quality == "premium"
        assert plan.estimated_tokens == 8000
        assert plan.estimated_cost == pytest.approx(8000 * 0.003)
        assert plan.max_attempts == 3
