"""
Tests for Storygate Session

Tests:
- Evaluation through the session
- Strategy decisions against the session budget
- Outcome feedback into thresholds
"""

import pytest

from storygate import BudgetExhausted, StorygateConfig, StorygateSession
from storygate.core.config import BudgetConfig
from storygate.core.constants import StrategyName
from storygate.core.exceptions import InvalidOutcomeError


@pytest.fixture
def small_budget_session():
    return StorygateSession(StorygateConfig(budget=BudgetConfig(session_budget=1.0)))


class TestSessionEvaluate:
    """Test evaluation."""

    def test_evaluate(self, session, sample_chapter_text, story_context):
        """Test a report comes back and is recorded."""
        report = session.evaluate(sample_chapter_text, story_context)

        assert 0.0 <= report.overall_score <= 10.0
        assert session.summary()["quality"]["count"] == 1

    def test_history_path(self, temp_dir, sample_chapter_text):
        """Test the session persists history when given a path."""
        path = temp_dir / "quality.jsonl"
        session = StorygateSession(history_path=path)
        session.evaluate(sample_chapter_text)

        assert path.exists()


class TestSessionStrategy:
    """Test strategy decisions."""

    def test_default_decision(self, session):
        """Test a calm session picks the balanced strategy."""
        decision = session.decide_strategy()

        assert decision.strategy.name == StrategyName.BALANCED

    def test_decision_from_dicts(self, session):
        """Test dict metrics and position."""
        decision = session.decide_strategy({"dropout_rate": 0.4}, {"chapter": 5, "total_chapters": 40})

        assert decision.strategy.name == StrategyName.EMERGENCY

    def test_outcome_raises_pressure(self, session, creativity):
        """Test recorded spend shows in the next budget read."""
        session.record_outcome(creativity, 8000, 0.85)

        assert session.ledger.pressure() == pytest.approx(8000 * 0.003 / 1000)
        assert session.summary()["strategies"]["creativity"]["attempts"] == 1

    def test_exhausted_budget(self, small_budget_session, creativity):
        """Test decisions fail once the budget is spent."""
        small_budget_session.record_outcome(creativity, 1000, 0.9)

        with pytest.raises(BudgetExhausted):
            small_budget_session.decide_strategy()

        result = small_budget_session.try_decide_strategy()
        assert result.ok is False
        assert isinstance(result.error, BudgetExhausted)

    def test_try_decide_success(self, session):
        """Test the Result wrapper on success."""
        result = session.try_decide_strategy()

        assert result.ok
        assert result.unwrap().strategy.name == StrategyName.BALANCED


class TestSessionFeedback:
    """Test outcome feedback."""

    def test_declining_outcomes_raise_threshold(self, session, catalog):
        """Test the tracker adapts the shared adjuster."""
        balanced = catalog.get("balanced")
        for quality in [0.8, 0.75, 0.7, 0.6, 0.55, 0.5]:
            session.record_outcome(balanced, 2000, quality)

        assert session.adjuster.baseline_minimum > 7.0
        assert session.gateway.adjuster is session.adjuster

    def test_summary_keys(self, session):
        """Test summary sections."""
        assert set(session.summary()) == {"quality", "budget", "strategies"}

    def test_reset(self, session, creativity, sample_chapter_text):
        """Test reset clears every component."""
        session.evaluate(sample_chapter_text)
        session.record_outcome(creativity, 8000, 0.85)
        session.reset()

        summary = session.summary()
        assert summary["quality"]["count"] == 0
        assert summary["budget"]["total_tokens_used"] == 0
        assert summary["strategies"] == {}
        assert session.adjuster.baseline_minimum == 7.0

    def test_gateway_score_outcome(self, session, sample_chapter_text, catalog):
        """Test a report's 0-10 score is recorded on its own scale."""
        report = session.evaluate(sample_chapter_text)
        record = session.record_outcome(
            catalog.get("balanced"), 2750, report.overall_score, quality_scale=10.0
        )

        assert record.quality_achieved == pytest.approx(report.overall_score / 10.0)

    def test_invalid_quality_charges_nothing(self, session, creativity):
        """Test a rejected outcome leaves ledger and tracker untouched."""
        with pytest.raises(InvalidOutcomeError):
            session.record_outcome(creativity, 8000, 8.5)

        assert session.ledger.state().total_tokens_used == 0
        assert session.tracker.records == []

    def test_unwritable_performance_log(self, temp_dir, creativity):
        """Test a failed log write still completes the outcome."""
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        session = StorygateSession(performance_path=blocker / "performance.jsonl")

        record = session.record_outcome(creativity, 8000, 0.85)

        assert record.success is True
        assert session.ledger.state().total_tokens_used == 8000
        assert session.summary()["strategies"]["creativity"]["attempts"] == 1
