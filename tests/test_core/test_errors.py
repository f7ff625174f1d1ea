"""
Tests for exceptions and Result values

Tests for storygate/core/exceptions.py and storygate/core/result.py
"""

import pytest

from storygate.core.exceptions import (
    StorygateError,
    BudgetExhausted,
    BudgetExhaustedError,
    BudgetError,
    InvalidProfileError,
    ConfigurationError,
    UnknownStrategyError,
)
from storygate.core.result import Result


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_details_in_str(self):
        """Test details are appended to the message."""
        error = StorygateError("broken", {"key": 1})

        assert str(error) == "broken | Details: {'key': 1}"
        assert str(StorygateError("plain")) == "plain"

    def test_budget_exhausted(self):
        """Test budget exhaustion carries pressure and totals."""
        error = BudgetExhaustedError(0.97, 970.0, 1000.0)

        assert BudgetExhausted is BudgetExhaustedError
        assert isinstance(error, BudgetError)
        assert error.pressure == 0.97
        assert error.details["session_budget"] == 1000.0

    def test_profile_error_is_configuration_error(self):
        """Test invalid profiles are configuration problems."""
        error = InvalidProfileError("weight", "bad", {"agency": 2.0})

        assert isinstance(error, ConfigurationError)
        assert error.details["values"] == {"agency": 2.0}

    def test_unknown_strategy(self):
        """Test unknown strategy error names the strategy."""
        assert "turbo" in str(UnknownStrategyError("turbo"))


class TestResult:
    """Tests for Result values."""

    def test_success(self):
        """Test success variant."""
        result = Result.success(42)

        assert result.ok
        assert result.unwrap() == 42
        assert result.value_or(0) == 42

    def test_failure(self):
        """Test failure variant re-raises on unwrap."""
        result = Result.failure(ValueError("nope"))

        assert not result.ok
        assert result.message == "nope"
        assert result.value_or(7) == 7
        with pytest.raises(ValueError):
            result.unwrap()
