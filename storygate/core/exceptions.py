"""
Storygate Custom Exceptions

Custom exception classes for error handling throughout the Storygate system.
Data-quality problems never surface as exceptions; only resource and
configuration problems do.
"""


class StorygateError(Exception):
    """Base exception for all Storygate errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(StorygateError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


class InvalidProfileError(ConfigurationError):
    """Raised when a weight or threshold profile violates its invariants."""

    def __init__(self, profile: str, reason: str, values: dict = None):
        message = f"Invalid {profile} profile: {reason}"
        details = {"profile": profile}
        if values:
            details["values"] = values
        super().__init__(message, details)


# =============================================================================
# SCORING ERRORS
# =============================================================================

class ScoringError(StorygateError):
    """Base exception for dimension scoring errors."""
    pass


class ScorerFailure(ScoringError):
    """Raised when a dimension scorer cannot produce a score."""

    def __init__(self, dimension: str, reason: str):
        message = f"Scorer '{dimension}' failed: {reason}"
        super().__init__(message, {"dimension": dimension})


# =============================================================================
# BUDGET ERRORS
# =============================================================================

class BudgetError(StorygateError):
    """Base exception for budget and strategy errors."""
    pass


class BudgetExhaustedError(BudgetError):
    """Raised when no generation strategy is affordable at the current pressure."""

    def __init__(self, pressure: float, total_spent: float, session_budget: float):
        message = f"Budget exhausted at pressure {pressure:.2f}"
        details = {
            "pressure": round(pressure, 4),
            "total_spent": round(total_spent, 4),
            "session_budget": session_budget
        }
        super().__init__(message, details)
        self.pressure = pressure


# Short name used by callers of the selection API
BudgetExhausted = BudgetExhaustedError


class UnknownStrategyError(BudgetError):
    """Raised when a strategy name is not in the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Unknown strategy: '{name}'", {"strategy": name})


class InvalidOutcomeError(BudgetError):
    """Raised when a recorded outcome carries a quality outside its scale."""

    def __init__(self, quality: float, scale: float):
        super().__init__(
            f"Quality {quality} is outside [0, {scale}]",
            {"quality": quality, "scale": scale}
        )


# =============================================================================
# PERSISTENCE ERRORS
# =============================================================================

class PersistenceError(StorygateError):
    """Raised when an append-only log cannot be read or written."""

    def __init__(self, path, reason: str):
        super().__init__(f"Log error for {path}: {reason}", {"path": str(path)})
