"""Storygate core: configuration, constants, errors, logging and result values."""

from .config import StorygateConfig, GatewayConfig, BudgetConfig, SituationConfig, TrackerConfig, load_config, save_config
from .constants import Dimension, Grade, Severity, StrategyName, Urgency, TrendDirection
from .exceptions import StorygateError, InvalidConfigError, InvalidProfileError, BudgetExhaustedError
from .logging_config import setup_logging, get_logger
from .result import Result

__all__ = [
    "StorygateConfig",
    "GatewayConfig",
    "BudgetConfig",
    "SituationConfig",
    "TrackerConfig",
    "load_config",
    "save_config",
    "Dimension",
    "Grade",
    "Severity",
    "StrategyName",
    "Urgency",
    "TrendDirection",
    "StorygateError",
    "InvalidConfigError",
    "InvalidProfileError",
    "BudgetExhaustedError",
    "setup_logging",
    "get_logger",
    "Result",
]
