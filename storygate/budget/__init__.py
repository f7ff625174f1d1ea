"""Budget-aware strategy selection and outcome tracking."""

from .strategies import Strategy, StrategyCatalog, TokenRange
from .ledger import BudgetLedger, BudgetState, SpendReceipt, available_strategies
from .situation import EngagementMetrics, NarrativePosition, SituationAnalyzer, SituationSignal
from .selector import StrategyDecision, StrategySelector, TuningContext
from .performance import PerformanceRecord, PerformanceTracker

__all__ = [
    "Strategy",
    "StrategyCatalog",
    "TokenRange",
    "BudgetLedger",
    "BudgetState",
    "SpendReceipt",
    "available_strategies",
    "EngagementMetrics",
    "NarrativePosition",
    "SituationAnalyzer",
    "SituationSignal",
    "StrategyDecision",
    "StrategySelector",
    "TuningContext",
    "PerformanceRecord",
    "PerformanceTracker",
]
