"""
Storygate Constants

Enumerations and fixed vocabularies shared across the quality and budget layers.
"""

from enum import Enum
from typing import Dict, List

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Storygate"


# =============================================================================
# QUALITY CONSTANTS
# =============================================================================

class Dimension(Enum):
    """Independent axes of content quality."""
    PROGRESSION = "progression"
    AGENCY = "agency"
    STYLE = "style"
    TENSION = "tension"


# Issue ordering: lower number is reported first
DIMENSION_PRIORITY: Dict[Dimension, int] = {
    Dimension.PROGRESSION: 1,
    Dimension.AGENCY: 2,
    Dimension.STYLE: 3,
    Dimension.TENSION: 4,
}


class Grade(Enum):
    """Discrete quality grades, best first."""
    PERFECT = "PERFECT"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


class Severity(Enum):
    """Issue severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class TrendDirection(Enum):
    """Direction of a score trend."""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


# =============================================================================
# BUDGET CONSTANTS
# =============================================================================

class StrategyName(Enum):
    """Catalog of generation strategies, cheapest first."""
    EFFICIENCY = "efficiency"
    BALANCED = "balanced"
    CREATIVITY = "creativity"
    EMERGENCY = "emergency"


STRATEGY_ORDER: List[StrategyName] = [
    StrategyName.EFFICIENCY,
    StrategyName.BALANCED,
    StrategyName.CREATIVITY,
    StrategyName.EMERGENCY,
]


class Urgency(Enum):
    """Urgency of the next generation request."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BudgetStatus(Enum):
    """Budget health label derived from pressure."""
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    EMERGENCY = "emergency"


class PlotStage(Enum):
    """Coarse position of a chapter in the overall plot."""
    INTRODUCTION = "introduction"
    DEVELOPMENT = "development"
    CLIMAX = "climax"
    RESOLUTION = "resolution"


# How much a plot stage matters when deciding to spend extra effort
STORY_IMPORTANCE: Dict[PlotStage, float] = {
    PlotStage.INTRODUCTION: 0.7,
    PlotStage.DEVELOPMENT: 0.3,
    PlotStage.CLIMAX: 0.9,
    PlotStage.RESOLUTION: 0.8,
}
