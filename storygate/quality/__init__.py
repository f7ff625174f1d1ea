"""Quality gateway: features, dimension scorers, characteristics and thresholds."""

from .features import ContentSample, FeatureExtractor, FeatureSet, StoryContext
from .scorers import DimensionScore, ProgressionScorer, AgencyScorer, StyleScorer, TensionScorer, rewrite_passive
from .characteristics import CharacteristicAnalyzer, CharacteristicProfile, CharacteristicScore
from .adjuster import ThresholdProfile, WeightProfile, ThresholdWeightAdjuster
from .history import QualityHistory, TrendReport
from .report import QualityIssue, QualityReport, generate_quality_report
from .gateway import QualityGateway

__all__ = [
    "ContentSample",
    "FeatureExtractor",
    "FeatureSet",
    "StoryContext",
    "DimensionScore",
    "ProgressionScorer",
    "AgencyScorer",
    "StyleScorer",
    "TensionScorer",
    "rewrite_passive",
    "CharacteristicAnalyzer",
    "CharacteristicProfile",
    "CharacteristicScore",
    "ThresholdProfile",
    "WeightProfile",
    "ThresholdWeightAdjuster",
    "QualityHistory",
    "TrendReport",
    "QualityIssue",
    "QualityReport",
    "generate_quality_report",
    "QualityGateway",
]
