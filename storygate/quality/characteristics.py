"""
Characteristic Analyzer

Classifies what kind of content a sample is (linguistic richness, genre
intensity, emotional intensity, structural shape, contextual fit). The
profile adapts thresholds and weights; it never scores quality directly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from storygate.core.logging_config import get_logger
from storygate.quality import lexicon
from storygate.quality.features import (
    NEUTRAL_SCORE,
    ContentSample,
    FeatureExtractor,
    FeatureSet,
    StoryContext,
)
from storygate.quality.scorers import TensionScorer

logger = get_logger("quality.characteristics")

STRONG_ABOVE = 0.7
WEAK_BELOW = 0.5

CHARACTERISTICS = ("linguistic", "genre", "emotional", "structural", "contextual")


@dataclass(frozen=True)
class CharacteristicScore:
    """One characteristic sub-score with the metrics it was built from."""
    name: str
    overall_score: float
    metrics: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def neutral(cls, name: str) -> "CharacteristicScore":
        return cls(name=name, overall_score=NEUTRAL_SCORE)

    @classmethod
    def from_metrics(cls, name: str, metrics: Dict[str, float]) -> "CharacteristicScore":
        overall = sum(metrics.values()) / len(metrics)
        return cls(
            name=name,
            overall_score=round(max(0.0, min(1.0, overall)), 4),
            metrics={k: round(v, 4) for k, v in metrics.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"overall_score": self.overall_score, **self.metrics}


@dataclass(frozen=True)
class CharacteristicProfile:
    """Content characteristic classification."""
    linguistic: CharacteristicScore
    genre: CharacteristicScore
    emotional: CharacteristicScore
    structural: CharacteristicScore
    contextual: CharacteristicScore
    dialogue_ratio: float = NEUTRAL_SCORE
    emotional_intensity: float = NEUTRAL_SCORE

    @property
    def sub_scores(self) -> Dict[str, CharacteristicScore]:
        return {name: getattr(self, name) for name in CHARACTERISTICS}

    @property
    def overall_characteristics(self) -> float:
        scores = [s.overall_score for s in self.sub_scores.values()]
        return sum(scores) / len(scores)

    @property
    def strengths(self) -> List[str]:
        return [n for n, s in self.sub_scores.items() if s.overall_score > STRONG_ABOVE]

    @property
    def weaknesses(self) -> List[str]:
        return [n for n, s in self.sub_scores.items() if s.overall_score < WEAK_BELOW]

    @property
    def dominant(self) -> Optional[str]:
        """Strongest characteristic, if any clears the strength bar."""
        name, score = max(self.sub_scores.items(), key=lambda item: item[1].overall_score)
        return name if score.overall_score > STRONG_ABOVE else None

    @classmethod
    def neutral(cls) -> "CharacteristicProfile":
        return cls(**{name: CharacteristicScore.neutral(name) for name in CHARACTERISTICS})

    def to_dict(self) -> Dict[str, Any]:
        data = {name: score.to_dict() for name, score in self.sub_scores.items()}
        data.update({
            "overall_characteristics": round(self.overall_characteristics, 4),
            "dialogue_ratio": self.dialogue_ratio,
            "emotional_intensity": self.emotional_intensity,
            "strengths": self.strengths,
            "weaknesses": self.weaknesses,
            "dominant": self.dominant,
        })
        return data


class CharacteristicAnalyzer:
    """Builds a CharacteristicProfile from a sample's features."""

    def __init__(self, extractor: Optional[FeatureExtractor] = None):
        self.extractor = extractor or FeatureExtractor()

    def analyze(self, sample: ContentSample, features: Optional[FeatureSet] = None) -> CharacteristicProfile:
        if features is None:
            features = self.extractor.extract(sample)
        if features.is_empty:
            return CharacteristicProfile.neutral()

        profile = CharacteristicProfile(
            linguistic=self._linguistic(features),
            genre=self._genre(features),
            emotional=self._emotional(features),
            structural=self._structural(features),
            contextual=self._contextual(features, sample.context),
            dialogue_ratio=features.score("dialogue_ratio"),
            emotional_intensity=max(
                features.score("emotional_intensity"),
                features.score("romantic_intensity"),
            ),
        )
        logger.debug(f"Characteristics: {profile.overall_characteristics:.3f}, strengths={profile.strengths}")
        return profile

    @staticmethod
    def _linguistic(features: FeatureSet) -> CharacteristicScore:
        return CharacteristicScore.from_metrics("linguistic", {
            "vocabulary_diversity": features.score("lexical_diversity"),
            "sentence_length": features.score("sentence_length"),
            "emotional_frequency": features.score("emotional_frequency"),
            "tension_markers": features.score("tension_density"),
        })

    @staticmethod
    def _genre(features: FeatureSet) -> CharacteristicScore:
        stage = TensionScorer.detect_stage(features.text)
        return CharacteristicScore.from_metrics("genre", {
            "fantasy_intensity": features.score("genre_intensity"),
            "romance_progression": (stage + 1) / len(lexicon.RELATIONSHIP_STAGES),
            "honorific_usage": features.score("honorific_usage"),
        })

    @staticmethod
    def _emotional(features: FeatureSet) -> CharacteristicScore:
        return CharacteristicScore.from_metrics("emotional", {
            "emotional_intensity": features.score("emotional_intensity"),
            "romantic_intensity": features.score("romantic_intensity"),
            "emotional_variety": features.score("emotional_variety"),
        })

    @staticmethod
    def _structural(features: FeatureSet) -> CharacteristicScore:
        ratio = features.score("dialogue_ratio")
        return CharacteristicScore.from_metrics("structural", {
            "dialogue_density": features.score("dialogue_density"),
            "narrative_balance": max(0.0, 1.0 - abs(ratio - 0.4) * 2.0),
            "paragraph_shape": features.score("paragraph_shape"),
            "ending_variety": features.score("ending_variety"),
        })

    @staticmethod
    def _contextual(features: FeatureSet, context: StoryContext) -> CharacteristicScore:
        if context.is_empty:
            return CharacteristicScore.neutral("contextual")

        metrics = {}
        if context.chapter is not None:
            metrics["chapter_progress"] = min(1.0, max(0, context.chapter) / 20.0)
        if context.characters:
            text = features.text.lower()
            present = sum(1 for name in context.characters if name.lower() in text)
            metrics["character_presence"] = present / len(context.characters)
        if context.plot_points:
            metrics["plot_points"] = min(1.0, len(context.plot_points) / 10.0)
        if not metrics:
            return CharacteristicScore.neutral("contextual")
        return CharacteristicScore.from_metrics("contextual", metrics)
