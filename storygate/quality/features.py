"""
Feature Extractor

Turns raw text plus optional story context into a flat, immutable FeatureSet.
Everything here is lexical: marker counts, punctuation and shape statistics.
Empty or missing text produces a FeatureSet whose normalized scores all sit
at the neutral midpoint.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storygate.core.logging_config import get_logger
from storygate.quality import lexicon

logger = get_logger("quality.features")

NEUTRAL_SCORE = 0.5

NORMALIZED_FEATURES = (
    "lexical_diversity",
    "sentence_length",
    "dialogue_ratio",
    "dialogue_density",
    "ending_variety",
    "paragraph_shape",
    "genre_intensity",
    "honorific_usage",
    "emotional_intensity",
    "emotional_frequency",
    "emotional_variety",
    "romantic_intensity",
    "tension_density",
)

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|(?<=[.!?]['\"”])\s+|\n+")
_WORD = re.compile(r"[A-Za-z][A-Za-z']*")
_DIALOGUE = re.compile(r'"([^"\n]+)"|“([^”\n]+)”')
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class StoryContext:
    """Optional story context supplied with a sample."""
    chapter: Optional[int] = None
    total_chapters: Optional[int] = None
    characters: Tuple[str, ...] = ()
    previous_chapters: Tuple[str, ...] = ()
    plot_points: Tuple[str, ...] = ()
    previous_stage: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StoryContext":
        """Create StoryContext from dictionary; unknown keys are ignored."""
        data = data or {}
        return cls(
            chapter=data.get("chapter"),
            total_chapters=data.get("total_chapters"),
            characters=tuple(data.get("characters") or ()),
            previous_chapters=tuple(data.get("previous_chapters") or ()),
            plot_points=tuple(data.get("plot_points") or ()),
            previous_stage=data.get("previous_stage"),
        )

    @classmethod
    def coerce(cls, context) -> "StoryContext":
        if context is None:
            return cls()
        if isinstance(context, cls):
            return context
        if isinstance(context, dict):
            return cls.from_dict(context)
        raise TypeError(f"Unsupported context type: {type(context).__name__}")

    @property
    def is_empty(self) -> bool:
        return self == StoryContext()


@dataclass(frozen=True)
class ContentSample:
    """A piece of generated text awaiting evaluation."""
    text: str = ""
    context: StoryContext = field(default_factory=StoryContext)

    @classmethod
    def create(cls, text: Optional[str], context=None) -> "ContentSample":
        if text is not None and not isinstance(text, str):
            text = str(text)
        return cls(text=text or "", context=StoryContext.coerce(context))

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class FeatureSet:
    """Read-only features derived from one ContentSample."""
    word_count: int
    unique_word_count: int
    sentence_count: int
    paragraph_count: int
    dialogue_count: int
    counts: Mapping[str, int]
    normalized: Mapping[str, float]
    sentences: Tuple[str, ...] = ()
    dialogues: Tuple[str, ...] = ()
    words: Tuple[str, ...] = ()
    text: str = ""

    @property
    def is_empty(self) -> bool:
        return self.word_count == 0

    def count(self, category: str) -> int:
        return self.counts.get(category, 0)

    def score(self, name: str) -> float:
        return self.normalized.get(name, NEUTRAL_SCORE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word_count": self.word_count,
            "unique_word_count": self.unique_word_count,
            "sentence_count": self.sentence_count,
            "paragraph_count": self.paragraph_count,
            "dialogue_count": self.dialogue_count,
            "counts": dict(self.counts),
            "normalized": dict(self.normalized),
        }


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text or "") if s and s.strip()]


def tokenize(text: str) -> List[str]:
    return [w.lower() for w in _WORD.findall(text or "")]


def extract_dialogues(text: str) -> List[str]:
    return [(a or b).strip() for a, b in _DIALOGUE.findall(text or "") if (a or b).strip()]


def _clamp(value: float, upper: float = 1.0) -> float:
    return max(0.0, min(upper, value))


class FeatureExtractor:
    """
    Extracts lexical features from text.

    Usage:
        extractor = FeatureExtractor()
        features = extractor.extract(ContentSample.create(text))
    """

    def extract(self, sample: ContentSample) -> FeatureSet:
        if sample.is_empty:
            logger.debug("Empty sample, using neutral features")
            return self._neutral()

        text = sample.text
        sentences = split_sentences(text)
        words = tokenize(text)
        dialogues = extract_dialogues(text)
        paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]

        if not words:
            logger.debug("Sample has no words, using neutral features")
            return self._neutral()

        counts = {
            category: lexicon.count_markers(text, markers)
            for category, markers in lexicon.MARKER_CATEGORIES.items()
        }
        counts["passive"] += len(lexicon.PASSIVE_VOICE.findall(text))

        word_count = len(words)
        unique_count = len(set(words))
        sentence_count = max(1, len(sentences))
        endings = {s.rstrip("\"”'")[-1:] for s in sentences} & set(".!?…")
        emotion_found = set(lexicon.find_markers(text, lexicon.EMOTION))
        avg_sentence_words = word_count / sentence_count
        avg_paragraph_chars = len(text) / max(1, len(paragraphs))

        normalized = {
            "lexical_diversity": unique_count / word_count,
            "sentence_length": _clamp(avg_sentence_words / 25.0),
            "dialogue_ratio": _clamp(len(dialogues) / sentence_count),
            "dialogue_density": _clamp(len(dialogues) / 20.0, 0.7),
            "ending_variety": _clamp(len(endings) / 4.0),
            "paragraph_shape": _clamp(avg_paragraph_chars / 200.0),
            "genre_intensity": _clamp(counts["genre"] / 10.0),
            "honorific_usage": _clamp(counts["honorifics"] / 5.0),
            "emotional_intensity": _clamp(counts["emotion"] / 15.0),
            "emotional_frequency": _clamp(counts["emotion"] / word_count * 10.0),
            "emotional_variety": _clamp(len(emotion_found) / 10.0),
            "romantic_intensity": _clamp(counts["romance"] / 8.0),
            "tension_density": _clamp(counts["tension"] / sentence_count),
        }

        return FeatureSet(
            word_count=word_count,
            unique_word_count=unique_count,
            sentence_count=len(sentences),
            paragraph_count=len(paragraphs),
            dialogue_count=len(dialogues),
            counts=MappingProxyType(counts),
            normalized=MappingProxyType(normalized),
            sentences=tuple(sentences),
            dialogues=tuple(dialogues),
            words=tuple(words),
            text=text,
        )

    @staticmethod
    def _neutral() -> FeatureSet:
        return FeatureSet(
            word_count=0,
            unique_word_count=0,
            sentence_count=0,
            paragraph_count=0,
            dialogue_count=0,
            counts=MappingProxyType({c: 0 for c in lexicon.MARKER_CATEGORIES}),
            normalized=MappingProxyType({n: NEUTRAL_SCORE for n in NORMALIZED_FEATURES}),
        )
