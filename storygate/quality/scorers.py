"""
Dimension Scorers

Four independent scorers (Progression, Agency, Style, Tension). Each maps a
FeatureSet plus story context to a DimensionScore on the 0-10 scale. Internal
arithmetic runs on a 0-1 scale and is rescaled on output. A scorer never
raises: failures become a zero score carrying an issue.
"""

import re
import statistics
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from storygate.core.constants import Dimension
from storygate.core.exceptions import ScorerFailure
from storygate.core.logging_config import get_logger
from storygate.core.result import Result
from storygate.quality import lexicon
from storygate.quality.features import FeatureSet, StoryContext, tokenize

logger = get_logger("quality.scorers")

SCALE = 10.0


def _clamp(value: float, upper: float = 1.0) -> float:
    return max(0.0, min(upper, value))


@dataclass(frozen=True)
class DimensionScore:
    """Score for one quality dimension."""
    dimension: Dimension
    score: float
    sub_metrics: Dict[str, float] = field(default_factory=dict)
    indicators: Dict[str, bool] = field(default_factory=dict)
    issues: Tuple[str, ...] = ()
    failed: bool = False

    @classmethod
    def zero(cls, dimension: Dimension, issue: str, failed: bool = False) -> "DimensionScore":
        return cls(dimension=dimension, score=0.0, issues=(issue,), failed=failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension.value,
            "score": self.score,
            "sub_metrics": dict(self.sub_metrics),
            "indicators": dict(self.indicators),
            "issues": list(self.issues),
            "failed": self.failed,
        }


class DimensionScorer(ABC):
    """Base class: subclasses set `dimension` and implement compute()."""

    dimension: Dimension

    def score(self, features: FeatureSet, context: Optional[StoryContext] = None) -> DimensionScore:
        context = context or StoryContext()
        if features.is_empty:
            return DimensionScore.zero(self.dimension, f"No content to score for {self.dimension.value}")
        try:
            return self.compute(features, context)
        except Exception as e:
            failure = e if isinstance(e, ScorerFailure) else ScorerFailure(self.dimension.value, str(e))
            logger.warning(f"{failure}")
            return DimensionScore.zero(self.dimension, failure.message, failed=True)

    def safe_score(self, features: FeatureSet, context: Optional[StoryContext] = None) -> Result[DimensionScore]:
        """
        Score inside a Result.

        Catches failures that escape score() itself (e.g. an override that
        raises) and returns them as a failure carrying a ScorerFailure.
        """
        try:
            return Result.success(self.score(features, context))
        except Exception as e:
            failure = e if isinstance(e, ScorerFailure) else ScorerFailure(self.dimension.value, str(e))
            logger.warning(f"{failure}")
            return Result.failure(failure, failure.message)

    @abstractmethod
    def compute(self, features: FeatureSet, context: StoryContext) -> DimensionScore:
        """Score non-empty features on the internal 0-1 scale via _build()."""

    def _build(self, internal: float, sub_metrics: Dict[str, float],
               indicators: Dict[str, bool], issues: List[str]) -> DimensionScore:
        score = round(_clamp(internal) * SCALE, 2)
        logger.debug(f"{self.dimension.value} scored {score} ({sub_metrics})")
        return DimensionScore(
            dimension=self.dimension,
            score=score,
            sub_metrics={k: round(v, 4) for k, v in sub_metrics.items()},
            indicators=indicators,
            issues=tuple(issues),
        )


# =============================================================================
# PROGRESSION
# =============================================================================

class ProgressionScorer(DimensionScorer):
    """Rewards change and escalating conflict, penalizes stagnation and repetition."""

    dimension = Dimension.PROGRESSION

    TARGET_DENSITY = 0.5
    STAGNANT_BELOW = 0.3
    MIN_NEW_ELEMENTS = 2
    MAX_REPETITION = 0.15
    PREVIOUS_CHAPTERS_COMPARED = 3

    def compute(self, features: FeatureSet, context: StoryContext) -> DimensionScore:
        sentences = max(1, features.sentence_count)
        movers = features.count("plot_movers")
        conflict = features.count("conflict")
        resolution = features.count("resolution")
        relationship = features.count("relationship")
        stagnation = features.count("stagnation")
        new_elements = features.count("new_elements")

        signal = movers + 1.5 * conflict + 1.2 * relationship + 0.5 * new_elements
        stagnation_ratio = stagnation / sentences
        progression = _clamp(signal / sentences / self.TARGET_DENSITY - stagnation_ratio)
        escalation = _clamp((conflict - 0.5 * resolution) / sentences * 2.5)
        repetition = self.repetition_ratio(features, context.previous_chapters)
        novelty = _clamp(new_elements / self.MIN_NEW_ELEMENTS)

        internal = (
            0.30 * progression
            + 0.25 * escalation
            + 0.25 * (1.0 - repetition)
            + 0.20 * novelty
        )
        internal *= 1.0 - min(0.5, stagnation_ratio)

        indicators = {
            "plot_progression": progression >= 0.6,
            "conflict_escalation": escalation >= 0.4,
            "low_repetition": repetition <= self.MAX_REPETITION,
            "new_elements": new_elements >= self.MIN_NEW_ELEMENTS,
        }
        issues = []
        if internal < self.STAGNANT_BELOW:
            issues.append("Stagnant plot: little change or escalation")
        if not indicators["low_repetition"]:
            issues.append(f"Repeats {repetition:.0%} of recent chapter keywords")

        return self._build(internal, {
            "progression": progression,
            "conflict_escalation": escalation,
            "repetition": repetition,
            "new_elements": float(new_elements),
            "stagnation_ratio": stagnation_ratio,
        }, indicators, issues)

    def repetition_ratio(self, features: FeatureSet, previous_chapters) -> float:
        """Largest keyword overlap with any of the most recent previous chapters."""
        keywords = _keywords(features.words)
        if not keywords or not previous_chapters:
            return 0.0
        overlaps = [
            len(keywords & _keywords(tokenize(summary))) / len(keywords)
            for summary in list(previous_chapters)[-self.PREVIOUS_CHAPTERS_COMPARED:]
        ]
        return max(overlaps)


def _keywords(words) -> set:
    return {w for w in words if len(w) >= 4 and w not in lexicon.STOPWORDS}


# =============================================================================
# AGENCY
# =============================================================================

class AgencyScorer(DimensionScorer):
    """Measures decisive speech and action against passive phrasing."""

    dimension = Dimension.AGENCY

    MIN_AGENCY = 0.6

    def compute(self, features: FeatureSet, context: StoryContext) -> DimensionScore:
        active_lines, passive_lines = self._classify(features.dialogues)
        narrative = [s for s in features.sentences if '"' not in s and '“' not in s]
        active_actions, passive_actions = self._classify(narrative, exclamations=False)

        active = active_lines + active_actions
        passive = passive_lines + passive_actions
        agency = active / (active + passive) if active + passive else 0.5
        speech_diversity = self.speech_diversity(features.dialogues)
        action_density = _clamp(active_actions / max(1, len(narrative)) * 2.0)

        internal = 0.45 * agency + 0.30 * speech_diversity + 0.25 * action_density

        indicators = {
            "character_agency": agency >= self.MIN_AGENCY,
            "speech_diversity": speech_diversity >= 0.5,
        }
        issues = []
        if not indicators["character_agency"]:
            issues.append(f"Passive characters: agency {agency:.2f} below {self.MIN_AGENCY}")

        return self._build(internal, {
            "agency": agency,
            "speech_diversity": speech_diversity,
            "action_density": action_density,
            "active_count": float(active),
            "passive_count": float(passive),
        }, indicators, issues)

    @staticmethod
    def _classify(lines, exclamations: bool = True) -> Tuple[int, int]:
        active = passive = 0
        for line in lines:
            is_passive = bool(
                lexicon.count_markers(line, lexicon.PASSIVE_MARKERS)
                or lexicon.PASSIVE_VOICE.search(line)
            )
            if is_passive:
                passive += 1
            elif lexicon.count_markers(line, lexicon.ACTIVE_VERBS) or (
                exclamations and line.rstrip().endswith(("!", "?"))
            ):
                active += 1
        return active, passive

    @staticmethod
    def speech_diversity(dialogues) -> float:
        """Share of distinct openings and endings across dialogue lines."""
        if not dialogues:
            return 0.5
        openings, endings = set(), set()
        for line in dialogues:
            words = tokenize(line)
            if words:
                openings.add(words[0])
                endings.add(words[-1])
        return _clamp((len(openings) + len(endings)) / (2 * len(dialogues)))


def rewrite_passive(text: str) -> Tuple[str, List[Dict[str, str]]]:
    """
    Rewrite passive or hedging phrasing into active equivalents.

    Returns the rewritten text and a list of {"original", "replacement"} changes.
    Only used for improvement hints; evaluation never calls it on its own.
    """
    changes = []
    rewritten = text or ""
    for pattern, replacement in lexicon.PASSIVE_TO_ACTIVE:
        regex = re.compile(pattern, re.IGNORECASE)

        def _swap(match, replacement=replacement):
            original = match.group(0)
            result = replacement
            if original[:1].isupper() and result[:1].islower():
                result = result[0].upper() + result[1:]
            changes.append({"original": original, "replacement": result})
            return result

        rewritten = regex.sub(_swap, rewritten)
    return rewritten, changes


# =============================================================================
# STYLE
# =============================================================================

class StyleScorer(DimensionScorer):
    """Vocabulary level, sensory detail, figurative language, rhythm and diversity."""

    dimension = Dimension.STYLE

    WEIGHTS = {
        "vocabulary_level": 0.25,
        "sensory_richness": 0.25,
        "metaphor_density": 0.20,
        "rhythm": 0.15,
        "lexical_diversity": 0.15,
    }

    def compute(self, features: FeatureSet, context: StoryContext) -> DimensionScore:
        words = max(1, features.word_count)
        sentences = max(1, features.sentence_count)

        elevated = features.count("elevated")
        basic = features.count("basic")
        metrics = {
            "vocabulary_level": _clamp((elevated - 0.5 * basic) / words * 20.0),
            "sensory_richness": _clamp(features.count("sensory") / sentences),
            "metaphor_density": _clamp(features.count("figurative") / max(1.0, words / 100.0)),
            "rhythm": self.rhythm(features.sentences),
            "lexical_diversity": _clamp(features.unique_word_count / words * 2.0),
        }
        internal = sum(self.WEIGHTS[name] * value for name, value in metrics.items())

        indicators = {name: value >= 0.5 for name, value in metrics.items()}
        issues = []
        if metrics["sensory_richness"] < 0.2:
            issues.append("Sparse sensory description")
        if basic > elevated and basic >= 3:
            issues.append("Vocabulary leans on basic words")

        return self._build(internal, metrics, indicators, issues)

    @staticmethod
    def rhythm(sentences) -> float:
        """Coefficient of variation of sentence lengths, scaled to [0, 1]."""
        lengths = [len(tokenize(s)) for s in sentences]
        lengths = [n for n in lengths if n]
        if len(lengths) < 2:
            return 0.0
        mean = statistics.mean(lengths)
        return _clamp(statistics.pstdev(lengths) / mean / 0.6)


# =============================================================================
# TENSION
# =============================================================================

class TensionScorer(DimensionScorer):
    """Relationship-stage progress and unresolved interpersonal charge."""

    dimension = Dimension.TENSION

    def compute(self, features: FeatureSet, context: StoryContext) -> DimensionScore:
        sentences = max(1, features.sentence_count)
        stage_index = self.detect_stage(features.text)
        stage_score = (stage_index + 1) / len(lexicon.RELATIONSHIP_STAGES) if stage_index >= 0 else 0.0
        progression = self.stage_progression(stage_index, context.previous_stage)
        flutter = features.count("flutter")
        flutter_score = _clamp(flutter / 3.0)
        charge_score = _clamp(features.count("unresolved") / sentences * 4.0)
        romantic_lines = sum(
            1 for line in features.dialogues
            if lexicon.count_markers(line, lexicon.ROMANCE)
        )
        dialogue_score = romantic_lines / len(features.dialogues) if features.dialogues else 0.0

        internal = (
            0.30 * stage_score
            + 0.25 * progression
            + 0.20 * flutter_score
            + 0.15 * charge_score
            + 0.10 * dialogue_score
        )
        indicators = {
            "stage_detected": stage_index >= 0,
            "stage_advanced": progression >= 1.0,
            "flutter_moments": flutter > 0,
        }
        issues = []
        if progression < 0.5 and stage_index >= 0:
            issues.append(f"Relationship regressed to '{stage_name(stage_index)}'")
        if flutter == 0 and charge_score == 0.0:
            issues.append("No unresolved interpersonal charge")

        return self._build(internal, {
            "stage_index": float(stage_index),
            "stage_score": stage_score,
            "stage_progression": progression,
            "flutter_count": float(flutter),
            "unresolved_charge": charge_score,
            "romantic_dialogue": dialogue_score,
        }, indicators, issues)

    @staticmethod
    def detect_stage(text: str) -> int:
        """Index of the stage with the most marker hits, -1 if none."""
        best_index, best_hits = -1, 0
        for index, (_, markers) in enumerate(lexicon.RELATIONSHIP_STAGES):
            hits = lexicon.count_markers(text, markers)
            if hits > best_hits:
                best_index, best_hits = index, hits
        return best_index

    @staticmethod
    def stage_progression(stage_index: int, previous_stage: Optional[str]) -> float:
        if stage_index < 0:
            return 0.0
        if previous_stage not in lexicon.STAGE_NAMES:
            return 0.5
        previous_index = lexicon.STAGE_NAMES.index(previous_stage)
        if stage_index > previous_index:
            return 1.0
        if stage_index == previous_index:
            return 0.5
        return 0.2


def stage_name(stage_index: int) -> Optional[str]:
    return lexicon.STAGE_NAMES[stage_index] if 0 <= stage_index < len(lexicon.STAGE_NAMES) else None


def default_scorers() -> List[DimensionScorer]:
    return [ProgressionScorer(), AgencyScorer(), StyleScorer(), TensionScorer()]
