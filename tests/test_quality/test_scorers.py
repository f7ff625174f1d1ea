"""
Tests for Dimension Scorers

Tests:
- Progression stagnation and repetition
- Agency active vs passive phrasing and rewrite hints
- Style vocabulary and figurative language
- Tension stage detection and progression
- Failure isolation
"""

import pytest

from storygate.core.constants import Dimension
from storygate.core.exceptions import ScorerFailure
from storygate.quality.features import ContentSample, FeatureExtractor, StoryContext
from storygate.quality.lexicon import STAGE_NAMES
from storygate.quality.scorers import (
    AgencyScorer,
    DimensionScorer,
    ProgressionScorer,
    StyleScorer,
    TensionScorer,
    default_scorers,
    rewrite_passive,
)

extractor = FeatureExtractor()


def features_for(text, context=None):
    return extractor.extract(ContentSample.create(text, context))


PASSIVE_TEXT = (
    '"Maybe we should wait," she said. "I guess I don\'t know." '
    '"Perhaps I could ask him, if you want." He was told by the elders to stay.'
)
ACTIVE_TEXT = (
    '"I will find him," she declared. "We fight at dawn!" '
    'He grabbed the sword and strode out.'
)
ELEVATED_TEXT = (
    "The luminous moon lingered over the verdant hills like a silver coin. "
    "A hushed wind carried the scent of rain, and the shadows trembled as if alive. "
    "She murmured a solemn vow."
)
BASIC_TEXT = "It was a good day. The thing was big. He got a lot of stuff. It was very nice."
CONFESSION_TEXT = (
    'At last she confessed. "I love you. Those are my feelings," she whispered. '
    "His heart raced; she almost kissed him but pulled away."
)


class TestProgressionScorer:
    """Test progression scoring."""

    def test_stagnant_text_scores_below_three(self, stagnant_text):
        """Test dense stagnation vocabulary is flagged."""
        result = ProgressionScorer().score(features_for(stagnant_text))

        assert result.score < 3.0
        assert any("Stagnant" in issue for issue in result.issues)

    def test_escalation_beats_stagnation(self, stagnant_text, sample_chapter_text):
        """Test conflict and change raise the score."""
        scorer = ProgressionScorer()

        assert scorer.score(features_for(sample_chapter_text)).score > scorer.score(features_for(stagnant_text)).score

    def test_repetition_against_previous_chapters(self, sample_chapter_text):
        """Test keyword overlap with earlier chapters is measured."""
        context = StoryContext(previous_chapters=(sample_chapter_text,))
        repeated = ProgressionScorer().score(features_for(sample_chapter_text, context), context)
        fresh = ProgressionScorer().score(features_for(sample_chapter_text))

        assert repeated.sub_metrics["repetition"] == 1.0
        assert not repeated.indicators["low_repetition"]
        assert fresh.sub_metrics["repetition"] == 0.0
        assert repeated.score < fresh.score


class TestAgencyScorer:
    """Test agency scoring."""

    def test_active_beats_passive(self):
        """Test decisive speech scores above hedging."""
        scorer = AgencyScorer()
        active = scorer.score(features_for(ACTIVE_TEXT))
        passive = scorer.score(features_for(PASSIVE_TEXT))

        assert active.sub_metrics["agency"] == 1.0
        assert passive.sub_metrics["agency"] == 0.0
        assert active.score > passive.score
        assert not passive.indicators["character_agency"]
        assert any("Passive characters" in issue for issue in passive.issues)

    def test_speech_diversity_without_dialogue(self):
        """Test neutral diversity when there is no dialogue."""
        assert AgencyScorer.speech_diversity(()) == 0.5

    def test_rewrite_passive(self):
        """Test passive phrasing is rewritten with matching case."""
        rewritten, changes = rewrite_passive("Maybe we should wait. I guess it is fine.")

        assert rewritten == "We will wait. I think it is fine."
        assert [c["original"] for c in changes] == ["Maybe we should", "I guess"]

    def test_rewrite_passive_no_changes(self):
        """Test active text is left alone."""
        assert rewrite_passive("We ride at dawn.") == ("We ride at dawn.", [])


class TestStyleScorer:
    """Test style scoring."""

    def test_elevated_beats_basic(self):
        """Test rich vocabulary and imagery score higher."""
        scorer = StyleScorer()
        elevated = scorer.score(features_for(ELEVATED_TEXT))
        basic = scorer.score(features_for(BASIC_TEXT))

        assert elevated.score > basic.score
        assert elevated.sub_metrics["metaphor_density"] > 0
        assert basic.sub_metrics["vocabulary_level"] == 0.0

    def test_sub_metrics_capped(self):
        """Test every sub-metric stays within [0, 1]."""
        result = StyleScorer().score(features_for(ELEVATED_TEXT * 5))

        assert all(0.0 <= v <= 1.0 for v in result.sub_metrics.values())
        assert 0.0 <= result.score <= 10.0


class TestTensionScorer:
    """Test tension scoring."""

    def test_detect_stage(self):
        """Test the stage with most hits wins."""
        assert TensionScorer.detect_stage(CONFESSION_TEXT) == STAGE_NAMES.index("confession")
        assert TensionScorer.detect_stage("The sky was grey.") == -1

    def test_progression_vs_regression(self):
        """Test advancing the relationship scores above regressing."""
        scorer = TensionScorer()
        advanced = scorer.score(features_for(CONFESSION_TEXT), StoryContext(previous_stage="interest"))
        regressed = scorer.score(features_for(CONFESSION_TEXT), StoryContext(previous_stage="union"))

        assert advanced.sub_metrics["stage_progression"] == 1.0
        assert regressed.sub_metrics["stage_progression"] == 0.2
        assert advanced.score > regressed.score
        assert any("regressed" in issue for issue in regressed.issues)

    def test_flutter_counted(self):
        """Test heart-flutter moments."""
        result = TensionScorer().score(features_for(CONFESSION_TEXT))

        assert result.sub_metrics["flutter_count"] >= 1
        assert result.indicators["flutter_moments"]


class TestScorerIsolation:
    """Test scorers never raise."""

    class ExplodingScorer(StyleScorer):
        def compute(self, features, context):
            raise RuntimeError("boom")

    def test_failure_becomes_zero_score(self, sample_chapter_text):
        """Test an exception inside compute yields a zero score with an issue."""
        result = self.ExplodingScorer().score(features_for(sample_chapter_text))

        assert result.score == 0.0
        assert result.failed
        assert "boom" in result.issues[0]

    @pytest.mark.parametrize("scorer", default_scorers(), ids=lambda s: s.dimension.value)
    def test_empty_features_score_zero(self, scorer):
        """Test empty content scores zero without failing."""
        result = scorer.score(features_for(""))

        assert result.score == 0.0
        assert not result.failed

    def test_default_scorers_cover_dimensions(self):
        """Test there is one scorer per dimension."""
        assert {s.dimension for s in default_scorers()} == set(Dimension)

    def test_base_class_is_abstract(self):
        """Test a scorer without compute() cannot be built."""
        class Bare(DimensionScorer):
            dimension = Dimension.AGENCY

        with pytest.raises(TypeError):
            Bare()

    def test_safe_score_success(self, sample_chapter_text):
        """Test safe_score wraps a normal score."""
        result = StyleScorer().safe_score(features_for(sample_chapter_text))

        assert result.ok
        assert result.unwrap().dimension == Dimension.STYLE

    def test_safe_score_failure(self, sample_chapter_text):
        """Test safe_score captures a scorer that raises from score()."""
        class Crashing(StyleScorer):
            def score(self, features, context=None):
                raise RuntimeError("tokenizer crashed")

        result = Crashing().safe_score(features_for(sample_chapter_text))

        assert not result.ok
        assert isinstance(result.error, ScorerFailure)
        assert "tokenizer crashed" in result.message
        with pytest.raises(ScorerFailure):
            result.unwrap()
