"""
Tests for Feature Extractor

Tests:
- Neutral features for empty and missing text
- Marker counting
- Determinism
- Context coercion
"""

import pytest

from storygate.quality import lexicon
from storygate.quality.features import (
    NEUTRAL_SCORE,
    NORMALIZED_FEATURES,
    ContentSample,
    FeatureExtractor,
    StoryContext,
    extract_dialogues,
    split_sentences,
)


class TestFeatureExtractor:
    """Test feature extraction."""

    @pytest.fixture
    def extractor(self):
        return FeatureExtractor()

    @pytest.mark.parametrize("text", ["", None, "   \n\n  ", "!!! ... ???"])
    def test_empty_text_is_neutral(self, extractor, text):
        """Test every normalized score defaults to the midpoint."""
        features = extractor.extract(ContentSample.create(text))

        assert features.is_empty
        assert set(features.normalized) == set(NORMALIZED_FEATURES)
        assert all(value == NEUTRAL_SCORE for value in features.normalized.values())

    def test_counts_markers(self, extractor, sample_chapter_text):
        """Test category markers are counted."""
        features = extractor.extract(ContentSample.create(sample_chapter_text))

        assert features.word_count > 50
        assert features.dialogue_count == 5
        assert features.count("conflict") >= 3
        assert features.count("genre") >= 3
        assert features.count("flutter") >= 1
        assert 0.0 < features.score("genre_intensity") <= 1.0

    def test_deterministic(self, extractor, sample_chapter_text):
        """Test same text yields same features."""
        first = extractor.extract(ContentSample.create(sample_chapter_text))
        second = extractor.extract(ContentSample.create(sample_chapter_text))

        assert first.to_dict() == second.to_dict()
        assert first.sentences == second.sentences

    def test_features_are_read_only(self, extractor, sample_chapter_text):
        """Test feature mappings cannot be mutated."""
        features = extractor.extract(ContentSample.create(sample_chapter_text))

        with pytest.raises(TypeError):
            features.counts["conflict"] = 0

    def test_normalized_scores_bounded(self, extractor, sample_chapter_text):
        """Test normalized features stay within [0, 1]."""
        features = extractor.extract(ContentSample.create(sample_chapter_text * 20))

        assert all(0.0 <= value <= 1.0 for value in features.normalized.values())


class TestTextHelpers:
    """Test splitting helpers."""

    def test_split_sentences(self):
        """Test sentence splitting on terminal punctuation and newlines."""
        assert split_sentences("One. Two! Three?\nFour") == ["One.", "Two!", "Three?", "Four"]

    def test_extract_dialogues(self):
        """Test straight and curly quotes."""
        text = 'He said "go now" and she replied “never”.'

        assert extract_dialogues(text) == ["go now", "never"]


class TestStoryContext:
    """Test context coercion."""

    def test_from_dict(self, story_context):
        """Test dictionary context conversion."""
        context = StoryContext.coerce(story_context)

        assert context.chapter == 12
        assert context.characters == ("Mira", "Kael")
        assert not context.is_empty

    def test_none_is_empty(self):
        """Test missing context."""
        assert StoryContext.coerce(None).is_empty

    def test_rejects_other_types(self):
        """Test unsupported context types."""
        with pytest.raises(TypeError):
            StoryContext.coerce(["chapter", 1])


class TestMarkerPatterns:
    """Test lexicon marker matching."""

    def test_pattern_compiled_once(self):
        """Test repeated lookups reuse the compiled pattern."""
        assert lexicon.marker_pattern(lexicon.SENSORY) is lexicon.marker_pattern(lexicon.SENSORY)
        assert lexicon.marker_pattern.cache_info().hits >= 1

    def test_phrases_and_word_boundaries(self):
        """Test phrases match whole and words do not match inside others."""
        markers = frozenset(["heart raced", "art"])

        assert lexicon.find_markers("Her Heart raced as the artist smiled.", markers) == ["heart raced"]
        assert lexicon.count_markers("", markers) == 0
