"""
Tests for Characteristic Analyzer

Tests:
- Neutral profile for empty and missing content
- Sub-score bounds and the unweighted overall mean
- Contextual fit against expected characters
- Strengths and weaknesses
"""

import pytest

from storygate.quality.characteristics import (
    CHARACTERISTICS,
    CharacteristicAnalyzer,
    CharacteristicProfile,
    CharacteristicScore,
)
from storygate.quality.features import ContentSample


class TestCharacteristicAnalyzer:
    """Test characteristic analysis."""

    @pytest.fixture
    def analyzer(self):
        return CharacteristicAnalyzer()

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_content_is_exactly_neutral(self, analyzer, text):
        """Test every sub-score equals 0.5 for empty input."""
        profile = analyzer.analyze(ContentSample.create(text))

        assert profile.linguistic.overall_score == 0.5
        assert profile.genre.overall_score == 0.5
        assert profile.emotional.overall_score == 0.5
        assert profile.structural.overall_score == 0.5
        assert profile.contextual.overall_score == 0.5
        assert profile.overall_characteristics == 0.5

    def test_sub_scores_bounded(self, analyzer, sample_chapter_text, story_context):
        """Test sub-scores stay in [0, 1] and overall is their mean."""
        profile = analyzer.analyze(ContentSample.create(sample_chapter_text, story_context))
        scores = [s.overall_score for s in profile.sub_scores.values()]

        assert all(0.0 <= s <= 1.0 for s in scores)
        assert profile.overall_characteristics == pytest.approx(sum(scores) / 5)

    def test_genre_detected(self, analyzer, sample_chapter_text):
        """Test fantasy vocabulary raises genre intensity."""
        profile = analyzer.analyze(ContentSample.create(sample_chapter_text))

        assert profile.genre.metrics["fantasy_intensity"] > 0
        assert profile.emotional.overall_score < 0.5

    def test_contextual_character_presence(self, analyzer, sample_chapter_text):
        """Test expected characters present in the text."""
        present = analyzer.analyze(ContentSample.create(sample_chapter_text, {"characters": ["Mira", "Kael"]}))
        absent = analyzer.analyze(ContentSample.create(sample_chapter_text, {"characters": ["Oren"]}))

        assert present.contextual.metrics["character_presence"] == 1.0
        assert absent.contextual.metrics["character_presence"] == 0.0

    def test_no_context_is_neutral(self, analyzer, sample_chapter_text):
        """Test contextual fit without context."""
        profile = analyzer.analyze(ContentSample.create(sample_chapter_text))

        assert profile.contextual.overall_score == 0.5


class TestCharacteristicProfile:
    """Test profile helpers."""

    def make(self, **scores):
        return CharacteristicProfile(**{
            name: CharacteristicScore(name, scores.get(name, 0.6)) for name in CHARACTERISTICS
        })

    def test_strengths_and_weaknesses(self):
        """Test classification of strong and weak characteristics."""
        profile = self.make(genre=0.9, emotional=0.2)

        assert profile.strengths == ["genre"]
        assert profile.weaknesses == ["emotional"]
        assert profile.dominant == "genre"

    def test_no_dominant(self):
        """Test no dominant characteristic below the bar."""
        assert self.make().dominant is None

    def test_to_dict(self):
        """Test serialization."""
        data = CharacteristicProfile.neutral().to_dict()

        assert data["overall_characteristics"] == 0.5
        assert data["linguistic"]["overall_score"] == 0.5
