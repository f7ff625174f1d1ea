"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from storygate.budget.strategies import StrategyCatalog
from storygate.core.constants import StrategyName
from storygate.session import StorygateSession


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_chapter_text() -> str:
    """A chapter excerpt with conflict, dialogue and a relationship beat."""
    return (
        "Mira stepped into the crimson hall as if the shadows themselves had parted for her. "
        "The scent of rain and old smoke lingered like a memory. Suddenly the doors slammed shut, "
        "and the duke's guards drew their swords.\n\n"
        "\"I will not kneel,\" Mira declared. \"Not to you, not to anyone!\"\n\n"
        "\"You dare threaten the throne?\" the duke demanded, his voice sharp as winter.\n\n"
        "Her heart raced when Kael stepped beside her. She almost reached for his hand, but hesitated. "
        "They had been rivals once; now she trusted him more than the crown.\n\n"
        "\"Then we fight,\" Kael said. \"Together.\"\n\n"
        "The battle erupted in a cascade of steel and silver light. Mira discovered the hidden rune "
        "beneath the throne and finally understood the curse that bound the kingdom."
    )


@pytest.fixture
def stagnant_text() -> str:
    """Text dense with stagnation vocabulary and no escalation."""
    return (
        "Nothing happened today. As usual, she sat by the window. "
        "Same as always, the day was boring. Nothing changed. Once again she waited."
    )


@pytest.fixture
def story_context() -> dict:
    """Story context matching sample_chapter_text."""
    return {
        "chapter": 12,
        "total_chapters": 40,
        "characters": ["Mira", "Kael"],
        "plot_points": ["the curse", "the rune"],
        "previous_stage": "hostility",
    }


@pytest.fixture
def catalog() -> StrategyCatalog:
    """Default strategy catalog."""
    return StrategyCatalog()


@pytest.fixture
def creativity(catalog):
    return catalog.get(StrategyName.CREATIVITY)


@pytest.fixture
def efficiency(catalog):
    return catalog.get(StrategyName.EFFICIENCY)


@pytest.fixture
def session() -> StorygateSession:
    """Fresh session with default configuration."""
    return StorygateSession()
