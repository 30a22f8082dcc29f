"""
Pytest configuration for Coup AI tests.
"""
import pytest

from src.coup_agent.models import AgentOptions
from tests.fake_game import FakeGame


@pytest.fixture
def game():
    return FakeGame()


@pytest.fixture
def options():
    """Deterministic AI: always in a bluffing mood, never challenges at random."""
    return AgentOptions(
        search_horizon=7,
        chance_to_bluff=1,
        chance_to_challenge=0,
        random_seed=1,
    )
