"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random

import pytest

from src.connect_four.clock import FakeClock
from src.connect_four.decider import MajorityTurnDecider
from src.connect_four.game_state import GameState
from src.connect_four.turn_manager import TurnManager
from src.core.models import Player
from src.core.shared_types import Team

START_TIME_MS = 1_700_000_000_000


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start_time=START_TIME_MS)


@pytest.fixture
def rng() -> random.Random:
    """Seeded, so a failing test can be replayed."""
    return random.Random(1234)


@pytest.fixture
def decider(rng: random.Random) -> MajorityTurnDecider:
    return MajorityTurnDecider(rng)


@pytest.fixture
def turn_manager(decider: MajorityTurnDecider, fake_clock: FakeClock) -> TurnManager:
    return TurnManager(decider, fake_clock)


@pytest.fixture
def players() -> list[Player]:
    """Three red players (p1-p3, p1 is admin) and two yellow players (p4, p5)."""
    return [
        Player(id="p1", nickname="Ada", team=Team.RED, is_admin=True),
        Player(id="p2", nickname="Grace", team=Team.RED),
        Player(id="p3", nickname="Linus", team=Team.RED),
        Player(id="p4", nickname="Guido", team=Team.YELLOW),
        Player(id="p5", nickname="Barbara", team=Team.YELLOW),
    ]


@pytest.fixture
def game_state() -> GameState:
    return GameState.new_game()
