import pytest
from gymnasium.utils import seeding

from repair_round.controller import RoundController
from repair_round.persistence import MemoryStore
from repair_round.settings import GameSettings


def make_rng(seed=1234):
    rng, _ = seeding.np_random(seed)
    return rng


def stand_on(controller, target):
    """Put the player's center on a target's center."""
    player = controller.session.player
    player.x = target.rect.centerx - player.width // 2
    player.y = target.rect.centery - player.height // 2


def wrong_answer(controller):
    return str(controller.session.current_problem.expected_answer + 1)


def type_answer(controller, text):
    for ch in text:
        controller.input_digit(ch)


@pytest.fixture
def rng():
    return make_rng()


@pytest.fixture
def settings():
    return GameSettings(
        target_count=2,
        round_count=1,
        arithmetic_mode="addition",
        display_mode="standard",
        first_range=(1, 5),
        second_range=(1, 5),
    )


@pytest.fixture
def rewards():
    return []


@pytest.fixture
def session_logs():
    return []


@pytest.fixture
def controller(settings, rng, rewards, session_logs):
    return RoundController(
        settings=settings,
        np_random=rng,
        on_game_complete=rewards.append,
        on_session_logged=session_logs.append,
    )


@pytest.fixture
def store():
    return MemoryStore()
