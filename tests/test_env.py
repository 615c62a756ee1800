import numpy as np
import pytest

from repair_round.controller import GAME_COMPLETE, REPAIRING
from repair_round.env import GameEnv
from repair_round.policy import policy
from repair_round.settings import GameSettings

from .conftest import stand_on

MAX_TEST_STEPS = 20000


@pytest.fixture
def env():
    e = GameEnv(settings=GameSettings(target_count=2, round_count=2))
    yield e
    e.close()


class TestGameEnv:
    def test_reset_when_seeded_then_observation_in_space(self, env):
        obs, info = env.reset(seed=4)
        assert env.observation_space.contains(obs)
        assert info["round"] == 1
        assert info["stars"] == 0
        assert info["state"] == "idle"

    def test_reset_when_same_seed_then_same_layout(self, env):
        env.reset(seed=21)
        first = env.controller.session.layout.to_dict()
        env.reset(seed=21)
        assert env.controller.session.layout.to_dict() == first

    def test_step_when_space_held_then_only_first_press_counts(self, env):
        env.reset(seed=4)
        controller = env.controller
        stand_on(controller, controller.session.layout.repair_targets[0])

        # Space is treated as held across reset
        env.step([0, 1, 0])
        assert controller.state != REPAIRING
        env.step([0, 0, 0])
        env.step([0, 1, 0])
        assert controller.state == REPAIRING

    def test_step_when_wrong_answer_submitted_then_penalized(self, env):
        env.reset(seed=4)
        controller = env.controller
        stand_on(controller, controller.session.layout.repair_targets[0])
        env.step([0, 0, 0])
        env.step([0, 1, 0])

        wrong = controller.session.current_problem.expected_answer + 1
        for ch in str(wrong):
            env.step([0, 0, int(ch) + 1])
        _, reward, terminated, _, info = env.step([0, 0, GameEnv.KEY_SUBMIT])

        assert reward == pytest.approx(env.REWARD_WRONG)
        assert terminated is False
        assert info["problems_attempted"] == 1

    def test_policy_when_played_to_end_then_every_problem_solved(self, env):
        obs, info = env.reset(seed=0)
        terminated = truncated = False
        total = 0.0

        for _ in range(MAX_TEST_STEPS):
            obs, reward, terminated, truncated, info = env.step(policy(env))
            total += reward
            assert env.observation_space.contains(obs)
            if terminated or truncated:
                break

        assert terminated is True
        assert truncated is False
        assert info["state"] == GAME_COMPLETE
        assert info["round"] == 2
        assert info["stars"] == info["problems_correct"] == info["problems_attempted"]
        assert info["stars"] > 0
        assert total == pytest.approx(info["score"])

    def test_step_when_game_over_then_no_further_changes(self, env):
        env.reset(seed=0)
        info = None
        for _ in range(MAX_TEST_STEPS):
            _, _, terminated, truncated, info = env.step(policy(env))
            if terminated or truncated:
                break

        obs, reward, terminated, truncated, after = env.step(np.array([4, 1, 5]))
        assert reward == 0.0
        assert terminated is True
        assert after["stars"] == info["stars"]
