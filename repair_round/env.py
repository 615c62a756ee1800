import logging

import gymnasium as gym
import numpy as np
from gymnasium.spaces import MultiDiscrete

from .controller import GAME_COMPLETE, IDLE, REPAIRING, REVEALING, ROUND_COMPLETE, RoundController
from .settings import GameSettings

logger = logging.getLogger(__name__)


class GameEnv(gym.Env):
    metadata = {"render_modes": []}

    # Must be a short, user-facing control string:
    user_guide = (
        "Controls: Arrow keys to move. Space to start a repair (or the next round). "
        "Keypad to type the answer, backspace to erase, enter to submit."
    )

    # Must be a short, user-facing description of the game:
    game_description = (
        "Walk around the house, fix every broken unit by solving its math problem, and collect a star for each one."
    )

    # Should frames auto-advance or wait for user input?
    auto_advance = True

    # Keypad action values
    KEY_NONE = 0
    KEY_DIGITS = range(1, 11)  # 1..10 type digits 0..9
    KEY_BACKSPACE = 11
    KEY_SUBMIT = 12

    def __init__(self, settings=None, render_mode=None):
        super().__init__()

        self.settings = settings or GameSettings()
        self.render_mode = render_mode

        # Game constants
        self.FPS = RoundController.FPS
        self.MAX_STEPS = 30 * 60 * self.FPS  # 30 minutes
        self.REWARD_STAR = 1.0
        self.REWARD_WRONG = -0.1
        self.REWARD_ROUND = 5.0
        self.REWARD_GAME = 10.0

        # movement, space, keypad
        self.action_space = MultiDiscrete([5, 2, 13])
        # player x, y, dx and dy to the nearest unfixed target, fraction fixed,
        # repairing, revealing, attempts used, round progress, round complete
        self.observation_space = gym.spaces.Box(low=-1.0, high=1.0, shape=(10,), dtype=np.float32)

        # State variables (initialized in reset)
        self.controller = None
        self.steps = None
        self.score = None
        self.game_over = None
        self.prev_space_held = False

        self.reset()
        self.validate_implementation()

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        if self.controller is not None:
            self.controller.cancel_pending()
        self.controller = RoundController(settings=self.settings, np_random=self.np_random)

        self.steps = 0
        self.score = 0.0
        self.game_over = self.controller.session.game_complete
        self.prev_space_held = True

        return self._get_observation(), self._get_info()

    def step(self, action):
        if self.game_over:
            return self._get_observation(), 0.0, True, False, self._get_info()

        movement, space_held, key = int(action[0]), int(action[1]) == 1, int(action[2])
        space_press = space_held and not self.prev_space_held
        self.prev_space_held = space_held

        s = self.controller.session
        stars_before = s.stars_this_session
        attempts_before = s.problems_attempted
        round_before = s.round_complete
        reward = 0.0
        self.steps += 1

        # 1. Deferred transitions (answer reveal)
        self.controller.tick()

        # 2. Movement
        if movement == 1:
            self.controller.move(0, -1)
        elif movement == 2:
            self.controller.move(0, 1)
        elif movement == 3:
            self.controller.move(-1, 0)
        elif movement == 4:
            self.controller.move(1, 0)
        else:
            self.controller.stop()

        # 3. Space starts a repair, or the next round once this one is done
        if space_press:
            if s.round_complete:
                self.controller.advance_round()
            else:
                self.controller.attempt_repair()

        # 4. Keypad
        if key in self.KEY_DIGITS:
            self.controller.input_digit(key - 1)
        elif key == self.KEY_BACKSPACE:
            self.controller.backspace()
        elif key == self.KEY_SUBMIT:
            self.controller.submit_answer()

        stars_gained = s.stars_this_session - stars_before
        wrong = (s.problems_attempted - attempts_before) - stars_gained
        reward += stars_gained * self.REWARD_STAR + wrong * self.REWARD_WRONG
        if s.round_complete and not round_before:
            reward += self.REWARD_ROUND

        terminated = False
        if s.game_complete:
            terminated = True
            reward += self.REWARD_GAME
        truncated = not terminated and self.steps >= self.MAX_STEPS

        if terminated or truncated:
            self.game_over = True
        self.score += reward

        return (
            self._get_observation(),
            reward,
            terminated,
            truncated,
            self._get_info()
        )

    def _get_observation(self):
        s = self.controller.session
        layout = s.layout
        player = s.player.rect
        targets = layout.repair_targets

        dx = dy = 0.0
        unfixed = layout.unfixed_targets
        if unfixed:
            nearest = min(unfixed, key=lambda t: (np.hypot(t.rect.centerx - player.centerx, t.rect.centery - player.centery), t.id))
            dx = (nearest.rect.centerx - player.centerx) / layout.map_width
            dy = (nearest.rect.centery - player.centery) / layout.map_height

        obs = np.array([
            player.x / layout.map_width,
            player.y / layout.map_height,
            dx,
            dy,
            (len(targets) - len(unfixed)) / len(targets) if targets else 1.0,
            float(s.active_target is not None),
            float(s.revealing_answer),
            s.attempt_count / RoundController.MAX_ATTEMPTS,
            s.round_index / self.settings.round_count,
            float(s.round_complete),
        ], dtype=np.float32)
        return np.clip(obs, -1.0, 1.0)

    def _get_info(self):
        s = self.controller.session
        return {
            "score": self.score,
            "steps": self.steps,
            "round": s.round_index,
            "stars": s.stars_this_session,
            "targets_fixed": len(s.layout.repair_targets) - len(s.layout.unfixed_targets),
            "targets_total": len(s.layout.repair_targets),
            "problems_correct": s.problems_correct,
            "problems_attempted": s.problems_attempted,
            "problem": s.current_problem.display_text() if s.current_problem else "",
            "state": self.controller.state,
        }

    def close(self):
        if self.controller is not None:
            self.controller.cancel_pending()

    def validate_implementation(self):
        # Test action space
        assert self.action_space.shape == (3,)
        assert self.action_space.nvec.tolist() == [5, 2, 13]

        # Test observation space
        test_obs = self._get_observation()
        assert test_obs.shape == (10,)
        assert test_obs.dtype == np.float32

        # Test reset
        obs, info = self.reset()
        assert self.observation_space.contains(obs)
        assert isinstance(info, dict)

        # Test step
        test_action = self.action_space.sample()
        obs, reward, term, trunc, info = self.step(test_action)
        assert self.observation_space.contains(obs)
        assert isinstance(reward, (int, float))
        assert isinstance(term, bool)
        assert isinstance(trunc, bool)
        assert isinstance(info, dict)
        assert info["state"] in (IDLE, REPAIRING, REVEALING, ROUND_COMPLETE, GAME_COMPLETE)

        logger.info("Implementation validated successfully")


if __name__ == '__main__':
    from .logging_config import configure_logging
    from .policy import policy

    configure_logging()
    env = GameEnv(settings=GameSettings(target_count=3, round_count=2))
    obs, info = env.reset(seed=0)

    terminated = truncated = False
    while not (terminated or truncated):
        obs, reward, terminated, truncated, info = env.step(policy(env))

    logger.info(
        "Game over after %d steps: %d stars, %d/%d correct",
        info["steps"], info["stars"], info["problems_correct"], info["problems_attempted"],
    )
    env.close()
