import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import pygame
from gymnasium.utils import seeding

from .geometry import center_distance
from .layout import Layout, LayoutGenerator, RepairTarget
from .problems import ArithmeticProblem, generate_problem
from .scheduler import Scheduler
from .settings import GameSettings, clamp

logger = logging.getLogger(__name__)

UP, DOWN, LEFT, RIGHT = "up", "down", "left", "right"
DIRECTIONS = (UP, DOWN, LEFT, RIGHT)

IDLE = "idle"
REPAIRING = "repairing"
REVEALING = "revealing"
ROUND_COMPLETE = "round_complete"
GAME_COMPLETE = "game_complete"


@dataclass
class PlayerState:
    x: int
    y: int
    width: int
    height: int
    direction: str = DOWN
    is_moving: bool = False

    @property
    def rect(self):
        return pygame.Rect(self.x, self.y, self.width, self.height)

    @classmethod
    def from_spawn(cls, spawn):
        return cls(x=spawn.x, y=spawn.y, width=spawn.width, height=spawn.height)

    def to_dict(self):
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "direction": self.direction,
            "is_moving": self.is_moving,
        }

    @classmethod
    def from_dict(cls, data):
        direction = data.get("direction", DOWN)
        return cls(
            x=int(data["x"]),
            y=int(data["y"]),
            width=int(data["width"]),
            height=int(data["height"]),
            direction=direction if direction in DIRECTIONS else DOWN,
            is_moving=bool(data.get("is_moving", False)),
        )


@dataclass
class RoundSession:
    round_index: int
    layout: Layout
    player: PlayerState
    active_target: Optional[RepairTarget] = None
    current_problem: Optional[ArithmeticProblem] = None
    pending_answer: str = ""
    attempt_count: int = 0
    revealing_answer: bool = False
    stars_this_session: int = 0
    round_complete: bool = False
    game_complete: bool = False
    problems_correct: int = 0
    problems_attempted: int = 0

    def to_dict(self):
        return {
            "round_index": self.round_index,
            "layout": self.layout.to_dict(),
            "player": self.player.to_dict(),
            "active_target_id": None if self.active_target is None else self.active_target.id,
            "current_problem": None if self.current_problem is None else self.current_problem.to_dict(),
            "pending_answer": self.pending_answer,
            "attempt_count": self.attempt_count,
            "revealing_answer": self.revealing_answer,
            "stars_this_session": self.stars_this_session,
            "round_complete": self.round_complete,
            "game_complete": self.game_complete,
            "problems_correct": self.problems_correct,
            "problems_attempted": self.problems_attempted,
        }

    @classmethod
    def from_dict(cls, data):
        layout = Layout.from_dict(data["layout"])
        problem_data = data.get("current_problem")
        active_id = data.get("active_target_id")
        active_target = layout.target_by_id(active_id) if active_id is not None else None
        problem = ArithmeticProblem.from_dict(problem_data) if problem_data else None

        # A target without its problem (or the reverse) cannot be resumed
        if active_target is None or problem is None or active_target.fixed:
            active_target, problem = None, None

        return cls(
            round_index=int(data.get("round_index", 1)),
            layout=layout,
            player=PlayerState.from_dict(data["player"]),
            active_target=active_target,
            current_problem=problem,
            pending_answer=str(data.get("pending_answer", "")) if problem else "",
            attempt_count=int(data.get("attempt_count", 0)) if problem else 0,
            revealing_answer=bool(data.get("revealing_answer", False)) and problem is not None,
            stars_this_session=int(data.get("stars_this_session", 0)),
            round_complete=bool(data.get("round_complete", False)),
            game_complete=bool(data.get("game_complete", False)),
            problems_correct=int(data.get("problems_correct", 0)),
            problems_attempted=int(data.get("problems_attempted", 0)),
        )


@dataclass
class SessionRecord:
    stars_earned: int
    problems_correct: int
    problems_attempted: int
    settings: dict = field(default_factory=dict)


class RoundController:
    """
    Drives one game: movement, proximity checks, problem issuance,
    answer evaluation and round/game completion.

    Every command is a no-op when its preconditions do not hold.
    Deferred transitions run on the controller's own scheduler, which
    advances one step per `tick()`. `on_change` is called whenever
    a repair starts or ends, an answer is judged or a round advances.
    """

    FPS = 30
    MOVE_SPEED = 10
    PLAYER_MARGIN = 20
    REPAIR_RADIUS = 120
    MAX_ATTEMPTS = 5
    REVEAL_DWELL_STEPS = 3 * FPS  # 3 seconds
    MAX_ANSWER_LENGTH = 6

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        np_random=None,
        on_game_complete: Optional[Callable[[int], None]] = None,
        on_session_logged: Optional[Callable[[SessionRecord], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
        session: Optional[RoundSession] = None,
        layout_generator: Optional[LayoutGenerator] = None,
    ):
        self.settings = settings or GameSettings()
        if np_random is None:
            np_random, _ = seeding.np_random()
        self.np_random = np_random
        self.layout_generator = layout_generator or LayoutGenerator(self.np_random)
        self.on_game_complete = on_game_complete
        self.on_session_logged = on_session_logged
        self.on_change = on_change
        self.scheduler = Scheduler()

        if session is None:
            layout = self.layout_generator.generate(self.settings.target_count)
            self.session = RoundSession(round_index=1, layout=layout, player=PlayerState.from_spawn(layout.spawn))
            # A map too crowded to hold any target has nothing to repair
            self._check_completion()
        else:
            self.session = session

        if self.session.revealing_answer:
            # Resumed mid-reveal: the dwell starts over
            self._schedule_reveal()

    @classmethod
    def restore(cls, data, settings=None, np_random=None, **kwargs):
        return cls(settings=settings, np_random=np_random, session=RoundSession.from_dict(data), **kwargs)

    def snapshot(self):
        return self.session.to_dict()

    # --- Queries ---

    @property
    def state(self):
        s = self.session
        if s.game_complete:
            return GAME_COMPLETE
        if s.round_complete:
            return ROUND_COMPLETE
        if s.revealing_answer:
            return REVEALING
        if s.active_target is not None:
            return REPAIRING
        return IDLE

    @property
    def is_final_round(self):
        return self.session.round_index >= self.settings.round_count

    def _is_locked(self):
        s = self.session
        return s.active_target is not None or s.round_complete or s.game_complete

    def nearby_target(self) -> Optional[RepairTarget]:
        """Closest unfixed target within reach; equidistant targets resolve to the lowest id."""
        player_rect = self.session.player.rect
        in_range = []
        for target in self.session.layout.unfixed_targets:
            distance = center_distance(player_rect, target.rect)
            if distance < self.REPAIR_RADIUS:
                in_range.append((distance, target.id, target))
        if not in_range:
            return None
        return min(in_range, key=lambda item: (item[0], item[1]))[2]

    # --- Movement ---

    def move(self, dx, dy):
        if self._is_locked() or (dx == 0 and dy == 0):
            return False

        player = self.session.player
        layout = self.session.layout

        if dx < 0:
            player.direction = LEFT
        elif dx > 0:
            player.direction = RIGHT
        elif dy < 0:
            player.direction = UP
        else:
            player.direction = DOWN

        new_x = clamp(
            player.x + dx * self.MOVE_SPEED,
            self.PLAYER_MARGIN,
            layout.map_width - player.width - self.PLAYER_MARGIN,
        )
        new_y = clamp(
            player.y + dy * self.MOVE_SPEED,
            self.PLAYER_MARGIN,
            layout.map_height - player.height - self.PLAYER_MARGIN,
        )

        # The house is solid, trees are not. Sliding along its wall is allowed
        if pygame.Rect(new_x, new_y, player.width, player.height).colliderect(layout.house):
            player.is_moving = False
            return False

        player.x, player.y = int(new_x), int(new_y)
        player.is_moving = True
        return True

    def stop(self):
        self.session.player.is_moving = False

    # --- Repair protocol ---

    def attempt_repair(self):
        if self._is_locked():
            return None

        target = self.nearby_target()
        if target is None:
            return None

        s = self.session
        s.active_target = target
        s.current_problem = generate_problem(
            self.settings.arithmetic_mode,
            self.settings.first_range,
            self.settings.second_range,
            self.settings.display_mode,
            self.np_random,
        )
        s.pending_answer = ""
        s.attempt_count = 0
        s.player.is_moving = False
        logger.debug("Repair started on target %d: %s", target.id, s.current_problem.display_text())
        # sfx: tool_start
        self._changed()
        return s.current_problem

    def _accepts_input(self):
        return self.session.current_problem is not None and not self.session.revealing_answer

    def input_digit(self, digit):
        digit = str(digit)
        if not self._accepts_input() or len(digit) != 1 or not digit.isdigit():
            return
        if len(self.session.pending_answer) >= self.MAX_ANSWER_LENGTH:
            return
        self.session.pending_answer += digit

    def backspace(self):
        if self._accepts_input():
            self.session.pending_answer = self.session.pending_answer[:-1]

    def clear_answer(self):
        if self._accepts_input():
            self.session.pending_answer = ""

    def submit_answer(self):
        s = self.session
        if not self._accepts_input() or not s.pending_answer:
            return None

        s.problems_attempted += 1

        if s.current_problem.is_correct(s.pending_answer):
            # sfx: unit_startup
            s.problems_correct += 1
            s.stars_this_session += 1
            logger.debug("Target %d repaired, stars this game: %d", s.active_target.id, s.stars_this_session)
            self._resolve_active_target()
            self._changed()
            return True

        s.attempt_count += 1
        if s.attempt_count >= self.MAX_ATTEMPTS:
            s.revealing_answer = True
            logger.debug("Out of attempts on target %d, revealing %d", s.active_target.id, s.current_problem.expected_answer)
            self._schedule_reveal()
        else:
            s.pending_answer = ""
        self._changed()
        return False

    def _schedule_reveal(self):
        self.scheduler.schedule(self.REVEAL_DWELL_STEPS, self._finish_reveal, name="reveal")

    def _finish_reveal(self):
        if not self.session.revealing_answer or self.session.active_target is None:
            return
        # Fixed anyway, but no star
        self._resolve_active_target()
        self._changed()

    def _resolve_active_target(self):
        s = self.session
        s.active_target.fixed = True
        s.active_target = None
        s.current_problem = None
        s.pending_answer = ""
        s.attempt_count = 0
        s.revealing_answer = False
        self._check_completion()

    def _check_completion(self):
        s = self.session
        if not s.layout.all_fixed:
            return

        if self.is_final_round:
            s.game_complete = True
            logger.info(
                "Game complete: %d stars, %d/%d correct",
                s.stars_this_session,
                s.problems_correct,
                s.problems_attempted,
            )
            if self.on_game_complete is not None:
                self.on_game_complete(s.stars_this_session)
            if self.on_session_logged is not None:
                self.on_session_logged(self.session_record())
        else:
            s.round_complete = True
            logger.info("Round %d of %d complete", s.round_index, self.settings.round_count)

    def session_record(self):
        s = self.session
        return SessionRecord(
            stars_earned=s.stars_this_session,
            problems_correct=s.problems_correct,
            problems_attempted=s.problems_attempted,
            settings=self.settings.to_dict(),
        )

    # --- Rounds and time ---

    def advance_round(self):
        s = self.session
        if not s.round_complete or s.game_complete:
            return False

        layout = self.layout_generator.generate(self.settings.target_count)
        s.round_index += 1
        s.layout = layout
        s.player = PlayerState.from_spawn(layout.spawn)
        s.round_complete = False
        logger.debug("Starting round %d with %d targets", s.round_index, len(layout.repair_targets))
        self._check_completion()
        self._changed()
        return True

    def _changed(self):
        if self.on_change is not None:
            self.on_change()

    def tick(self, steps=1):
        self.scheduler.tick(steps)

    def cancel_pending(self):
        self.scheduler.cancel_all()
