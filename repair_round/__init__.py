import os

# pygame is only used for Rect geometry; never open a window
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

from .controller import RoundController, RoundSession, PlayerState, SessionRecord  # noqa: E402
from .env import GameEnv  # noqa: E402
from .game import RepairGame  # noqa: E402
from .layout import Layout, LayoutGenerator, generate_layout  # noqa: E402
from .problems import ArithmeticProblem, generate_problem  # noqa: E402
from .settings import GameSettings  # noqa: E402

__all__ = [
    "ArithmeticProblem",
    "GameEnv",
    "GameSettings",
    "Layout",
    "LayoutGenerator",
    "PlayerState",
    "RepairGame",
    "RoundController",
    "RoundSession",
    "SessionRecord",
    "generate_layout",
    "generate_problem",
]
