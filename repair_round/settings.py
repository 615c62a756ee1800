"""
Game settings consumed by the round controller.

Out-of-range values are clamped and unknown mode strings fall back to
their defaults, so settings coming from an old or hand-edited save never
stop a game from starting.
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Tuple

from .problems import ADDITION, ARITHMETIC_MODES, DISPLAY_MODES, STANDARD

logger = logging.getLogger(__name__)

TARGET_COUNT_RANGE = (1, 10)
ROUND_COUNT_RANGE = (1, 20)
OPERAND_RANGE = (0, 99)


def clamp(value, low, high):
    return max(low, min(high, value))


def _clamp_int(value, bounds, default):
    try:
        value = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring non-integer setting %r, using %s", value, default)
        return default
    return clamp(value, *bounds)


def _clamp_range(value, default):
    try:
        low, high = (int(v) for v in value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring malformed operand range %r, using %s", value, default)
        return default
    low = clamp(low, *OPERAND_RANGE)
    high = clamp(high, *OPERAND_RANGE)
    if low > high:
        low, high = high, low
    return (low, high)


@dataclass
class GameSettings:
    """
    Attributes:
        target_count: Repair targets per round (1-10)
        round_count: Rounds per game (1-20)
        arithmetic_mode: "addition", "subtraction" or "both"
        display_mode: "standard" (a + b = ?) or "blank" (a + ? = c)
        first_range: Inclusive (min, max) for the first operand, within 0-99
        second_range: Inclusive (min, max) for the second operand or blank
        music_enabled: Presentation preference, stored with the profile only
    """

    target_count: int = 3
    round_count: int = 5
    arithmetic_mode: str = ADDITION
    display_mode: str = STANDARD
    first_range: Tuple[int, int] = (1, 5)
    second_range: Tuple[int, int] = (1, 5)
    music_enabled: bool = True

    def __post_init__(self):
        self.target_count = _clamp_int(self.target_count, TARGET_COUNT_RANGE, 3)
        self.round_count = _clamp_int(self.round_count, ROUND_COUNT_RANGE, 5)
        if self.arithmetic_mode not in ARITHMETIC_MODES:
            logger.warning("Unknown arithmetic mode %r, using %s", self.arithmetic_mode, ADDITION)
            self.arithmetic_mode = ADDITION
        if self.display_mode not in DISPLAY_MODES:
            logger.warning("Unknown display mode %r, using %s", self.display_mode, STANDARD)
            self.display_mode = STANDARD
        self.first_range = _clamp_range(self.first_range, (1, 5))
        self.second_range = _clamp_range(self.second_range, (1, 5))
        self.music_enabled = bool(self.music_enabled)

    def to_dict(self):
        data = asdict(self)
        data["first_range"] = list(self.first_range)
        data["second_range"] = list(self.second_range)
        return data

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
