import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .settings import GameSettings

logger = logging.getLogger(__name__)

PROFILE_VERSION = 3
DEFAULT_CHARACTER = "repairman"


@dataclass(frozen=True)
class Character:
    id: str
    name: str
    cost: int
    color: str


CHARACTERS = [
    Character("repairman", "Repairman", 0, "#1976d2"),
    Character("bluey", "Bluey", 25, "#5ba4d9"),
    Character("bingo", "Bingo", 25, "#e8a855"),
    Character("rainbow-llama", "Rainbow Llama", 25, "#ff69b4"),
    Character("curious-george", "Curious George", 25, "#8b4513"),
    Character("orca", "Orca", 25, "#1a1a2e"),
    Character("qiaohu", "Qiaohu", 25, "#ff9800"),
    Character("zander", "Zander", 25, "#9c27b0"),
]
CHARACTERS_BY_ID = {c.id: c for c in CHARACTERS}


def _as_int(value, default=0):
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring non-integer profile value %r", value)
        return default


@dataclass
class Profile:
    """Everything that survives between games: settings, stars, characters and a saved game."""

    settings: GameSettings = field(default_factory=GameSettings)
    total_stars: int = 0
    current_game: Optional[dict] = None
    unlocked_characters: List[str] = field(default_factory=lambda: [DEFAULT_CHARACTER])
    selected_character: str = DEFAULT_CHARACTER
    version: int = PROFILE_VERSION

    def award_stars(self, stars):
        self.total_stars += max(0, int(stars))

    def select_character(self, character_id):
        if character_id not in self.unlocked_characters:
            return False
        self.selected_character = character_id
        return True

    def unlock_character(self, character_id):
        character = CHARACTERS_BY_ID.get(character_id)
        if character is None or character_id in self.unlocked_characters:
            return False
        if self.total_stars < character.cost:
            return False
        self.total_stars -= character.cost
        self.unlocked_characters.append(character_id)
        self.selected_character = character_id
        logger.info("Unlocked %s for %d stars", character.name, character.cost)
        return True

    def to_dict(self):
        return {
            "version": self.version,
            "settings": self.settings.to_dict(),
            "total_stars": self.total_stars,
            "current_game": self.current_game,
            "unlocked_characters": list(self.unlocked_characters),
            "selected_character": self.selected_character,
        }

    @classmethod
    def from_dict(cls, data):
        """
        Build a profile from a stored snapshot.

        Snapshots older than the current version keep only their settings.
        Unknown characters are dropped and the starter character is always
        unlocked.
        """
        if not data or not isinstance(data, dict):
            return cls()

        stored_settings = data.get("settings")
        settings = GameSettings.from_dict(stored_settings if isinstance(stored_settings, dict) else None)
        version = _as_int(data.get("version"))
        if version < PROFILE_VERSION:
            logger.info("Resetting profile from version %s to %d", version, PROFILE_VERSION)
            return cls(settings=settings)

        stored_unlocked = data.get("unlocked_characters")
        if not isinstance(stored_unlocked, list):
            stored_unlocked = []
        unlocked = [c for c in stored_unlocked if isinstance(c, str) and c in CHARACTERS_BY_ID]
        unlocked = list(dict.fromkeys(unlocked))
        if DEFAULT_CHARACTER not in unlocked:
            unlocked.insert(0, DEFAULT_CHARACTER)

        selected = data.get("selected_character")
        if not isinstance(selected, str) or selected not in CHARACTERS_BY_ID:
            selected = DEFAULT_CHARACTER

        current_game = data.get("current_game")

        return cls(
            settings=settings,
            total_stars=max(0, _as_int(data.get("total_stars"))),
            current_game=current_game if isinstance(current_game, dict) else None,
            unlocked_characters=unlocked,
            selected_character=selected,
        )


def merge_profiles(local: Profile, remote: Optional[Profile]) -> Profile:
    """
    Combine the local profile with one fetched from remote storage.

    Stars take the larger value and unlocked characters the union.
    Settings and the selected character come from remote, while the
    in-progress game always stays local.
    """
    if remote is None:
        return local

    unlocked = list(dict.fromkeys(local.unlocked_characters + remote.unlocked_characters))
    selected = remote.selected_character if remote.selected_character in unlocked else local.selected_character

    return Profile(
        settings=remote.settings,
        total_stars=max(local.total_stars, remote.total_stars),
        current_game=local.current_game,
        unlocked_characters=unlocked,
        selected_character=selected,
    )
