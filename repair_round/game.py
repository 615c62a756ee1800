import logging

from gymnasium.utils import seeding

from .controller import RoundController, RoundSession
from .persistence import ERROR, DebouncedSync, MemoryStore
from .profile import Profile, merge_profiles
from .settings import GameSettings

logger = logging.getLogger(__name__)


class RepairGame:
    """
    Owns the player profile, the storage collaborators and the controller
    of the game in progress.

    `store` is the local snapshot store. `remote`, when given, is written
    through a `DebouncedSync` and merged on `sync_with_remote()`.
    `session_logger` receives one `SessionRecord` per finished game.
    """

    def __init__(self, store=None, remote=None, session_logger=None, np_random=None, seed=None):
        self.store = store if store is not None else MemoryStore()
        self.profile = Profile.from_dict(self.store.load())
        if np_random is None:
            np_random, _ = seeding.np_random(seed)
        self.np_random = np_random
        self.sync = DebouncedSync(remote) if remote is not None else None
        self.session_logger = session_logger
        self.controller = None
        self.stars_earned_last_game = 0
        self.session_log = []

    @property
    def has_saved_game(self):
        return self.profile.current_game is not None

    @property
    def sync_status(self):
        return self.sync.status if self.sync is not None else None

    def update_settings(self, settings):
        if not isinstance(settings, GameSettings):
            settings = GameSettings.from_dict(settings)
        self.profile.settings = settings
        if self.controller is not None:
            self.controller.settings = settings
        self.save()

    def _retire_controller(self):
        if self.controller is not None:
            # The superseded game must not receive its pending reveal
            self.controller.cancel_pending()
            self.controller = None

    def _new_controller(self, session=None):
        self._retire_controller()
        return RoundController(
            settings=self.profile.settings,
            np_random=self.np_random,
            on_game_complete=self._on_game_complete,
            on_session_logged=self._on_session_logged,
            on_change=self.save,
            session=session,
        )

    def start_new_game(self):
        self.profile.current_game = None
        self.controller = self._new_controller()
        self.save()
        return self.controller

    def resume_game(self):
        if self.profile.current_game is None:
            return None
        try:
            session = RoundSession.from_dict(self.profile.current_game)
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Saved game is unreadable, discarding it", exc_info=True)
            self.profile.current_game = None
            self.save()
            return None
        self.controller = self._new_controller(session)
        return self.controller

    def tick(self, steps=1):
        if self.controller is not None:
            self.controller.tick(steps)
        if self.sync is not None:
            self.sync.scheduler.tick(steps)

    def save(self):
        if self.controller is not None and not self.controller.session.game_complete:
            self.profile.current_game = self.controller.snapshot()
        else:
            self.profile.current_game = None

        snapshot = self.profile.to_dict()
        if not self.store.save(snapshot):
            logger.warning("Local save failed, keeping in-memory state")
        if self.sync is not None:
            self.sync.request_save(snapshot)

    def sync_with_remote(self):
        if self.sync is None:
            return None
        try:
            remote_data = self.sync.store.load()
        except Exception:
            logger.exception("Fetching remote game state failed")
            self.sync.status = ERROR
            return None

        remote = Profile.from_dict(remote_data) if remote_data else None
        self.profile = merge_profiles(self.profile, remote)
        if self.controller is not None:
            self.controller.settings = self.profile.settings
        self.save()
        self.sync.flush()
        return self.profile

    def unlock_character(self, character_id):
        unlocked = self.profile.unlock_character(character_id)
        if unlocked:
            self.save()
        return unlocked

    def select_character(self, character_id):
        selected = self.profile.select_character(character_id)
        if selected:
            self.save()
        return selected

    def _on_game_complete(self, stars):
        self.stars_earned_last_game = stars
        self.profile.award_stars(stars)

    def _on_session_logged(self, record):
        self.session_log.append(record)
        if self.session_logger is not None:
            try:
                self.session_logger(record)
            except Exception:
                logger.exception("Session logger failed")
        self.save()
